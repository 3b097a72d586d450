from django.conf import settings
from django.db import models

from core.models import WriteOnceModel


class AuditLogEntry(WriteOnceModel):
    """Immutable fact about a state change in the booking or payment flow."""

    BOOKING_CREATED = "BOOKING_CREATED"
    BOOKING_UPDATED = "BOOKING_UPDATED"
    BOOKING_STATUS_CHANGED = "BOOKING_STATUS_CHANGED"
    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_VERIFIED = "PAYMENT_VERIFIED"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    INVOICE_GENERATED = "INVOICE_GENERATED"
    ACTIONS = [
        (BOOKING_CREATED, "Booking created"),
        (BOOKING_UPDATED, "Booking updated"),
        (BOOKING_STATUS_CHANGED, "Booking status changed"),
        (PAYMENT_CREATED, "Payment created"),
        (PAYMENT_CONFIRMED, "Payment confirmed by tenant"),
        (PAYMENT_VERIFIED, "Payment verified by owner"),
        (PAYMENT_REJECTED, "Payment rejected by owner"),
        (PAYMENT_REFUNDED, "Payment refunded"),
        (INVOICE_GENERATED, "Invoice generated"),
    ]

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=40, choices=ACTIONS)
    details = models.TextField(blank=True)
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = "audit log entries"
        indexes = [
            models.Index(fields=["actor", "created_at"], name="audit_entry_actor_idx"),
            models.Index(fields=["booking", "created_at"], name="audit_entry_booking_idx"),
            models.Index(fields=["payment", "created_at"], name="audit_entry_payment_idx"),
        ]

    def __str__(self):
        return f"{self.action} by {self.actor_id} at {self.created_at:%Y-%m-%d %H:%M:%S}"
