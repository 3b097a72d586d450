from django.conf import settings
from django.db import models

from core.models import WriteOnceModel


class Payment(models.Model):
    """
    Money a tenant owes an owner for one booking.

    ``amount`` is fixed in integer minor units when the payment is created and
    is never recomputed afterwards.
    """

    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    AWAITING_OWNER_VERIFICATION = "AWAITING_OWNER_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    REFUNDED = "REFUNDED"
    STATUSES = [
        (AWAITING_PAYMENT, "Awaiting payment"),
        (AWAITING_OWNER_VERIFICATION, "Awaiting owner verification"),
        (VERIFIED, "Verified"),
        (REJECTED, "Rejected"),
        (REFUNDED, "Refunded"),
    ]
    SETTLED_STATUSES = (VERIFIED, REJECTED)

    booking = models.ForeignKey("bookings.Booking", on_delete=models.PROTECT, related_name="payments")
    payer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_made",
    )
    payee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments_received",
    )
    amount = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="INR")
    payable_uri = models.CharField(max_length=500, blank=True)
    proof_reference = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=30, choices=STATUSES, default=AWAITING_PAYMENT)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments_verified",
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["payee", "status", "created_at"], name="payment_payee_status_idx"),
            models.Index(fields=["booking", "status"], name="payment_booking_status_idx"),
        ]

    def __str__(self):
        return f"Payment {self.pk} for booking {self.booking_id} ({self.status})"


class Invoice(WriteOnceModel):
    PAID = "PAID"
    STATUSES = [(PAID, "Paid")]

    invoice_number = models.CharField(max_length=40, unique=True)
    payment = models.OneToOneField(Payment, on_delete=models.PROTECT, related_name="invoice")
    booking = models.ForeignKey("bookings.Booking", on_delete=models.PROTECT, related_name="invoices")
    payer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="invoices_billed",
    )
    payee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="invoices_issued",
    )
    amount = models.PositiveIntegerField()
    currency = models.CharField(max_length=3)
    line_items = models.JSONField(default=list)
    status = models.CharField(max_length=10, choices=STATUSES, default=PAID)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return self.invoice_number
