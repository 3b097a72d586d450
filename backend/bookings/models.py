import builtins

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from core.errors import ImmutableRecordError


class Booking(models.Model):
    """A tenant's claim on a property for the half-open interval [check_in, check_out)."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
        (COMPLETED, "Completed"),
    ]
    ACTIVE_STATUSES = (PENDING, CONFIRMED)
    CANCELLABLE_STATUSES = (PENDING, CONFIRMED)

    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    property = models.ForeignKey(
        "properties.Property",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["property", "status"], name="booking_property_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(check_in__lt=models.F("check_out")),
                name="booking_check_in_before_check_out",
            ),
        ]

    def __str__(self):
        return f"{self.property} {self.check_in:%Y-%m-%d} to {self.check_out:%Y-%m-%d} ({self.status})"

    @builtins.property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @builtins.property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def clean(self):
        super().clean()
        if self.check_in and self.check_out and self.check_out <= self.check_in:
            raise ValidationError({"check_out": "Check-out must be after check-in."})

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Bookings are never deleted; cancel them instead.")
