from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .pricing import to_minor_units


class Property(models.Model):
    """A PG/hostel listing. Managed by the catalog; bookings only read it."""

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="properties",
    )
    name = models.CharField(max_length=200)
    address = models.CharField(max_length=255, blank=True)
    nightly_rate = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    capacity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]
        verbose_name_plural = "properties"

    def __str__(self):
        return self.name

    @property
    def nightly_rate_minor(self) -> int:
        return to_minor_units(self.nightly_rate)

    def clean(self):
        super().clean()
        if self.nightly_rate is not None and self.nightly_rate.as_tuple().exponent < -2:
            raise ValidationError({"nightly_rate": "Nightly rate supports at most two decimal places."})
