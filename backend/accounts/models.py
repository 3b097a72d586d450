from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    TENANT = "TENANT"
    OWNER = "OWNER"
    ROLES = [
        (TENANT, "Tenant"),
        (OWNER, "Owner"),
    ]

    display_name = models.CharField(max_length=120, blank=True)
    role = models.CharField(max_length=20, choices=ROLES, default=TENANT)

    @property
    def is_owner(self) -> bool:
        return self.role == self.OWNER

    def get_display_name(self) -> str:
        return self.display_name or self.get_full_name() or self.email or self.username


class PayoutAccount(models.Model):
    """
    Where an owner wants tenants to send money.

    Routing data is kept apart from identity data: the payee identifier is an
    explicit field (for example a UPI VPA) and is never derived from the
    owner's e-mail address.
    """

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payout_account",
    )
    payee_identifier = models.CharField(max_length=255)
    payee_name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.payee_name} <{self.payee_identifier}>"
