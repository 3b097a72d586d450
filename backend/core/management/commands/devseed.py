from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounts.models import PayoutAccount, User
from properties.models import Property


SEED_PASSWORD = "PGStay123!"
SUPERUSER_EMAIL = "admin@pgstay.test"
SUPERUSER_PASSWORD = "AdminPGStay123!"


class Command(BaseCommand):
    help = "Populate the local development database with sample data."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating users"))
            owner = self._ensure_user(
                email="owner@pgstay.test",
                first_name="Priya",
                last_name="Owner",
                display_name="Priya Owner",
                role=User.OWNER,
            )
            tenant = self._ensure_user(
                email="tenant@pgstay.test",
                first_name="Tarun",
                last_name="Tenant",
                display_name="Tarun Tenant",
                role=User.TENANT,
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating payout account"))
            PayoutAccount.objects.update_or_create(
                owner=owner,
                defaults={
                    "payee_identifier": "priya.owner@upi",
                    "payee_name": "Priya Owner",
                },
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating properties"))
            self._ensure_property(
                owner=owner,
                name="Lakeview Girls PG",
                address="12 Lake Road, Bengaluru",
                nightly_rate=Decimal("650.00"),
                capacity=2,
            )
            self._ensure_property(
                owner=owner,
                name="Koramangala Co-living Hostel",
                address="5th Block, Koramangala, Bengaluru",
                nightly_rate=Decimal("899.50"),
                capacity=4,
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Ensuring admin superuser"))
            self._ensure_superuser()

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Sample login accounts ({tenant.email}, {owner.email}) use password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))

    def _ensure_user(
        self,
        email: str,
        first_name: str,
        last_name: str,
        display_name: str,
        role: str,
    ) -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": display_name,
                "role": role,
            },
        )
        if created:
            user.set_password(SEED_PASSWORD)
            user.save()
        else:
            fields_to_update = {}
            if user.display_name != display_name:
                fields_to_update["display_name"] = display_name
            if user.role != role:
                fields_to_update["role"] = role
            if fields_to_update:
                for attr, value in fields_to_update.items():
                    setattr(user, attr, value)
                user.save(update_fields=list(fields_to_update.keys()))
            if not user.has_usable_password():
                user.set_password(SEED_PASSWORD)
                user.save(update_fields=["password"])
        return user

    def _ensure_property(self, owner: User, name: str, address: str, nightly_rate: Decimal, capacity: int) -> Property:
        prop, created = Property.objects.update_or_create(
            owner=owner,
            name=name,
            defaults={
                "address": address,
                "nightly_rate": nightly_rate,
                "capacity": capacity,
                "is_active": True,
            },
        )
        if created:
            self.stdout.write(f"  created {prop.name} at {prop.nightly_rate}/night")
        return prop

    def _ensure_superuser(self) -> User:
        user, created = User.objects.get_or_create(
            email=SUPERUSER_EMAIL,
            defaults={
                "username": SUPERUSER_EMAIL,
                "first_name": "Admin",
                "last_name": "User",
                "display_name": "Admin User",
                "is_staff": True,
                "is_superuser": True,
            },
        )
        flag_updates = {}
        if not user.is_staff:
            flag_updates["is_staff"] = True
        if not user.is_superuser:
            flag_updates["is_superuser"] = True
        if flag_updates:
            for attr, value in flag_updates.items():
                setattr(user, attr, value)
            user.save(update_fields=list(flag_updates.keys()))
        if created or not user.has_usable_password():
            user.set_password(SUPERUSER_PASSWORD)
            user.save(update_fields=["password"])
        return user
