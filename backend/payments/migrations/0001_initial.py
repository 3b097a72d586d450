from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.PositiveIntegerField()),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("payable_uri", models.CharField(blank=True, max_length=500)),
                ("proof_reference", models.CharField(blank=True, max_length=200)),
                ("status", models.CharField(choices=[("AWAITING_PAYMENT", "Awaiting payment"), ("AWAITING_OWNER_VERIFICATION", "Awaiting owner verification"), ("VERIFIED", "Verified"), ("REJECTED", "Rejected"), ("REFUNDED", "Refunded")], default="AWAITING_PAYMENT", max_length=30)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="bookings.booking")),
                ("payer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments_made", to=settings.AUTH_USER_MODEL)),
                ("payee", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments_received", to=settings.AUTH_USER_MODEL)),
                ("verified_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="payments_verified", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["payee", "status", "created_at"], name="payment_payee_status_idx"),
                    models.Index(fields=["booking", "status"], name="payment_booking_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=40, unique=True)),
                ("amount", models.PositiveIntegerField()),
                ("currency", models.CharField(max_length=3)),
                ("line_items", models.JSONField(default=list)),
                ("status", models.CharField(choices=[("PAID", "Paid")], default="PAID", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("booking", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="bookings.booking")),
                ("payer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices_billed", to=settings.AUTH_USER_MODEL)),
                ("payee", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices_issued", to=settings.AUTH_USER_MODEL)),
                ("payment", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="invoice", to="payments.payment")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
