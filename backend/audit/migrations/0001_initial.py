from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(choices=[("BOOKING_CREATED", "Booking created"), ("BOOKING_UPDATED", "Booking updated"), ("BOOKING_STATUS_CHANGED", "Booking status changed"), ("PAYMENT_CREATED", "Payment created"), ("PAYMENT_CONFIRMED", "Payment confirmed by tenant"), ("PAYMENT_VERIFIED", "Payment verified by owner"), ("PAYMENT_REJECTED", "Payment rejected by owner"), ("PAYMENT_REFUNDED", "Payment refunded"), ("INVOICE_GENERATED", "Invoice generated")], max_length=40)),
                ("details", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("actor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="audit_entries", to=settings.AUTH_USER_MODEL)),
                ("booking", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="audit_entries", to="bookings.booking")),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="audit_entries", to="payments.payment")),
            ],
            options={
                "verbose_name_plural": "audit log entries",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["actor", "created_at"], name="audit_entry_actor_idx"),
                    models.Index(fields=["booking", "created_at"], name="audit_entry_booking_idx"),
                    models.Index(fields=["payment", "created_at"], name="audit_entry_payment_idx"),
                ],
            },
        ),
    ]
