from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from bookings.serializers import BookingSerializer
from payments.models import Invoice, Payment
from payments.services.lifecycle import DECISIONS


class PaymentSerializer(serializers.ModelSerializer):
    payer = UserSummarySerializer(read_only=True)
    payee = UserSummarySerializer(read_only=True)
    property_name = serializers.CharField(source="booking.property.name", read_only=True)
    check_in = serializers.DateField(source="booking.check_in", read_only=True)
    check_out = serializers.DateField(source="booking.check_out", read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "property_name",
            "check_in",
            "check_out",
            "payer",
            "payee",
            "amount",
            "currency",
            "payable_uri",
            "proof_reference",
            "status",
            "verified_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    payment_id = serializers.IntegerField(read_only=True)
    booking_id = serializers.IntegerField(read_only=True)
    payer_id = serializers.IntegerField(read_only=True)
    payee_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "payment_id",
            "booking_id",
            "payer_id",
            "payee_id",
            "amount",
            "currency",
            "line_items",
            "status",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField(min_value=1)
    amount_override = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class PaymentConfirmSerializer(serializers.Serializer):
    proof_reference = serializers.CharField(max_length=200, required=False, allow_blank=True)


class PaymentVerifySerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=DECISIONS)
    note = serializers.CharField(max_length=1000, required=False, allow_blank=True)


def serialize_payment_intent(intent) -> dict:
    return {
        "payment_id": intent.payment.pk,
        "amount": intent.payment.amount,
        "currency": intent.payment.currency,
        "status": intent.payment.status,
        "payable": intent.payable.as_dict(),
    }


def serialize_verification(result) -> dict:
    return {
        "payment_id": result.payment.pk,
        "status": result.status,
        "invoice": InvoiceSerializer(result.invoice).data if result.invoice else None,
        "booking": BookingSerializer(result.booking).data if result.booking else None,
    }
