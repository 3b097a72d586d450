from django.db.models import Q
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from audit.serializers import AuditLogEntrySerializer
from audit.services import ledger
from payments.models import Payment
from payments.serializers import (
    InvoiceSerializer,
    PaymentConfirmSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    PaymentVerifySerializer,
    serialize_payment_intent,
    serialize_verification,
)
from payments.services import invoices, lifecycle


class PaymentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Payment flow endpoints.

    Tenants create and confirm payments; owners list what is waiting for them
    and verify or reject. ``GET /payments/?role=owner|tenant`` narrows the
    list to one side of the caller's payments and ``?booking=<id>`` to one
    booking.
    """

    serializer_class = PaymentSerializer
    lookup_value_regex = r"\d+"
    permission_classes = [permissions.IsAuthenticated]
    throttle_scope = "payments"
    filterset_fields = ["status", "booking"]
    ordering_fields = ["created_at", "amount"]
    throttled_actions = ("create", "confirm", "verify")

    def get_throttles(self):
        if self.action in self.throttled_actions:
            return [ScopedRateThrottle()]
        return []

    def get_queryset(self):
        user = self.request.user
        role = self.request.query_params.get("role")
        if role == "owner":
            return lifecycle.list_for_owner(user)
        if role == "tenant":
            return lifecycle.list_for_tenant(user)
        return (
            Payment.objects.filter(Q(payer=user) | Q(payee=user))
            .select_related("booking", "booking__property", "payer", "payee")
            .order_by("-created_at", "-id")
        )

    def create(self, request, *args, **kwargs):
        payload = PaymentCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        intent = lifecycle.create_payment(
            tenant=request.user,
            booking_id=payload.validated_data["booking_id"],
            amount_override=payload.validated_data.get("amount_override"),
        )
        return Response(serialize_payment_intent(intent), status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        payment = lifecycle.get_for_participant(request.user, pk)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        payload = PaymentConfirmSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        payment = lifecycle.confirm_payment(
            tenant=request.user,
            payment_id=pk,
            proof_reference=payload.validated_data.get("proof_reference"),
        )
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"])
    def verify(self, request, pk=None):
        payload = PaymentVerifySerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        result = lifecycle.verify_payment(
            owner=request.user,
            payment_id=pk,
            decision=payload.validated_data["decision"],
            note=payload.validated_data.get("note"),
        )
        return Response(serialize_verification(result))

    @action(detail=False, methods=["get"])
    def pending(self, request):
        payments = lifecycle.list_pending_for_owner(request.user)
        return Response(PaymentSerializer(payments, many=True).data)

    @action(detail=True, methods=["get"])
    def audit(self, request, pk=None):
        entries = ledger.for_participant(request.user, payment_id=pk)
        return Response(AuditLogEntrySerializer(entries, many=True).data)


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InvoiceSerializer
    lookup_value_regex = r"\d+"
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return invoices.list_for_user(self.request.user)

    def retrieve(self, request, pk=None):
        invoice = invoices.get_for_user(request.user, pk)
        return Response(InvoiceSerializer(invoice).data)
