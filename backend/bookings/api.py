from django.db.models import Q
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.serializers import AuditLogEntrySerializer
from audit.services import ledger
from bookings.models import Booking
from bookings.serializers import BookingCreateSerializer, BookingSerializer, BookingUpdateSerializer
from bookings.services import bookings as booking_service


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Booking endpoints for tenants and property owners.

    The list shows the caller's own stays, or with ``?role=owner`` the
    bookings made on the caller's properties. A single booking can be read by
    either side.
    """

    serializer_class = BookingSerializer
    lookup_value_regex = r"\d+"
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status"]
    ordering_fields = ["created_at", "check_in"]

    def get_queryset(self):
        user = self.request.user
        if self.action == "list":
            if self.request.query_params.get("role") == "owner":
                return booking_service.list_for_owner(user)
            return booking_service.list_for_tenant(user)
        return (
            Booking.objects.filter(Q(tenant=user) | Q(property__owner=user))
            .select_related("tenant", "property", "property__owner")
            .distinct()
        )

    def create(self, request, *args, **kwargs):
        payload = BookingCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        booking = booking_service.create_booking(
            tenant=request.user,
            property_id=payload.validated_data["property_id"],
            check_in=payload.validated_data["check_in"],
            check_out=payload.validated_data["check_out"],
        )
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = BookingUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        booking = booking_service.update_booking(
            tenant=request.user,
            booking_id=pk,
            check_in=payload.validated_data.get("check_in"),
            check_out=payload.validated_data.get("check_out"),
        )
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        booking_service.cancel_booking(actor=request.user, booking_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def audit(self, request, pk=None):
        entries = ledger.for_participant(request.user, booking_id=pk)
        return Response(AuditLogEntrySerializer(entries, many=True).data)
