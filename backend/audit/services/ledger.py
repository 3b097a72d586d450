from __future__ import annotations

import logging

from django.db.models import QuerySet

from audit.models import AuditLogEntry
from bookings.models import Booking
from core.errors import ErrorCode, NotFoundError, PermissionDeniedError
from payments.models import Payment

logger = logging.getLogger(__name__)

DEFAULT_ACTOR_LIMIT = 50


def append(actor, action: str, details: str = "", *, booking=None, payment=None) -> AuditLogEntry:
    """
    Insert one ledger entry inside the caller's transaction.

    Only store failures propagate; a rollback of the caller's transaction
    discards the entry together with the change it describes.
    """
    if booking is None and payment is not None:
        booking = payment.booking
    entry = AuditLogEntry.objects.create(
        actor=actor,
        action=action,
        details=details,
        booking=booking,
        payment=payment,
    )
    logger.debug("Audit %s booking=%s payment=%s", action, entry.booking_id, entry.payment_id)
    return entry


def by_payment(payment_id) -> QuerySet:
    return AuditLogEntry.objects.filter(payment_id=payment_id).select_related("actor").order_by("created_at", "id")


def by_booking(booking_id) -> QuerySet:
    return AuditLogEntry.objects.filter(booking_id=booking_id).select_related("actor").order_by("created_at", "id")


def by_actor(actor, limit: int = DEFAULT_ACTOR_LIMIT) -> QuerySet:
    return (
        AuditLogEntry.objects.filter(actor=actor)
        .select_related("actor")
        .order_by("-created_at", "-id")[:limit]
    )


def for_participant(user, *, booking_id=None, payment_id=None) -> QuerySet:
    """Return the narrative for a booking or payment the user takes part in."""
    if booking_id is not None:
        booking = Booking.objects.select_related("property").filter(pk=booking_id).first()
        if booking is None:
            raise NotFoundError(ErrorCode.NOT_FOUND, "Booking not found.")
        if user.pk not in (booking.tenant_id, booking.property.owner_id):
            raise PermissionDeniedError()
        return by_booking(booking.pk)

    payment = Payment.objects.filter(pk=payment_id).first()
    if payment is None:
        raise NotFoundError(ErrorCode.NOT_FOUND, "Payment not found.")
    if user.pk not in (payment.payer_id, payment.payee_id):
        raise PermissionDeniedError()
    return by_payment(payment.pk)
