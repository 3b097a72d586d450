"""
Booking Manager.

Creates, reschedules and cancels bookings while keeping the no-overlap
invariant: among PENDING and CONFIRMED bookings of one property, no two
``[check_in, check_out)`` intervals intersect.

Every write that depends on the overlap check runs inside one transaction
that first locks the property row, so two requests for the same property
cannot both pass the check before either inserts.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.utils import timezone

from audit.models import AuditLogEntry
from audit.services import ledger
from bookings.models import Booking
from core.errors import ConflictError, ErrorCode, NotFoundError, StateError, ValidationFailed
from payments.models import Payment
from properties.catalog import get_bookable_property

logger = logging.getLogger(__name__)


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open overlap test: a check-out day may be another stay's check-in day."""
    return a_start < b_end and b_start < a_end


def validate_stay_dates(check_in: Optional[date], check_out: Optional[date], *, today: Optional[date] = None) -> None:
    if check_in is None or check_out is None:
        raise ValidationFailed(message="Check-in and check-out dates are required.")
    if check_in >= check_out:
        raise ValidationFailed(message="Check-out date must be after check-in date.")
    today = today or timezone.localdate()
    if check_in < today:
        raise ValidationFailed(message="Check-in date cannot be in the past.")


def find_conflict(property_id, check_in: date, check_out: date, *, exclude_id=None) -> Optional[Booking]:
    active = Booking.objects.filter(property_id=property_id, status__in=Booking.ACTIVE_STATUSES)
    if exclude_id is not None:
        active = active.exclude(pk=exclude_id)
    for other in active.only("id", "check_in", "check_out").order_by("check_in"):
        if intervals_overlap(check_in, check_out, other.check_in, other.check_out):
            return other
    return None


def _raise_conflict(conflict: Booking):
    logger.info("Booking conflict with booking %s on property %s", conflict.pk, conflict.property_id)
    raise ConflictError(ErrorCode.BOOKING_CONFLICT, "Property is not available for the selected dates.")


def create_booking(*, tenant, property_id, check_in: date, check_out: date) -> Booking:
    validate_stay_dates(check_in, check_out)

    with transaction.atomic():
        prop = get_bookable_property(property_id, lock=True)
        conflict = find_conflict(prop.pk, check_in, check_out)
        if conflict is not None:
            _raise_conflict(conflict)

        booking = Booking.objects.create(
            tenant=tenant,
            property=prop,
            check_in=check_in,
            check_out=check_out,
            status=Booking.PENDING,
        )
        ledger.append(
            tenant,
            AuditLogEntry.BOOKING_CREATED,
            f"Booking created for property {prop.pk} from {check_in:%Y-%m-%d} to {check_out:%Y-%m-%d}",
            booking=booking,
        )

    logger.info("Booking %s created for property %s by tenant %s", booking.pk, prop.pk, tenant.pk)
    return booking


def _rescheduled_dates(booking: Booking, check_in: Optional[date], check_out: Optional[date]):
    """
    Merge a partial date change into the stored stay and validate the result.

    Returns ``None`` when nothing changes. An unchanged check-in that already
    lies in the past is accepted, so a stay can still be extended.
    """
    new_check_in = check_in or booking.check_in
    new_check_out = check_out or booking.check_out
    if (new_check_in, new_check_out) == (booking.check_in, booking.check_out):
        return None
    validate_stay_dates(
        new_check_in,
        new_check_out,
        today=None if new_check_in != booking.check_in else min(booking.check_in, timezone.localdate()),
    )
    return new_check_in, new_check_out


def update_booking(*, tenant, booking_id, check_in: Optional[date] = None, check_out: Optional[date] = None) -> Booking:
    if check_in is not None and check_out is not None and check_in >= check_out:
        raise ValidationFailed(message="Check-out date must be after check-in date.")

    def _owned_pending():
        return Booking.objects.filter(pk=booking_id, tenant=tenant, status=Booking.PENDING)

    # Partial changes are validated against the stored stay before any lock is taken.
    current = _owned_pending().only("id", "property_id", "check_in", "check_out").first()
    if current is None:
        raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found or you do not own it.")
    _rescheduled_dates(current, check_in, check_out)

    with transaction.atomic():
        get_bookable_property(current.property_id, lock=True)
        booking = _owned_pending().select_for_update().first()
        if booking is None:
            raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found or you do not own it.")

        new_dates = _rescheduled_dates(booking, check_in, check_out)
        if new_dates is None:
            return booking
        new_check_in, new_check_out = new_dates

        if Payment.objects.filter(booking=booking).exclude(status=Payment.REJECTED).exists():
            raise ConflictError(
                ErrorCode.PAYMENT_EXISTS,
                "Dates cannot change once a payment has been initiated for this booking.",
            )
        conflict = find_conflict(booking.property_id, new_check_in, new_check_out, exclude_id=booking.pk)
        if conflict is not None:
            _raise_conflict(conflict)

        old_range = f"{booking.check_in:%Y-%m-%d} to {booking.check_out:%Y-%m-%d}"
        booking.check_in = new_check_in
        booking.check_out = new_check_out
        booking.save(update_fields=["check_in", "check_out", "updated_at"])
        ledger.append(
            tenant,
            AuditLogEntry.BOOKING_UPDATED,
            f"Booking {booking.pk} dates changed from {old_range} to "
            f"{new_check_in:%Y-%m-%d} to {new_check_out:%Y-%m-%d}",
            booking=booking,
        )

    logger.info("Booking %s rescheduled by tenant %s", booking.pk, tenant.pk)
    return booking


def _transition(actor, booking: Booking, from_statuses, to_status: str) -> Booking:
    """Compare-and-swap the booking status and record the change."""
    if booking.status not in from_statuses:
        raise StateError(
            ErrorCode.INVALID_STATE,
            f"Booking cannot move from {booking.status} to {to_status}.",
        )
    old_status = booking.status
    updated = Booking.objects.filter(pk=booking.pk, status=old_status).update(
        status=to_status,
        updated_at=timezone.now(),
    )
    if not updated:
        booking.refresh_from_db(fields=["status"])
        raise StateError(
            ErrorCode.INVALID_STATE,
            f"Booking changed concurrently; current status is {booking.status}.",
        )
    booking.refresh_from_db()
    ledger.append(
        actor,
        AuditLogEntry.BOOKING_STATUS_CHANGED,
        f"Booking {booking.pk} status changed from {old_status} to {to_status}",
        booking=booking,
    )
    return booking


def cancel_booking(*, actor, booking_id) -> None:
    with transaction.atomic():
        booking = Booking.objects.select_related("property").filter(pk=booking_id).first()
        if booking is None or actor.pk not in (booking.tenant_id, booking.property.owner_id):
            raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found or cannot be cancelled.")
        _transition(actor, booking, Booking.CANCELLABLE_STATUSES, Booking.CANCELLED)
    logger.info("Booking %s cancelled by user %s", booking_id, actor.pk)


def transition_to_confirmed(*, actor, booking_id) -> Booking:
    """
    Flip a PENDING booking to CONFIRMED.

    Only the payment verification flow calls this, from inside its transaction.
    """
    booking = Booking.objects.filter(pk=booking_id).first()
    if booking is None:
        raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found.")
    return _transition(actor, booking, (Booking.PENDING,), Booking.CONFIRMED)


def mark_completed(*, actor, booking_id) -> Booking:
    """Close out a CONFIRMED stay once its check-out date has passed."""
    with transaction.atomic():
        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found.")
        if booking.check_out > timezone.localdate():
            raise StateError(ErrorCode.INVALID_STATE, "Booking cannot be completed before check-out.")
        return _transition(actor, booking, (Booking.CONFIRMED,), Booking.COMPLETED)


def list_for_tenant(tenant, status: Optional[str] = None):
    queryset = Booking.objects.filter(tenant=tenant).select_related("property", "property__owner")
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by("-created_at", "-id")


def list_for_owner(owner, status: Optional[str] = None):
    """Bookings across every property the owner lists, newest first."""
    queryset = Booking.objects.filter(property__owner=owner).select_related("tenant", "property", "property__owner")
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by("-created_at", "-id")
