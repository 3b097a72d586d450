from datetime import date, timedelta

import pytest
from django.db import connection
from django.utils import timezone

from audit.models import AuditLogEntry
from audit.services import ledger
from bookings.models import Booking
from bookings.services import bookings as booking_service
from core.errors import (
    ConflictError,
    ErrorCode,
    ImmutableRecordError,
    NotFoundError,
    StateError,
    ValidationFailed,
)
from payments.services import lifecycle


def _book(tenant, prop, check_in, check_out):
    return booking_service.create_booking(
        tenant=tenant,
        property_id=prop.pk,
        check_in=check_in,
        check_out=check_out,
    )


def _feb(day):
    return date(2024, 2, day)


def test_intervals_overlap_is_half_open():
    assert booking_service.intervals_overlap(_feb(1), _feb(3), _feb(2), _feb(4))
    assert booking_service.intervals_overlap(_feb(2), _feb(4), _feb(1), _feb(3))
    assert booking_service.intervals_overlap(_feb(1), _feb(10), _feb(3), _feb(4))
    assert not booking_service.intervals_overlap(_feb(1), _feb(3), _feb(3), _feb(5))
    assert not booking_service.intervals_overlap(_feb(3), _feb(5), _feb(1), _feb(3))


@pytest.mark.django_db
def test_create_booking_starts_pending_and_is_audited(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    assert booking.status == Booking.PENDING
    assert booking.nights == 2
    entries = list(ledger.by_booking(booking.pk))
    assert [entry.action for entry in entries] == [AuditLogEntry.BOOKING_CREATED]
    assert entries[0].actor == tenant


@pytest.mark.django_db
def test_overlapping_booking_is_rejected(frozen_today, tenant, other_tenant, pg_property):
    _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    with pytest.raises(ConflictError) as excinfo:
        _book(other_tenant, pg_property, date(2024, 2, 2), date(2024, 2, 4))

    assert excinfo.value.code == ErrorCode.BOOKING_CONFLICT
    assert Booking.objects.filter(property=pg_property).count() == 1


@pytest.mark.django_db
def test_same_day_turnover_is_allowed(frozen_today, tenant, other_tenant, pg_property):
    _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    second = _book(other_tenant, pg_property, date(2024, 2, 3), date(2024, 2, 5))

    assert second.status == Booking.PENDING


@pytest.mark.django_db
def test_cancelled_booking_frees_the_dates(frozen_today, tenant, other_tenant, pg_property):
    first = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    booking_service.cancel_booking(actor=tenant, booking_id=first.pk)

    second = _book(other_tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    assert second.status == Booking.PENDING


@pytest.mark.django_db
def test_no_two_active_bookings_overlap(frozen_today, tenant, pg_property):
    start = date(2024, 2, 1)
    requested = [(0, 3), (2, 4), (3, 5), (4, 9), (5, 6), (9, 10), (1, 2), (8, 12)]
    for offset, end in requested:
        try:
            _book(tenant, pg_property, start + timedelta(days=offset), start + timedelta(days=end))
        except ConflictError:
            pass

    active = list(Booking.objects.filter(property=pg_property, status__in=Booking.ACTIVE_STATUSES))
    assert len(active) == 4
    for index, left in enumerate(active):
        for right in active[index + 1:]:
            assert not booking_service.intervals_overlap(
                left.check_in, left.check_out, right.check_in, right.check_out
            )


@pytest.mark.django_db
@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (date(2024, 2, 3), date(2024, 2, 3)),
        (date(2024, 2, 5), date(2024, 2, 3)),
        (date(2024, 1, 10), date(2024, 1, 20)),
    ],
)
def test_invalid_dates_are_rejected(frozen_today, tenant, pg_property, check_in, check_out):
    with pytest.raises(ValidationFailed) as excinfo:
        _book(tenant, pg_property, check_in, check_out)

    assert excinfo.value.code == ErrorCode.VALIDATION_ERROR
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_unknown_property_is_reported(frozen_today, tenant):
    with pytest.raises(NotFoundError) as excinfo:
        booking_service.create_booking(
            tenant=tenant,
            property_id=999,
            check_in=date(2024, 2, 1),
            check_out=date(2024, 2, 3),
        )

    assert excinfo.value.code == ErrorCode.PROPERTY_NOT_FOUND


@pytest.mark.django_db
def test_update_booking_moves_dates_and_records_change(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    updated = booking_service.update_booking(
        tenant=tenant,
        booking_id=booking.pk,
        check_out=date(2024, 2, 5),
    )

    assert updated.check_out == date(2024, 2, 5)
    last = list(ledger.by_booking(booking.pk))[-1]
    assert last.action == AuditLogEntry.BOOKING_UPDATED
    assert "2024-02-01 to 2024-02-03" in last.details
    assert "2024-02-01 to 2024-02-05" in last.details


@pytest.mark.django_db
def test_update_booking_ignores_its_own_interval(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 5))

    updated = booking_service.update_booking(tenant=tenant, booking_id=booking.pk, check_in=date(2024, 2, 2))

    assert updated.check_in == date(2024, 2, 2)


@pytest.mark.django_db
def test_update_booking_conflicts_with_neighbour(frozen_today, tenant, other_tenant, pg_property):
    _book(other_tenant, pg_property, date(2024, 2, 5), date(2024, 2, 7))
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    with pytest.raises(ConflictError) as excinfo:
        booking_service.update_booking(tenant=tenant, booking_id=booking.pk, check_out=date(2024, 2, 6))

    assert excinfo.value.code == ErrorCode.BOOKING_CONFLICT
    booking.refresh_from_db()
    assert booking.check_out == date(2024, 2, 3)


@pytest.mark.django_db
def test_update_booking_by_someone_else_is_not_found(frozen_today, tenant, other_tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    with pytest.raises(NotFoundError) as excinfo:
        booking_service.update_booking(tenant=other_tenant, booking_id=booking.pk, check_out=date(2024, 2, 4))

    assert excinfo.value.code == ErrorCode.BOOKING_NOT_FOUND


@pytest.mark.django_db
def test_update_booking_blocked_once_payment_started(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    lifecycle.create_payment(tenant=tenant, booking_id=booking.pk)

    with pytest.raises(ConflictError) as excinfo:
        booking_service.update_booking(tenant=tenant, booking_id=booking.pk, check_out=date(2024, 2, 4))

    assert excinfo.value.code == ErrorCode.PAYMENT_EXISTS


@pytest.mark.django_db
def test_owner_can_cancel_and_status_change_is_audited(frozen_today, tenant, owner, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    booking_service.cancel_booking(actor=owner, booking_id=booking.pk)

    booking.refresh_from_db()
    assert booking.status == Booking.CANCELLED
    last = list(ledger.by_booking(booking.pk))[-1]
    assert last.action == AuditLogEntry.BOOKING_STATUS_CHANGED
    assert last.actor == owner
    assert "PENDING to CANCELLED" in last.details


@pytest.mark.django_db
def test_cancel_by_non_participant_is_not_found(frozen_today, tenant, outsider, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    with pytest.raises(NotFoundError) as excinfo:
        booking_service.cancel_booking(actor=outsider, booking_id=booking.pk)

    assert excinfo.value.code == ErrorCode.BOOKING_NOT_FOUND


@pytest.mark.django_db
def test_cancel_twice_is_invalid_state(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    booking_service.cancel_booking(actor=tenant, booking_id=booking.pk)

    with pytest.raises(StateError) as excinfo:
        booking_service.cancel_booking(actor=tenant, booking_id=booking.pk)

    assert excinfo.value.code == ErrorCode.INVALID_STATE


@pytest.mark.django_db
def test_transition_to_confirmed_only_from_pending(frozen_today, tenant, owner, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    confirmed = booking_service.transition_to_confirmed(actor=owner, booking_id=booking.pk)
    assert confirmed.status == Booking.CONFIRMED

    with pytest.raises(StateError):
        booking_service.transition_to_confirmed(actor=owner, booking_id=booking.pk)


@pytest.mark.django_db
def test_mark_completed_after_checkout(monkeypatch, frozen_today, tenant, owner, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    booking_service.transition_to_confirmed(actor=owner, booking_id=booking.pk)

    with pytest.raises(StateError):
        booking_service.mark_completed(actor=owner, booking_id=booking.pk)

    monkeypatch.setattr(timezone, "localdate", lambda *args, **kwargs: date(2024, 2, 3))
    completed = booking_service.mark_completed(actor=owner, booking_id=booking.pk)

    assert completed.status == Booking.COMPLETED


@pytest.mark.django_db
def test_bookings_are_never_deleted(frozen_today, tenant, pg_property):
    booking = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))

    with pytest.raises(ImmutableRecordError):
        booking.delete()


@pytest.mark.django_db
def test_list_for_tenant_is_newest_first(frozen_today, tenant, other_tenant, pg_property):
    first = _book(tenant, pg_property, date(2024, 2, 1), date(2024, 2, 3))
    second = _book(tenant, pg_property, date(2024, 3, 1), date(2024, 3, 3))
    _book(other_tenant, pg_property, date(2024, 4, 1), date(2024, 4, 3))

    assert list(booking_service.list_for_tenant(tenant)) == [second, first]
    assert list(booking_service.list_for_tenant(tenant, status=Booking.CANCELLED)) == []


@pytest.fixture
def lock_trace(monkeypatch):
    """Record the property lock and overlap check with the transaction depth at which each ran."""
    trace = []
    real_lock = booking_service.get_bookable_property
    real_find = booking_service.find_conflict

    def locking(property_id, *, lock=False):
        trace.append(("lock" if lock else "read", len(connection.atomic_blocks)))
        return real_lock(property_id, lock=lock)

    def finding(*args, **kwargs):
        trace.append(("overlap_check", len(connection.atomic_blocks)))
        return real_find(*args, **kwargs)

    monkeypatch.setattr(booking_service, "get_bookable_property", locking)
    monkeypatch.setattr(booking_service, "find_conflict", finding)
    return trace


@pytest.mark.django_db
def test_create_booking_checks_overlap_under_property_lock(frozen_today, tenant, pg_property, lock_trace):
    outer_depth = len(connection.atomic_blocks)

    _book(tenant, pg_property, _feb(1), _feb(3))

    assert [step for step, _ in lock_trace] == ["lock", "overlap_check"]
    assert all(depth > outer_depth for _, depth in lock_trace)
    assert lock_trace[0][1] == lock_trace[1][1]


@pytest.mark.django_db
def test_update_booking_checks_overlap_under_property_lock(frozen_today, tenant, pg_property, lock_trace):
    booking = _book(tenant, pg_property, _feb(1), _feb(3))
    del lock_trace[:]
    outer_depth = len(connection.atomic_blocks)

    booking_service.update_booking(tenant=tenant, booking_id=booking.pk, check_out=_feb(4))

    assert [step for step, _ in lock_trace] == ["lock", "overlap_check"]
    assert all(depth > outer_depth for _, depth in lock_trace)


@pytest.mark.django_db
@pytest.mark.parametrize(
    "change",
    [
        {"check_in": date(2024, 2, 3)},
        {"check_in": date(2024, 2, 9)},
        {"check_out": date(2024, 2, 1)},
        {"check_in": date(2024, 1, 10)},
    ],
)
def test_invalid_partial_update_is_rejected_before_locking(frozen_today, tenant, pg_property, lock_trace, change):
    booking = _book(tenant, pg_property, _feb(1), _feb(3))
    del lock_trace[:]

    with pytest.raises(ValidationFailed):
        booking_service.update_booking(tenant=tenant, booking_id=booking.pk, **change)

    assert lock_trace == []
    booking.refresh_from_db()
    assert (booking.check_in, booking.check_out) == (_feb(1), _feb(3))


@pytest.mark.django_db
def test_list_for_owner_covers_owned_properties(frozen_today, tenant, other_tenant, owner, outsider, pg_property):
    first = _book(tenant, pg_property, _feb(1), _feb(3))
    second = _book(other_tenant, pg_property, _feb(5), _feb(7))
    booking_service.cancel_booking(actor=tenant, booking_id=first.pk)

    assert list(booking_service.list_for_owner(owner)) == [second, first]
    assert list(booking_service.list_for_owner(owner, status=Booking.CANCELLED)) == [first]
    assert list(booking_service.list_for_owner(outsider)) == []
