from __future__ import annotations

from dataclasses import dataclass

from core.errors import ErrorCode, NotFoundError
from properties.models import Property


@dataclass(frozen=True)
class PropertyTerms:
    """The catalog fields the booking and payment flows depend on."""

    property_id: int
    owner_id: int
    name: str
    nightly_rate_minor: int
    capacity: int


def get_bookable_property(property_id, *, lock: bool = False) -> Property:
    """
    Fetch an active property, optionally taking a row lock for the current transaction.

    The row lock is what serializes concurrent booking writes for one property.
    """
    queryset = Property.objects.filter(pk=property_id, is_active=True)
    if lock:
        queryset = queryset.select_for_update()
    prop = queryset.first()
    if prop is None:
        raise NotFoundError(ErrorCode.PROPERTY_NOT_FOUND, "Property not found.")
    return prop


def terms_for(prop: Property) -> PropertyTerms:
    return PropertyTerms(
        property_id=prop.pk,
        owner_id=prop.owner_id,
        name=prop.name,
        nightly_rate_minor=prop.nightly_rate_minor,
        capacity=prop.capacity,
    )
