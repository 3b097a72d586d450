from datetime import timedelta

import pytest
from rest_framework_simplejwt.tokens import RefreshToken

from audit.models import AuditLogEntry
from bookings.models import Booking


def _create(client, prop, check_in, check_out):
    return client.post(
        "/api/bookings/",
        {
            "property_id": prop.pk,
            "check_in": check_in.isoformat(),
            "check_out": check_out.isoformat(),
        },
        format="json",
    )


@pytest.mark.django_db
def test_tenant_creates_and_lists_bookings(api_client, tenant, pg_property, stay_dates):
    api_client.force_authenticate(tenant)
    response = _create(api_client, pg_property, *stay_dates)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == Booking.PENDING
    assert body["nights"] == 2
    assert body["nightly_rate"] == "100.00"
    assert body["tenant"]["email"] == tenant.email

    listing = api_client.get("/api/bookings/")
    assert listing.status_code == 200
    assert [item["id"] for item in listing.json()] == [body["id"]]


@pytest.mark.django_db
def test_overlap_returns_conflict_code(api_client, tenant, other_tenant, pg_property, stay_dates):
    check_in, check_out = stay_dates
    api_client.force_authenticate(tenant)
    assert _create(api_client, pg_property, check_in, check_out).status_code == 201

    api_client.force_authenticate(other_tenant)
    response = _create(api_client, pg_property, check_in + timedelta(days=1), check_out + timedelta(days=1))

    assert response.status_code == 409
    assert response.json()["code"] == "BOOKING_CONFLICT"


@pytest.mark.django_db
def test_bad_payload_is_validation_error(api_client, tenant, pg_property, stay_dates):
    check_in, _ = stay_dates
    api_client.force_authenticate(tenant)

    response = _create(api_client, pg_property, check_in, check_in)

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_missing_property_returns_not_found_code(api_client, tenant, pg_property, stay_dates):
    api_client.force_authenticate(tenant)
    pg_property.is_active = False
    pg_property.save(update_fields=["is_active"])

    response = _create(api_client, pg_property, *stay_dates)

    assert response.status_code == 404
    assert response.json()["code"] == "PROPERTY_NOT_FOUND"


@pytest.mark.django_db
def test_patch_changes_dates(api_client, tenant, pg_property, stay_dates):
    check_in, check_out = stay_dates
    api_client.force_authenticate(tenant)
    booking_id = _create(api_client, pg_property, check_in, check_out).json()["id"]

    response = api_client.patch(
        f"/api/bookings/{booking_id}/",
        {"check_out": (check_out + timedelta(days=3)).isoformat()},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["nights"] == 5


@pytest.mark.django_db
def test_cancel_returns_no_content(api_client, tenant, owner, pg_property, stay_dates):
    api_client.force_authenticate(tenant)
    booking_id = _create(api_client, pg_property, *stay_dates).json()["id"]

    api_client.force_authenticate(owner)
    response = api_client.post(f"/api/bookings/{booking_id}/cancel/")

    assert response.status_code == 204
    assert Booking.objects.get(pk=booking_id).status == Booking.CANCELLED

    again = api_client.post(f"/api/bookings/{booking_id}/cancel/")
    assert again.status_code == 409
    assert again.json()["code"] == "INVALID_STATE"


@pytest.mark.django_db
def test_owner_can_read_booking_but_outsider_cannot(api_client, tenant, owner, outsider, pg_property, stay_dates):
    api_client.force_authenticate(tenant)
    booking_id = _create(api_client, pg_property, *stay_dates).json()["id"]

    api_client.force_authenticate(owner)
    assert api_client.get(f"/api/bookings/{booking_id}/").status_code == 200

    api_client.force_authenticate(outsider)
    response = api_client.get(f"/api/bookings/{booking_id}/")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.django_db
def test_booking_audit_requires_participant(api_client, tenant, owner, outsider, pg_property, stay_dates):
    api_client.force_authenticate(tenant)
    booking_id = _create(api_client, pg_property, *stay_dates).json()["id"]

    response = api_client.get(f"/api/bookings/{booking_id}/audit/")
    assert response.status_code == 200
    assert [entry["action"] for entry in response.json()] == [AuditLogEntry.BOOKING_CREATED]

    api_client.force_authenticate(owner)
    assert api_client.get(f"/api/bookings/{booking_id}/audit/").status_code == 200

    api_client.force_authenticate(outsider)
    forbidden = api_client.get(f"/api/bookings/{booking_id}/audit/")
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "FORBIDDEN"

    missing = api_client.get("/api/bookings/9999/audit/")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


@pytest.mark.django_db
def test_bearer_token_authenticates(api_client, tenant):
    token = RefreshToken.for_user(tenant).access_token
    api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    assert api_client.get("/api/bookings/").status_code == 200


@pytest.mark.django_db
def test_anonymous_requests_are_rejected(api_client):
    assert api_client.get("/api/bookings/").status_code == 401


@pytest.mark.django_db
def test_owner_lists_bookings_on_their_properties(api_client, tenant, other_tenant, owner, pg_property, stay_dates):
    check_in, check_out = stay_dates
    api_client.force_authenticate(tenant)
    first_id = _create(api_client, pg_property, check_in, check_out).json()["id"]
    api_client.force_authenticate(other_tenant)
    second_id = _create(api_client, pg_property, check_out, check_out + timedelta(days=1)).json()["id"]
    api_client.post(f"/api/bookings/{second_id}/cancel/")

    api_client.force_authenticate(owner)
    assert api_client.get("/api/bookings/").json() == []
    owned = api_client.get("/api/bookings/?role=owner")
    assert owned.status_code == 200
    assert [item["id"] for item in owned.json()] == [second_id, first_id]
    cancelled = api_client.get("/api/bookings/?role=owner&status=CANCELLED")
    assert [item["id"] for item in cancelled.json()] == [second_id]

    api_client.force_authenticate(tenant)
    assert api_client.get("/api/bookings/?role=owner").json() == []
