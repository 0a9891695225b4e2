"""
Tests for event authoring and the moderation lifecycle.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from eventhub.core.clock import utcnow
from eventhub.repositories import event_repository
from eventhub.schemas.common import format_datetime

OWNER_ID = 1


def _new_event(**overrides) -> dict:
    payload = {
        "title": "Python meetup",
        "annotation": "Monthly meetup of the local Python user group",
        "description": "Talks about asyncio, packaging and testing followed by pizza.",
        "category": 3,
        "eventDate": format_datetime(utcnow() + timedelta(days=7)),
        "location": {"lat": 59.93, "lon": 30.31},
        "paid": False,
        "participantLimit": 20,
        "requestModeration": True,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client: AsyncClient):
    """New events start PENDING with no confirmed participants."""
    response = await client.post(f"/users/{OWNER_ID}/events", json=_new_event())
    assert response.status_code == 201
    data = response.json()
    assert data["state"] == "PENDING"
    assert data["initiator"] == OWNER_ID
    assert data["confirmedRequests"] == 0
    assert data["participantLimit"] == 20
    assert data["publishedOn"] is None
    assert data["location"] == {"lat": 59.93, "lon": 30.31}


@pytest.mark.asyncio
async def test_create_event_too_soon_returns_400(client: AsyncClient):
    """Owners need at least two hours of lead time."""
    soon = format_datetime(utcnow() + timedelta(hours=1))
    response = await client.post(f"/users/{OWNER_ID}/events", json=_new_event(eventDate=soon))
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_event_bad_date_format_returns_422(client: AsyncClient):
    response = await client.post(
        f"/users/{OWNER_ID}/events", json=_new_event(eventDate="2030-01-01T10:00:00Z")
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_list_and_get_own_events(client: AsyncClient):
    created = await client.post(f"/users/{OWNER_ID}/events", json=_new_event())
    event_id = created.json()["id"]

    listing = await client.get(f"/users/{OWNER_ID}/events")
    assert [e["id"] for e in listing.json()] == [event_id]

    detail = await client.get(f"/users/{OWNER_ID}/events/{event_id}")
    assert detail.status_code == 200

    foreign = await client.get(f"/users/{OWNER_ID + 1}/events/{event_id}")
    assert foreign.status_code == 404


@pytest.mark.asyncio
async def test_admin_publish_then_second_publish_rejected(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/admin/events/{pending_event.id}", json={"stateAction": "PUBLISH_EVENT"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "PUBLISHED"
    assert data["publishedOn"] is not None

    again = await client.patch(
        f"/admin/events/{pending_event.id}", json={"stateAction": "PUBLISH_EVENT"}
    )
    assert again.status_code == 409
    assert again.json()["error"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_admin_reject_cancels_event(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/admin/events/{pending_event.id}", json={"stateAction": "REJECT_EVENT"}
    )
    assert response.status_code == 200
    assert response.json()["state"] == "CANCELED"


@pytest.mark.asyncio
async def test_admin_publish_too_close_to_start(client: AsyncClient, make_event):
    event = await make_event(
        state="PENDING", published_on=None, event_date=utcnow() + timedelta(minutes=30)
    )
    response = await client.patch(
        f"/admin/events/{event.id}", json={"stateAction": "PUBLISH_EVENT"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_cannot_use_owner_actions(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/admin/events/{pending_event.id}", json={"stateAction": "SEND_TO_REVIEW"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_edits_fields_with_publish(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/admin/events/{pending_event.id}",
        json={"stateAction": "PUBLISH_EVENT", "title": "Jazz by the lake", "paid": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Jazz by the lake"
    assert data["paid"] is True
    assert data["state"] == "PUBLISHED"


@pytest.mark.asyncio
async def test_admin_unknown_event_returns_404(client: AsyncClient):
    response = await client.patch("/admin/events/999", json={"stateAction": "PUBLISH_EVENT"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_owner_cancel_and_resend_to_review(client: AsyncClient, pending_event):
    url = f"/users/{OWNER_ID}/events/{pending_event.id}"

    canceled = await client.patch(url, json={"stateAction": "CANCEL_REVIEW"})
    assert canceled.status_code == 200
    assert canceled.json()["state"] == "CANCELED"

    resent = await client.patch(url, json={"stateAction": "SEND_TO_REVIEW"})
    assert resent.status_code == 200
    assert resent.json()["state"] == "PENDING"


@pytest.mark.asyncio
async def test_owner_cannot_change_published_event(client: AsyncClient, published_event):
    response = await client.patch(
        f"/users/{OWNER_ID}/events/{published_event.id}", json={"title": "New title"}
    )
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_non_owner_update_forbidden(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/users/{OWNER_ID + 1}/events/{pending_event.id}", json={"title": "Hijacked"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_cannot_publish(client: AsyncClient, pending_event):
    response = await client.patch(
        f"/users/{OWNER_ID}/events/{pending_event.id}", json={"stateAction": "PUBLISH_EVENT"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_owner_date_lead_time(client: AsyncClient, pending_event):
    soon = format_datetime(utcnow() + timedelta(minutes=90))
    response = await client.patch(
        f"/users/{OWNER_ID}/events/{pending_event.id}", json={"eventDate": soon}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_owner_update_bumps_version(client: AsyncClient, pending_event, db_session):
    response = await client.patch(
        f"/users/{OWNER_ID}/events/{pending_event.id}",
        json={"participantLimit": 50, "requestModeration": False},
    )
    assert response.status_code == 200
    assert response.json()["participantLimit"] == 50
    assert response.json()["requestModeration"] is False

    event = await event_repository.get(db_session, pending_event.id)
    assert event.version == pending_event.version + 1
