"""
Tests for submitting, listing and cancelling participation requests.
"""

import pytest
from httpx import AsyncClient

from eventhub.models.participation_request import RequestStatus

OWNER_ID = 1
REQUESTER_ID = 42


async def _submit(client: AsyncClient, event_id: int, user_id: int = REQUESTER_ID):
    return await client.post(f"/users/{user_id}/requests", params={"eventId": event_id})


async def _confirmed_count(client: AsyncClient, event_id: int) -> int:
    response = await client.get(f"/users/{OWNER_ID}/events/{event_id}")
    return response.json()["confirmedRequests"]


@pytest.mark.asyncio
async def test_submit_moderated_request_is_pending(client: AsyncClient, published_event):
    response = await _submit(client, published_event.id)
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["event"] == published_event.id
    assert data["requester"] == REQUESTER_ID
    assert await _confirmed_count(client, published_event.id) == 0


@pytest.mark.asyncio
async def test_submit_without_moderation_auto_confirms(client: AsyncClient, make_event):
    event = await make_event(request_moderation=False, participant_limit=5)
    response = await _submit(client, event.id)
    assert response.status_code == 201
    assert response.json()["status"] == "CONFIRMED"
    assert await _confirmed_count(client, event.id) == 1


@pytest.mark.asyncio
async def test_submit_unlimited_event_auto_confirms(client: AsyncClient, make_event):
    event = await make_event(participant_limit=0)
    response = await _submit(client, event.id)
    assert response.json()["status"] == "CONFIRMED"
    assert await _confirmed_count(client, event.id) == 1


@pytest.mark.asyncio
async def test_submit_own_event_returns_409(client: AsyncClient, published_event):
    response = await _submit(client, published_event.id, user_id=OWNER_ID)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_duplicate_submit_returns_409(client: AsyncClient, published_event):
    assert (await _submit(client, published_event.id)).status_code == 201
    response = await _submit(client, published_event.id)
    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_submit_unpublished_returns_409(client: AsyncClient, pending_event):
    response = await _submit(client, pending_event.id)
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE"


@pytest.mark.asyncio
async def test_submit_full_event_returns_409(client: AsyncClient, make_event):
    event = await make_event(participant_limit=1, confirmed_requests=1)
    response = await _submit(client, event.id)
    assert response.status_code == 409
    assert response.json()["error"] == "CAPACITY_EXCEEDED"


@pytest.mark.asyncio
async def test_submit_unknown_event_returns_404(client: AsyncClient):
    response = await _submit(client, 999)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_own_requests(client: AsyncClient, make_event):
    first = await make_event()
    second = await make_event()
    await _submit(client, first.id)
    await _submit(client, second.id)

    response = await client.get(f"/users/{REQUESTER_ID}/requests")
    assert response.status_code == 200
    assert sorted(r["event"] for r in response.json()) == [first.id, second.id]


@pytest.mark.asyncio
async def test_cancel_pending_request(client: AsyncClient, published_event):
    request_id = (await _submit(client, published_event.id)).json()["id"]

    response = await client.patch(f"/users/{REQUESTER_ID}/requests/{request_id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELED"


@pytest.mark.asyncio
async def test_cancel_confirmed_request_releases_seat(client: AsyncClient, make_event):
    event = await make_event(request_moderation=False, participant_limit=1)
    request_id = (await _submit(client, event.id)).json()["id"]
    assert await _confirmed_count(client, event.id) == 1

    response = await client.patch(f"/users/{REQUESTER_ID}/requests/{request_id}/cancel")
    assert response.status_code == 200
    assert await _confirmed_count(client, event.id) == 0

    # the freed seat can be taken by someone else
    other = await _submit(client, event.id, user_id=REQUESTER_ID + 1)
    assert other.json()["status"] == "CONFIRMED"


@pytest.mark.asyncio
async def test_cancel_twice_is_noop(client: AsyncClient, published_event):
    request_id = (await _submit(client, published_event.id)).json()["id"]
    url = f"/users/{REQUESTER_ID}/requests/{request_id}/cancel"

    assert (await client.patch(url)).status_code == 200
    again = await client.patch(url)
    assert again.status_code == 200
    assert again.json()["status"] == "CANCELED"


@pytest.mark.asyncio
async def test_cancel_rejected_request_returns_409(client: AsyncClient, published_event, make_requests):
    [request] = await make_requests(
        published_event, 1, status=RequestStatus.REJECTED, first_requester=REQUESTER_ID
    )
    response = await client.patch(f"/users/{REQUESTER_ID}/requests/{request.id}/cancel")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_foreign_request_returns_404(client: AsyncClient, published_event):
    request_id = (await _submit(client, published_event.id)).json()["id"]
    response = await client.patch(f"/users/{REQUESTER_ID + 1}/requests/{request_id}/cancel")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_owner_lists_event_requests(client: AsyncClient, published_event):
    await _submit(client, published_event.id)

    response = await client.get(f"/users/{OWNER_ID}/events/{published_event.id}/requests")
    assert response.status_code == 200
    assert [r["requester"] for r in response.json()] == [REQUESTER_ID]

    forbidden = await client.get(f"/users/{REQUESTER_ID}/events/{published_event.id}/requests")
    assert forbidden.status_code == 403
