"""
Tests for public and admin event search, view decoration and ratings.
"""

from datetime import timedelta

import httpx
import pytest
from httpx import AsyncClient

from eventhub.core.clock import utcnow
from eventhub.schemas.common import format_datetime
from eventhub.schemas.event import PublicSearchParams, SortOption
from eventhub.services import rating_service, search_service
from eventhub.services.stats_client import StatsClient

OWNER_ID = 1
VISITOR_ID = 7


async def _view(client: AsyncClient, event_id: int, times: int = 1):
    for _ in range(times):
        response = await client.get(f"/events/{event_id}")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_public_detail_records_hit(client: AsyncClient, published_event):
    await _view(client, published_event.id)
    await _view(client, published_event.id)

    response = await client.get(f"/events/{published_event.id}")
    assert response.json()["views"] == 2


@pytest.mark.asyncio
async def test_unpublished_event_hidden(client: AsyncClient, pending_event):
    response = await client.get(f"/events/{pending_event.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_defaults_to_event_date_order(client: AsyncClient, make_event, pending_event):
    later = await make_event(event_date=utcnow() + timedelta(days=20))
    sooner = await make_event(event_date=utcnow() + timedelta(days=3))
    await make_event(event_date=utcnow() - timedelta(days=1))  # already past

    response = await client.get("/events")
    assert response.status_code == 200
    assert [e["id"] for e in response.json()] == [sooner.id, later.id]


@pytest.mark.asyncio
async def test_search_sorted_by_views(client: AsyncClient, make_event):
    quiet = await make_event(event_date=utcnow() + timedelta(days=1))
    popular = await make_event(event_date=utcnow() + timedelta(days=5))
    medium = await make_event(event_date=utcnow() + timedelta(days=3))
    await _view(client, popular.id, times=3)
    await _view(client, medium.id, times=1)

    response = await client.get("/events", params={"sort": "VIEWS"})
    data = response.json()
    assert [e["id"] for e in data] == [popular.id, medium.id, quiet.id]
    assert [e["views"] for e in data] == [3, 1, 0]


@pytest.mark.asyncio
async def test_search_views_paging(client: AsyncClient, make_event):
    events = [await make_event(event_date=utcnow() + timedelta(days=i + 1)) for i in range(3)]
    await _view(client, events[2].id, times=2)

    response = await client.get("/events", params={"sort": "VIEWS", "from": 1, "size": 1})
    assert [e["id"] for e in response.json()] == [events[0].id]


@pytest.mark.asyncio
async def test_search_filters(client: AsyncClient, make_event):
    match = await make_event(
        annotation="Outdoor YOGA session for beginners", category_id=2, paid=True
    )
    await make_event(annotation="Chess tournament for all ages", category_id=2, paid=True)
    await make_event(annotation="Yoga retreat in the mountains", category_id=3, paid=True)
    await make_event(annotation="Free yoga class in the park", category_id=2, paid=False)

    response = await client.get(
        "/events", params={"text": "yoga", "categories": [2], "paid": "true"}
    )
    assert [e["id"] for e in response.json()] == [match.id]


@pytest.mark.asyncio
async def test_search_only_available(client: AsyncClient, make_event):
    full = await make_event(participant_limit=2, confirmed_requests=2)
    open_event = await make_event(participant_limit=2, confirmed_requests=1)
    unlimited = await make_event(participant_limit=0, confirmed_requests=50)

    response = await client.get("/events", params={"onlyAvailable": "true"})
    ids = {e["id"] for e in response.json()}
    assert ids == {open_event.id, unlimited.id}
    assert full.id not in ids


@pytest.mark.asyncio
async def test_search_date_range(client: AsyncClient, make_event):
    inside = await make_event(event_date=utcnow() + timedelta(days=5))
    await make_event(event_date=utcnow() + timedelta(days=15))

    response = await client.get(
        "/events",
        params={
            "rangeStart": format_datetime(utcnow()),
            "rangeEnd": format_datetime(utcnow() + timedelta(days=10)),
        },
    )
    assert [e["id"] for e in response.json()] == [inside.id]


@pytest.mark.asyncio
async def test_search_inverted_range_returns_400(client: AsyncClient):
    response = await client.get(
        "/events",
        params={
            "rangeStart": format_datetime(utcnow() + timedelta(days=10)),
            "rangeEnd": format_datetime(utcnow()),
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_rating_sort_and_decoration(client: AsyncClient, make_event):
    liked = await make_event(event_date=utcnow() + timedelta(days=9))
    disliked = await make_event(event_date=utcnow() + timedelta(days=1))
    neutral = await make_event(event_date=utcnow() + timedelta(days=5))

    assert (await client.patch(f"/users/{VISITOR_ID}/events/{liked.id}/like")).status_code == 200
    assert (await client.patch(f"/users/{VISITOR_ID + 1}/events/{liked.id}/like")).status_code == 200
    assert (await client.patch(f"/users/{VISITOR_ID}/events/{disliked.id}/dislike")).status_code == 200

    response = await client.get("/events", params={"sort": "RATING"})
    data = response.json()
    assert [e["id"] for e in data] == [liked.id, neutral.id, disliked.id]
    assert [e["rating"] for e in data] == [2, 0, -1]


@pytest.mark.asyncio
async def test_rating_rules(client: AsyncClient, published_event, pending_event):
    url = f"/users/{VISITOR_ID}/events/{published_event.id}"

    assert (await client.patch(f"{url}/like")).json()["rating"] == 1
    assert (await client.patch(f"{url}/like")).status_code == 409
    # switching sides replaces the earlier mark
    assert (await client.patch(f"{url}/dislike")).json()["rating"] == -1

    assert (await client.delete(f"{url}/like")).status_code == 404
    assert (await client.delete(f"{url}/dislike")).status_code == 204

    own = await client.patch(f"/users/{OWNER_ID}/events/{published_event.id}/like")
    assert own.status_code == 409

    unpublished = await client.patch(f"/users/{VISITOR_ID}/events/{pending_event.id}/like")
    assert unpublished.status_code == 404


@pytest.mark.asyncio
async def test_racing_first_rate_returns_409(client: AsyncClient, published_event, monkeypatch):
    url = f"/users/{VISITOR_ID}/events/{published_event.id}/like"
    assert (await client.patch(url)).status_code == 200

    # a concurrent first rate that missed the existing row
    async def _no_rate(db, event_id, user_id):
        return None

    monkeypatch.setattr(rating_service, "_find_rate", _no_rate)
    response = await client.patch(url)
    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_admin_search(client: AsyncClient, make_event, pending_event):
    published = await make_event(owner_id=5, category_id=4)

    response = await client.get("/admin/events", params={"states": ["PENDING"]})
    assert [e["id"] for e in response.json()] == [pending_event.id]

    response = await client.get("/admin/events", params={"users": [5], "categories": [4]})
    data = response.json()
    assert [e["id"] for e in data] == [published.id]
    assert data[0]["state"] == "PUBLISHED"
    assert data[0]["views"] == 0


@pytest.mark.asyncio
async def test_views_fallback_when_stats_unavailable(db_session, make_event):
    """A failing statistics service degrades VIEWS ordering to event date with zero views."""
    later = await make_event(event_date=utcnow() + timedelta(days=8))
    sooner = await make_event(event_date=utcnow() + timedelta(days=2))

    broken = StatsClient(
        base_url="http://stats",
        app_name="eventhub-main",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    try:
        results = await search_service.search_public(
            db_session, broken, PublicSearchParams(sort=SortOption.VIEWS)
        )
    finally:
        await broken.close()

    assert [e.id for e in results] == [sooner.id, later.id]
    assert all(e.views == 0 for e in results)
