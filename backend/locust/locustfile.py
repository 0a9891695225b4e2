"""
Locust Load Test Suite

Run scenarios against the main service (default host http://localhost:8000):
  locust -f locustfile.py --tags concurrency  # Seat limit under racing submits
  locust -f locustfile.py --tags arbitration  # Racing owner batches
  locust -f locustfile.py --tags throughput   # Search cache and detail views
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

The statistics service is exercised by StatsUser (tag "stats"); point it at
STATS_HOST (default http://localhost:9090).
"""

import os
import random
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, events, tag, task

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
OWNER_ID = 1
STATS_HOST = os.environ.get("STATS_HOST", "http://localhost:9090")

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None
ARBITRATION_EVENT_ID = None


def future_date(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).strftime(DATE_FORMAT)


def random_user_id() -> int:
    return random.randint(1000, 10_000_000)


def create_published_event(client, limit: int, moderation: bool, title: str):
    """Create an event as OWNER_ID and publish it as admin. Returns the id or None."""
    resp = client.post(
        f"/users/{OWNER_ID}/events",
        json={
            "title": title,
            "annotation": "Load test event with a limited number of seats",
            "description": "Created by the locust suite to exercise seat accounting.",
            "category": 1,
            "eventDate": future_date(30),
            "location": {"lat": 0.0, "lon": 0.0},
            "participantLimit": limit,
            "requestModeration": moderation,
        },
    )
    if resp.status_code != 201:
        return None
    event_id = resp.json()["id"]
    client.patch(f"/admin/events/{event_id}", json={"stateAction": "PUBLISH_EVENT"})
    return event_id


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: events are created lazily by the first user of each scenario")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many requesters → 10 auto-confirmed seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT confirmed_requests FROM events WHERE id = X;
      SELECT COUNT(*) FROM participation_requests WHERE event_id = X AND status = 'CONFIRMED';
    Both should be equal and ≤ 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_EVENT_ID
        if not CONCURRENCY_EVENT_ID:
            CONCURRENCY_EVENT_ID = create_published_event(
                self.client, limit=10, moderation=False, title="Concurrency Test Event"
            )
            if CONCURRENCY_EVENT_ID:
                print(f"\n✓ Created event {CONCURRENCY_EVENT_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def submit_request(self):
        """All users fight for the same 10 seats."""
        if not CONCURRENCY_EVENT_ID:
            return

        with self.client.post(
            f"/users/{random_user_id()}/requests?eventId={CONCURRENCY_EVENT_ID}",
            name="/users/{id}/requests",
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409 expected once full or on a repeated user id
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ArbitrationUser(HttpUser):
    """
    TEST 2: Racing owner batches on a moderated event with 10 seats

    Run: locust -f locustfile.py --tags arbitration -u 20 -r 10 --run-time 30s

    Each user submits a few requests and confirms them in one batch.
    confirmed_requests must never exceed 10.
    """
    wait_time = between(0, 0.2)

    def on_start(self):
        global ARBITRATION_EVENT_ID
        if not ARBITRATION_EVENT_ID:
            ARBITRATION_EVENT_ID = create_published_event(
                self.client, limit=10, moderation=True, title="Arbitration Test Event"
            )

    @tag("arbitration")
    @task
    def submit_and_confirm(self):
        if not ARBITRATION_EVENT_ID:
            return

        request_ids = []
        for _ in range(3):
            resp = self.client.post(
                f"/users/{random_user_id()}/requests?eventId={ARBITRATION_EVENT_ID}",
                name="/users/{id}/requests",
            )
            if resp.status_code == 201:
                request_ids.append(resp.json()["id"])
        if not request_ids:
            return

        with self.client.patch(
            f"/users/{OWNER_ID}/events/{ARBITRATION_EVENT_ID}/requests",
            json={"requestIds": request_ids, "status": "CONFIRMED"},
            name="/users/{owner}/events/{id}/requests",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Search cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def search_events_cached(self):
        offset = random.choice([0, 10, 20])
        resp = self.client.get(f"/events?from={offset}&size=10", name="/events [cached]")
        if resp.status_code == 200:
            for event in resp.json():
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def search_by_views(self):
        self.client.get("/events?sort=VIEWS&size=10", name="/events?sort=VIEWS")

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        """Each detail read also records a hit in the statistics service."""
        if EVENT_IDS:
            self.client.get(f"/events/{random.choice(EVENT_IDS)}", name="/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_event_id(self):
        with self.client.post(
            f"/users/{random_user_id()}/requests?eventId=999999",
            name="/users/{id}/requests [missing event]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def empty_batch(self):
        with self.client.patch(
            f"/users/{OWNER_ID}/events/1/requests",
            json={"requestIds": [], "status": "CONFIRMED"},
            name="/users/{owner}/events/{id}/requests [empty]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def bad_target_status(self):
        with self.client.patch(
            f"/users/{OWNER_ID}/events/1/requests",
            json={"requestIds": [1], "status": "CANCELED"},
            name="/users/{owner}/events/{id}/requests [bad status]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))

    @tag("edge")
    @task
    def inverted_range(self):
        with self.client.get(
            f"/events?rangeStart={future_date(10)}&rangeEnd={future_date(1)}",
            name="/events [inverted range]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400,))

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            f"/users/{OWNER_ID}/events",
            data="not json at all",
            name="/users/{id}/events [garbage]",
            catch_response=True,
        ) as resp:
            self._expect(resp, (400, 422))


class StatsUser(HttpUser):
    """
    TEST 5: Statistics ingestion and aggregation

    Run: locust -f locustfile.py --tags stats -u 50 -r 10 --run-time 60s
    """
    host = STATS_HOST
    wait_time = between(0, 0.2)

    @tag("stats")
    @task(10)
    def save_hit(self):
        self.client.post(
            "/hit",
            json={
                "app": "eventhub-main",
                "uri": f"/events/{random.randint(1, 200)}",
                "ip": f"10.0.{random.randint(0, 255)}.{random.randint(1, 254)}",
                "timestamp": datetime.now(timezone.utc).strftime(DATE_FORMAT),
            },
        )

    @tag("stats")
    @task(2)
    def get_stats(self):
        now = datetime.now(timezone.utc)
        self.client.get(
            "/stats",
            params={
                "start": (now - timedelta(hours=1)).strftime(DATE_FORMAT),
                "end": now.strftime(DATE_FORMAT),
                "unique": random.choice(["true", "false"]),
            },
        )
