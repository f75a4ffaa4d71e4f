"""
API Endpoint Tests

The conflicts endpoint always answers 200 with cache headers that
reflect whether the snapshot is partial.
"""

from fastapi.testclient import TestClient

from conflict_ingestion.api.mapper import CACHE_CONTROL_OK, CACHE_CONTROL_PARTIAL
from conflict_ingestion.api.server import create_app
from conflict_ingestion.fetcher import FeedFetcher
from conflict_ingestion.service import ConflictService

from ..fixtures import FakeClock, MockUpstream, anchor_html, geo_collection, geo_feature


def _service(upstream: MockUpstream, clock: FakeClock = None) -> ConflictService:
    return ConflictService(
        config=upstream.config(),
        fetcher=FeedFetcher(transport=upstream.transport()),
        clock=clock or FakeClock()
    )


def _healthy_upstream() -> MockUpstream:
    upstream = MockUpstream()
    upstream.geo = geo_collection(
        geo_feature(36.2, 37.16, name="Aleppo, Syria"),
        geo_feature(50.0, 50.0, name="Quiet town",
                    html=anchor_html("https://local.example.org/a", "Town meeting")),
    )
    return upstream


class ExplodingService(ConflictService):
    async def get_conflicts(self):
        raise RuntimeError("boom")


class TestConflictsEndpoint:

    def test_full_response(self):
        upstream = _healthy_upstream()
        with TestClient(create_app(_service(upstream))) as client:
            response = client.get("/api/conflicts")

        assert response.status_code == 200
        assert response.headers["cache-control"] == CACHE_CONTROL_OK

        body = response.json()
        assert body["partial"] is False
        assert body["total"] == 2
        assert body["timestamp"] == "2024-03-01T12:00:00Z"

        event = body["events"][0]
        assert event["id"] == "36.20_37.16_Aleppo, Syria"
        assert event["isEnriched"] is True
        assert event["category"] == "fight"
        assert event["actor1"] == {
            "name": "MILITARY", "countryCode": "SYR", "type": "military", "label": "Military"
        }
        assert event["quadClass"] == "material-conflict"
        assert event["geoPrecision"] == "landmark"
        assert event["goldsteinScale"] == -10.0
        assert event["sharingImage"] == ""

        plain = body["events"][1]
        assert plain["isEnriched"] is False
        assert plain["actor1"] is None
        assert plain["goldsteinScale"] is None

    def test_second_request_served_from_cache(self):
        upstream = _healthy_upstream()
        with TestClient(create_app(_service(upstream))) as client:
            client.get("/api/conflicts")
            client.get("/api/conflicts")

        assert upstream.calls["geo"] == 1

    def test_total_upstream_failure_is_still_200(self):
        upstream = MockUpstream()
        upstream.geo = 503
        upstream.pointer = "timeout"

        with TestClient(create_app(_service(upstream))) as client:
            response = client.get("/api/conflicts")

        assert response.status_code == 200
        assert response.headers["cache-control"] == CACHE_CONTROL_PARTIAL
        assert response.json()["partial"] is True
        assert response.json()["events"] == []
        assert response.json()["total"] == 0

    def test_unexpected_error_is_still_200(self):
        service = ExplodingService(config=MockUpstream().config(), clock=FakeClock())

        with TestClient(create_app(service)) as client:
            response = client.get("/api/conflicts")

        assert response.status_code == 200
        assert response.json() == {
            "events": [], "total": 0, "timestamp": "2024-03-01T12:00:00Z", "partial": True
        }
        assert response.headers["cache-control"] == CACHE_CONTROL_PARTIAL

    def test_request_before_startup_is_still_200(self):
        upstream = _healthy_upstream()
        # Without the context manager the lifespan never runs
        client = TestClient(create_app(_service(upstream)))

        response = client.get("/api/conflicts")

        assert response.status_code == 200
        assert response.headers["cache-control"] == CACHE_CONTROL_PARTIAL
        assert response.json()["events"] == []
        assert response.json()["partial"] is True
        assert upstream.calls["geo"] == 0


class TestFilters:

    def test_category_filter_ignores_unknown_values(self):
        with TestClient(create_app(_service(_healthy_upstream()))) as client:
            body = client.get("/api/conflicts", params=[("category", "fight"), ("category", "bogus")]).json()

        assert body["total"] == 1
        assert [e["category"] for e in body["events"]] == ["fight"]

    def test_search(self):
        with TestClient(create_app(_service(_healthy_upstream()))) as client:
            body = client.get("/api/conflicts", params={"search": "quiet"}).json()

        assert [e["name"] for e in body["events"]] == ["Quiet town"]

    def test_timeframe_uses_service_clock(self):
        clock = FakeClock()
        with TestClient(create_app(_service(_healthy_upstream(), clock))) as client:
            client.get("/api/conflicts")
            clock.advance(minutes=90)
            # merged cache expired; a fresh refresh stamps events at the new time
            recent = client.get("/api/conflicts", params={"timeframe": "1h"}).json()
            unknown = client.get("/api/conflicts", params={"timeframe": "forever"}).json()

        assert recent["total"] == 2
        assert unknown["total"] == 2

    def test_timeframe_excludes_old_cached_events(self):
        upstream = _healthy_upstream()
        clock = FakeClock()
        service = ConflictService(
            config=upstream.config(merged_cache_ttl=86400),
            fetcher=FeedFetcher(transport=upstream.transport()),
            clock=clock
        )
        with TestClient(create_app(service)) as client:
            client.get("/api/conflicts")
            clock.advance(minutes=90)
            body = client.get("/api/conflicts", params={"timeframe": "1h"}).json()
            day = client.get("/api/conflicts", params={"timeframe": "24h"}).json()

        assert body["total"] == 0
        assert body["events"] == []
        assert day["total"] == 2
        assert upstream.calls["geo"] == 1

    def test_filters_share_the_cached_snapshot(self):
        upstream = _healthy_upstream()
        with TestClient(create_app(_service(upstream))) as client:
            client.get("/api/conflicts", params={"search": "aleppo"})
            client.get("/api/conflicts", params={"category": "other"})

        assert upstream.calls["geo"] == 1


class TestAuxiliaryEndpoints:

    def test_categories(self):
        with TestClient(create_app(_service(MockUpstream()))) as client:
            body = client.get("/api/conflicts/categories").json()

        values = [c["value"] for c in body["categories"]]
        assert values == ["coerce", "assault", "fight", "mass-violence", "other"]
        assert all(c["label"] and c["color"].startswith("#") for c in body["categories"])

    def test_health(self):
        with TestClient(create_app(_service(_healthy_upstream()))) as client:
            before = client.get("/health").json()
            client.get("/api/conflicts")
            after = client.get("/health").json()

        assert before["status"] == "online"
        assert before["merged_cache"]["age_seconds"] is None
        assert after["merged_cache"]["fresh"] is True
        assert after["store"]["size"] == 1

    def test_get_only(self):
        with TestClient(create_app(_service(MockUpstream()))) as client:
            response = client.post("/api/conflicts")

        assert response.status_code == 405
