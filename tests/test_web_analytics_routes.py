"""
Integration tests for the tracking and admin analytics endpoints.
"""

from unittest.mock import patch

import pytest

from app.main import create_app
from visitor_engine import StoreError

ADMIN_UID = "admin-user"
CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@pytest.fixture
def app(tmp_path):
    app = create_app(data_dir=tmp_path / "analytics", admin_user_ids=[ADMIN_UID])
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def track(client, payload, **headers):
    headers.setdefault("User-Agent", CHROME_UA)
    return client.post("/api/track", json=payload, headers=headers)


class TestTrackEndpoint:
    """POST /api/track."""

    def test_track_page_view(self, client, app):
        response = track(client, {"path": "/", "title": "Home"}, **{"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["sessionId"]
        assert data["visitorId"]
        assert response.headers["Access-Control-Allow-Origin"] == "*"

        snapshot = app.extensions["analytics_store"].snapshot()
        page_view = snapshot.page_views[0]
        assert page_view.ip_address == "203.0.113.7"
        assert page_view.title == "Home"
        assert page_view.browser == "Chrome"

    def test_same_client_reuses_session(self, client):
        first = track(client, {"path": "/"}, **{"X-Real-IP": "198.51.100.4"}).get_json()
        second = track(client, {"path": "/cars"}, **{"X-Real-IP": "198.51.100.4"}).get_json()

        assert first["visitorId"] == second["visitorId"]
        assert first["sessionId"] == second["sessionId"]

    def test_client_hints_distinguish_visitors(self, client):
        first = track(client, {"path": "/", "extraData": {"screenResolution": "1920x1080"}}).get_json()
        second = track(client, {"path": "/", "extraData": {"screenResolution": "390x844"}}).get_json()

        assert first["visitorId"] != second["visitorId"]

    def test_uid_cookie_is_recorded(self, client, app):
        client.set_cookie('uid', 'reader-1')
        track(client, {"path": "/"})

        page_view = app.extensions["analytics_store"].snapshot().page_views[0]
        assert page_view.user_id == "reader-1"

    def test_missing_path_is_rejected(self, client):
        assert track(client, {"title": "No path"}).status_code == 400
        assert track(client, {"path": ""}).status_code == 400
        assert client.post("/api/track", data="not json").status_code == 400

    def test_tracking_failure_still_returns_success(self, client, app):
        store = app.extensions["analytics_store"]
        with patch.object(store, "_save_snapshot", side_effect=StoreError("disk full")):
            response = track(client, {"path": "/"})

        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["sessionId"] is None
        assert store.snapshot().page_views == []

    def test_preflight(self, client):
        response = client.options("/api/track")

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"

    def test_non_object_body_is_rejected(self, client, app):
        response = track(client, ["/"])

        assert response.status_code == 400
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert app.extensions["analytics_store"].snapshot().page_views == []


class TestAdminAnalyticsEndpoints:
    """GET /api/admin/analytics/*."""

    def test_requires_login(self, client):
        response = client.get("/api/admin/analytics/web")
        assert response.status_code == 401
        assert response.get_json()["error"] == "Unauthorized"

    def test_requires_admin(self, client):
        client.set_cookie('uid', 'reader-1')
        assert client.get("/api/admin/analytics/web").status_code == 401
        assert client.get("/api/admin/analytics/live").status_code == 401

    def test_web_analytics(self, client):
        track(client, {"path": "/", "title": "Home"})
        track(client, {"path": "/cars"})
        client.set_cookie('uid', ADMIN_UID)

        response = client.get("/api/admin/analytics/web?period=7d")

        assert response.status_code == 200
        data = response.get_json()
        assert data["pageViews"]["total"] == 2
        assert data["uniqueVisitors"]["total"] == 1
        assert data["sessions"]["total"] == 1
        assert data["devices"] == [{"device": "desktop", "visits": 1, "percentage": 100.0}]
        assert data["metadata"]["source"] == "database"
        assert data["metadata"]["period"] == "7d"

    def test_web_analytics_default_period(self, client):
        client.set_cookie('uid', ADMIN_UID)
        data = client.get("/api/admin/analytics/web").get_json()
        assert data["metadata"]["period"] == "30d"

    def test_web_analytics_unknown_period_reports_fallback(self, client):
        client.set_cookie('uid', ADMIN_UID)
        data = client.get("/api/admin/analytics/web?period=1y").get_json()
        assert data["metadata"]["period"] == "30d"

    def test_web_analytics_storage_failure(self, client, app):
        client.set_cookie('uid', ADMIN_UID)
        with patch.object(app.extensions["analytics_store"], "snapshot", side_effect=StoreError("corrupt table")):
            response = client.get("/api/admin/analytics/web?period=7d")

        assert response.status_code == 200
        data = response.get_json()
        assert data["pageViews"]["total"] == 0
        assert data["uniqueVisitors"]["total"] == 0
        assert data["sessions"]["total"] == 0
        assert data["topPages"] == []
        assert data["metadata"]["source"] == "database_error"

    def test_live_visitors(self, client):
        track(client, {"path": "/live"})
        client.set_cookie('uid', ADMIN_UID)

        data = client.get("/api/admin/analytics/live").get_json()

        assert data["count"] == 1
        assert data["visitors"][0]["currentPage"] == "/live"


class TestHealth:
    def test_actuator_health(self, client):
        response = client.get("/actuator/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "UP"
