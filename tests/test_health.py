"""Health endpoint tests."""

from sqlalchemy.exc import OperationalError

from app.services.templates.store import TemplateStore


class TestHealth:
    def test_empty_store_is_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["environment"] == "test"
        assert body["database"] == "connected"
        assert body["active_templates"] == 0

    def test_counts_active_templates(self, client, stored_template):
        assert client.get("/health").json()["active_templates"] == 1

    def test_unreachable_store_is_degraded(self, client, monkeypatch):
        def boom(self):
            raise OperationalError("SELECT count(*)", {}, Exception("connection refused"))

        monkeypatch.setattr(TemplateStore, "count_active", boom)
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "degraded"
        assert body["database"] == "unreachable"
        assert body["active_templates"] is None
