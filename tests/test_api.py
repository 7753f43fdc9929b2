"""
HTTP tests for the tenant gateway

Runs the FastAPI app in-process over httpx's ASGI transport with the tenant
store and database session replaced by in-memory fakes.
"""
import json
from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from tenant_gateway.core.config import settings
from tenant_gateway.webhook_validation import compute_signature

from conftest import ACME_ID


def phrase(n: int, content: str = None) -> dict:
    stamp = datetime(2025, 1, n, tzinfo=timezone.utc)
    return {
        "id": f"p{n}",
        "content": content or f"Phrase {n}",
        "created_at": stamp,
        "updated_at": stamp,
    }


def client_for(app, host: str) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url=f"http://{host}")


# ============================================================
# Tenant resolution over HTTP
# ============================================================

class TestCurrentTenant:

    async def test_current_tenant(self, client):
        response = await client.get("/api/tenant")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == ACME_ID
        assert body["subdomain"] == "acme"
        assert body["theme"] == "dark"
        assert response.headers["X-Tenant-ID"] == ACME_ID
        assert "X-Request-ID" in response.headers

    async def test_request_id_is_echoed(self, client):
        response = await client.get("/api/tenant", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.parametrize("host,status,code", [
        ("www.example.com", 400, "INVALID_SUBDOMAIN"),
        ("example.com", 400, "INVALID_SUBDOMAIN"),
        ("a.example.com", 400, "INVALID_SUBDOMAIN_FORMAT"),
        ("ab.example.com", 404, "TENANT_NOT_FOUND"),
        ("go.example.com", 404, "TENANT_NOT_FOUND"),
    ])
    async def test_resolution_errors(self, app, host, status, code):
        async with client_for(app, host) as ac:
            response = await ac.get("/api/tenant")

        assert response.status_code == status
        body = response.json()
        assert body["error"] == code
        assert body["message"]
        assert body["details"]
        assert body["suggestion"]
        assert "X-Tenant-ID" not in response.headers

    async def test_store_outage_is_500(self, client, store):
        store.fail_lookup = True
        response = await client.get("/api/tenant")

        assert response.status_code == 500
        assert response.json()["error"] == "TENANT_RESOLUTION_ERROR"

    async def test_context_failure_is_500(self, client, store):
        store.fail_context = True
        response = await client.get("/api/tenant")

        assert response.status_code == 500
        assert response.json()["error"] == "TENANT_RESOLUTION_ERROR"

    async def test_repeat_requests_hit_cache(self, client, store):
        await client.get("/api/tenant")
        await client.get("/api/tenant")

        assert store.lookup_calls == ["acme"]
        assert store.context_calls == [ACME_ID, ACME_ID]


# ============================================================
# Cache administration
# ============================================================

class TestCacheAdmin:

    async def test_stats(self, client):
        await client.get("/api/tenant")
        response = await client.get("/api/tenants/cache/stats")

        assert response.status_code == 200
        assert response.json() == {"size": 1, "keys": ["tenant:acme"], "ttl_seconds": 300}

    async def test_invalidate_one(self, client, store):
        await client.get("/api/tenant")
        response = await client.delete("/api/tenants/cache/acme")

        assert response.json() == {"invalidated": 1, "subdomain": "acme"}
        await client.get("/api/tenant")
        assert store.lookup_calls == ["acme", "acme"]

    async def test_clear_all(self, client, cache):
        await client.get("/api/tenant")
        cache.put("ghost", None)
        response = await client.delete("/api/tenants/cache")

        assert response.json()["invalidated"] == 2
        assert len(cache) == 0

    async def test_invalidate_ignores_host_case(self, client, store):
        upper = {"Host": "ACME.example.com"}
        await client.get("/api/tenant", headers=upper)
        response = await client.delete("/api/tenants/cache/acme")
        await client.get("/api/tenant", headers=upper)

        assert response.json()["invalidated"] == 1
        assert store.lookup_calls == ["acme", "acme"]


class TestSettingsChangedWebhook:

    async def test_invalidates_subdomain(self, client, cache, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", None)
        await client.get("/api/tenant")

        response = await client.post("/api/tenants/webhooks/settings-changed", json={"subdomain": "acme"})

        assert response.status_code == 200
        assert response.json() == {"invalidated": 1, "subdomain": "acme"}
        assert cache.get("acme") is None

    async def test_clear_all(self, client, cache, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", None)
        cache.put("acme", None)
        cache.put("globex", None)

        response = await client.post("/api/tenants/webhooks/settings-changed", json={"all": True})

        assert response.json() == {"invalidated": 2, "subdomain": None}

    async def test_signed_webhook(self, client, cache, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", "s3cret")
        cache.put("acme", None)
        body = json.dumps({"subdomain": "acme"}).encode()

        response = await client.post(
            "/api/tenants/webhooks/settings-changed",
            content=body,
            headers={
                "Content-Type": "application/json",
                settings.webhook_signature_header: compute_signature("s3cret", body),
            },
        )

        assert response.status_code == 200
        assert cache.get("acme") is None

    async def test_bad_signature_rejected(self, client, cache, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", "s3cret")
        cache.put("acme", None)

        response = await client.post(
            "/api/tenants/webhooks/settings-changed",
            json={"subdomain": "acme"},
            headers={settings.webhook_signature_header: "deadbeef"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_WEBHOOK_SIGNATURE"
        assert cache.get("acme") is not None

    async def test_missing_signature_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", "s3cret")

        response = await client.post("/api/tenants/webhooks/settings-changed", json={"all": True})

        assert response.status_code == 401

    async def test_non_ascii_signature_rejected(self, client, cache, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", "s3cret")
        cache.put("acme", None)

        response = await client.post(
            "/api/tenants/webhooks/settings-changed",
            json={"subdomain": "acme"},
            headers={settings.webhook_signature_header: "caf\xe9".encode("latin-1")},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_WEBHOOK_SIGNATURE"
        assert cache.get("acme") is not None

    async def test_empty_event_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret_key", None)

        response = await client.post("/api/tenants/webhooks/settings-changed", json={})

        assert response.status_code == 422


# ============================================================
# Phrases
# ============================================================

class TestPhrases:

    async def test_list_phrases(self, client, db_session):
        db_session.phrases = [phrase(1), phrase(2), phrase(3)]

        response = await client.get("/api/phrases")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 3
        assert body["totalCount"] == 3
        assert [p["id"] for p in body["data"]] == ["p1", "p2", "p3"]
        assert body["tenant"] == {"id": ACME_ID, "name": "Acme", "subdomain": "acme", "theme": "dark"}
        assert body["pagination"] == {
            "page": 1, "limit": 50, "total": 3, "totalPages": 1, "hasNext": False, "hasPrev": False,
        }
        assert body["sorting"] == {"sortBy": "created_at", "sortOrder": "asc"}

    async def test_queries_carry_no_tenant_filter(self, client, db_session):
        db_session.phrases = [phrase(1)]

        await client.get("/api/phrases")

        for sql, params in db_session.statements:
            assert "tenant" not in sql
            assert ACME_ID not in params.values()

    async def test_content_is_escaped(self, client, db_session):
        db_session.phrases = [phrase(1, "  <script>alert('x')</script> & co ")]

        response = await client.get("/api/phrases")

        assert response.json()["data"][0]["content"] == (
            "&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt; &amp; co"
        )

    async def test_pagination(self, client, db_session):
        db_session.phrases = [phrase(n) for n in range(1, 6)]

        response = await client.get("/api/phrases", params={"page": 2, "limit": 2})

        body = response.json()
        assert [p["id"] for p in body["data"]] == ["p3", "p4"]
        assert body["pagination"]["totalPages"] == 3
        assert body["pagination"]["hasNext"] is True
        assert body["pagination"]["hasPrev"] is True

    async def test_sorting_and_search(self, client, db_session):
        db_session.phrases = [phrase(1)]

        response = await client.get(
            "/api/phrases",
            params={"sortBy": "content", "sortOrder": "DESC", "search": " 50%_off "},
        )

        assert response.json()["sorting"] == {"sortBy": "content", "sortOrder": "desc"}
        select_sql, params = db_session.statements[0]
        assert "ORDER BY content DESC" in select_sql
        assert "ILIKE" in select_sql
        assert params["pattern"] == "%50\\%\\_off%"

    async def test_search_length_ignores_padding(self, client, db_session):
        db_session.phrases = [phrase(1)]
        term = "x" * 480
        padding = " " * 30

        response = await client.get("/api/phrases", params={"search": padding + term + padding})

        assert response.status_code == 200
        assert db_session.statements[0][1]["pattern"] == f"%{term}%"

    async def test_invalid_sort_falls_back(self, client, db_session):
        db_session.phrases = [phrase(1)]

        response = await client.get("/api/phrases", params={"sortBy": "id; DROP TABLE", "sortOrder": "sideways"})

        assert response.json()["sorting"] == {"sortBy": "created_at", "sortOrder": "asc"}
        assert "DROP" not in db_session.statements[0][0]

    async def test_limit_capped_by_tenant_setting(self, client, store, db_session):
        store.rows["acme"][0]["tenant_settings"] = {"maxPhrasesPerRequest": 2}
        db_session.phrases = [phrase(n) for n in range(1, 6)]

        response = await client.get("/api/phrases", params={"limit": 100})

        assert response.json()["pagination"]["limit"] == 2
        assert response.json()["count"] == 2

    async def test_pagination_disabled_by_tenant(self, client, store, db_session):
        store.rows["acme"][0]["tenant_settings"] = {"enablePagination": False}
        db_session.phrases = [phrase(n) for n in range(1, 4)]

        response = await client.get("/api/phrases")

        body = response.json()
        assert "pagination" not in body
        assert body["count"] == 3
        assert "LIMIT" not in db_session.statements[0][0]

    async def test_empty_result(self, client):
        response = await client.get("/api/phrases")

        body = response.json()
        assert body["data"] == []
        assert body["count"] == 0
        assert body["message"] == "No phrases found for this tenant"
        assert body["pagination"]["total"] == 0

    @pytest.mark.parametrize("params", [
        {"page": 0},
        {"page": 10001},
        {"limit": 0},
        {"limit": 101},
        {"search": "x" * 501},
    ])
    async def test_query_validation(self, client, params):
        response = await client.get("/api/phrases", params=params)

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_database_error(self, client, db_session):
        db_session.error = OperationalError("SELECT", {}, Exception("boom"))

        response = await client.get("/api/phrases")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Database error",
            "message": "Unable to retrieve phrases at this time",
            "tenantId": ACME_ID,
        }

    async def test_unknown_tenant(self, app):
        async with client_for(app, "ab.example.com") as ac:
            response = await ac.get("/api/phrases")

        assert response.status_code == 404
        assert response.json()["error"] == "TENANT_NOT_FOUND"


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
