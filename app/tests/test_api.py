"""API endpoint tests"""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_access_gate, get_cache_backend, get_data_folder, get_data_service
from app.main import app
from app.services.auth_service import AccessGate
from app.services.data_service import DataService


class ExplodingGate:
    def authorize(self, request):
        raise RuntimeError("unexpected")


def _strict_gate():
    def handler(request):
        return httpx.Response(401, json={"error": "invalid_token"})

    return AccessGate(
        client_id="client",
        allowed_emails=["me@example.com"],
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class TestAPI:
    """Test API endpoints"""

    @pytest.fixture
    def client(self, service, folder):
        """Create test client with an open access gate"""
        app.dependency_overrides[get_data_service] = lambda: service
        app.dependency_overrides[get_data_folder] = lambda: folder
        app.dependency_overrides[get_access_gate] = lambda: AccessGate(None, [], debug_bypass=True)
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["data_dir_exists"] is True

    def test_get_all(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.json()
        assert body["assetClassRatio"] == [{"other": "val", "amount_yen": "20"}]
        assert [t["amount"] for t in body["transactions"]] == [-3000, -10000, 250000]

    def test_id_token_does_not_affect_dispatch(self, client):
        assert client.get("/?id_token=abc").json() == client.get("/").json()

    def test_get_single_dataset(self, client):
        response = client.get("/", params={"t": "assetClassRatio"})
        assert response.json() == [{"other": "val", "amount_yen": "20"}]

    def test_dataset_not_found_is_200(self, client):
        response = client.get("/", params={"t": "nonexistent"})
        assert response.status_code == 200
        assert response.json() == {"error": "File not found: nonexistent"}

    def test_list_datasets(self, client):
        response = client.get("/", params={"f": "listDatasets"})
        assert response.json() == ["assetClassRatio", "breakdown-liability", "details__liability_123", "other"]

    def test_pre_cache_all(self, client):
        response = client.get("/", params={"f": "preCacheAll"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] is True
        assert "datasets:all" in body["cachedKeys"]
        assert "feed:202602" in body["cachedKeys"]

    def test_other_parameters(self, client):
        assert client.get("/", params={"unknown": "value"}).json() == {"status": True}

    def test_invalid_endpoint(self, client):
        assert client.get("/invalid").status_code == 404


class TestAccessControl:
    """Test access gate error mapping"""

    @pytest.fixture
    def client(self, service):
        app.dependency_overrides[get_data_service] = lambda: service
        app.dependency_overrides[get_access_gate] = _strict_gate
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_missing_token(self, client):
        response = client.get("/")
        assert response.status_code == 401
        assert response.json() == {"status": 401, "error": "missing token"}

    def test_rejected_token(self, client):
        response = client.get("/", params={"t": "other"}, headers={"Authorization": "Bearer bad"})
        assert response.status_code == 401
        assert response.json() == {"status": 401, "error": "token verification failed"}

    def test_forbidden_email(self, client):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "iss": "accounts.google.com",
                    "aud": "client",
                    "exp": "99999999999",
                    "email": "stranger@example.com",
                    "email_verified": "true",
                },
            )

        app.dependency_overrides[get_access_gate] = lambda: AccessGate(
            client_id="client",
            allowed_emails=["me@example.com"],
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        response = client.get("/", params={"id_token": "tok"})
        assert response.status_code == 403
        assert response.json() == {"status": 403, "error": "forbidden email"}

    def test_pre_cache_bypasses_gate(self, client):
        response = client.get("/", params={"f": "preCacheAll"})
        assert response.status_code == 200
        assert response.json()["status"] is True

    def test_unexpected_gate_error(self, client):
        app.dependency_overrides[get_access_gate] = ExplodingGate
        response = client.get("/")
        assert response.status_code == 401
        assert response.json() == {"status": 401, "error": "unauthorized"}


class UnreachableCache:
    def get(self, key):
        raise ConnectionError("cache unreachable")

    def put(self, key, value, ttl_seconds):
        raise ConnectionError("cache unreachable")

    def remove_all(self, keys):
        raise ConnectionError("cache unreachable")


class TestUnreachableCache:
    """Test that a failing cache backend degrades to live data"""

    @pytest.fixture
    def client(self, folder):
        app.dependency_overrides[get_data_service] = lambda: DataService(folder, UnreachableCache())
        app.dependency_overrides[get_access_gate] = lambda: AccessGate(None, [], debug_bypass=True)
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_pre_cache_reports_nothing_cached(self, client):
        response = client.get("/", params={"f": "preCacheAll"})
        assert response.status_code == 200
        assert response.json() == {"status": True, "cachedKeys": []}

    def test_reads_fall_back_to_live(self, client):
        body = client.get("/").json()
        assert body["assetClassRatio"] == [{"other": "val", "amount_yen": "20"}]
        assert len(body["transactions"]) == 3
        assert client.get("/", params={"t": "other"}).json() == [{"header1": "val3", "header2": "val4"}]


def test_cache_backend_disabled(monkeypatch):
    from app.core.config import settings

    get_cache_backend.cache_clear()
    monkeypatch.setattr(settings, "CACHE_ENABLED", False)
    try:
        assert get_cache_backend() is None
    finally:
        get_cache_backend.cache_clear()
