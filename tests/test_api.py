"""
End-to-end tests through the HTTP routes.
"""
from fastapi.testclient import TestClient

from main import app
from linkstats_app.config import settings
from linkstats_app.dependencies import get_click_queue, get_record_store
from linkstats_app.exceptions import DependencyUnavailableError
from linkstats_app.queue.strategies import InMemoryQueue
from linkstats_app.storage.strategies import InMemoryRecordStore

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
WINDOWS = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"


class UnavailableStore(InMemoryRecordStore):
    """Store whose database is down"""

    async def find_by_alias(self, alias):
        raise DependencyUnavailableError("record_store")

    async def find_by_topic(self, topic):
        raise DependencyUnavailableError("record_store")


def shorten(client, **body):
    response = client.post("/api/shorten", json=body)
    assert response.status_code == 201, response.text
    return response.json()["shortUrl"].rsplit("/", 1)[-1]


class TestShorten:
    """Test short URL creation"""

    def test_create_short_url(self, client: TestClient):
        response = client.post("/api/shorten", json={"longUrl": "https://www.google.com/"})
        assert response.status_code == 201

        data = response.json()
        assert data["shortUrl"].startswith(f"{settings.base_url}/api/shorten/")
        assert len(data["shortUrl"].rsplit("/", 1)[-1]) == settings.alias_length
        assert "createdAt" in data

    def test_custom_alias_and_topic(self, client: TestClient):
        alias = shorten(client, longUrl="https://www.python.org/", customAlias="py-home", topic="Tech")
        assert alias == "py-home"

    def test_custom_alias_taken(self, client: TestClient):
        shorten(client, longUrl="https://a.example.com/", customAlias="taken")

        response = client.post("/api/shorten", json={"longUrl": "https://b.example.com/", "customAlias": "taken"})

        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "DuplicateKey"

    def test_invalid_url(self, client: TestClient):
        response = client.post("/api/shorten", json={"longUrl": "not-a-valid-url"})

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "InvalidInput"

    def test_missing_long_url(self, client: TestClient):
        response = client.post("/api/shorten", json={"topic": "Tech"})
        assert response.status_code == 422


class TestRedirect:
    """Test resolution and click recording"""

    def test_redirect_url(self, client: TestClient):
        alias = shorten(client, longUrl="https://www.github.com/")

        response = client.get(f"/api/shorten/{alias}", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_nonexistent_url(self, client: TestClient):
        response = client.get("/api/shorten/nonexistent", follow_redirects=False)

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "NotFound"

    def test_redirect_records_click(self, client: TestClient):
        alias = shorten(client, longUrl="https://www.stackoverflow.com/")

        client.get(f"/api/shorten/{alias}", headers={"User-Agent": IPHONE}, follow_redirects=False)
        client.get(f"/api/shorten/{alias}", headers={"User-Agent": IPHONE}, follow_redirects=False)

        data = client.get(f"/api/shorten/analytics/{alias}").json()
        assert data["totalClicks"] == 2
        assert data["uniqueUsersCount"] == 1
        assert data["mostActiveDay"]["count"] == 2
        assert data["percentageGrowth"] == "0.00"
        assert len(data["recentActivity"]) == 1

    def test_queue_mode_publishes_instead_of_recording(self, client: TestClient):
        queue = InMemoryQueue()
        app.dependency_overrides[get_click_queue] = lambda: queue
        alias = shorten(client, longUrl="https://www.example.com/")

        response = client.get(f"/api/shorten/{alias}", follow_redirects=False)

        assert response.status_code == 302
        assert queue._queues[settings.queue_name][0].short_alias == alias
        assert client.get(f"/api/shorten/analytics/{alias}").json()["totalClicks"] == 0


class TestAnalyticsRoutes:

    def test_alias_analytics_not_found(self, client: TestClient):
        response = client.get("/api/shorten/analytics/missing1")

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "NotFound"

    def test_topic_analytics(self, client: TestClient):
        first = shorten(client, longUrl="https://a.example.com/", topic="Tech")
        second = shorten(client, longUrl="https://b.example.com/", topic="Tech")
        client.get(f"/api/shorten/{first}", headers={"User-Agent": IPHONE}, follow_redirects=False)
        client.get(f"/api/shorten/{second}", headers={"User-Agent": WINDOWS}, follow_redirects=False)

        data = client.get("/api/shorten/topic/Tech").json()

        assert data["totalClicks"] == 2
        assert data["uniqueUsers"] == 2
        assert sum(entry["count"] for entry in data["clicksByDate"]) == 2
        assert [url["shortUrl"] for url in data["urls"]] == [first, second]

    def test_topic_without_urls(self, client: TestClient):
        response = client.get("/api/shorten/topic/Cooking")

        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "NoUrlsFound"

    def test_overall_analytics(self, client: TestClient):
        alias = shorten(client, longUrl="https://www.example.com/")
        client.get(f"/api/shorten/{alias}", headers={"User-Agent": IPHONE}, follow_redirects=False)
        client.get(f"/api/shorten/{alias}", headers={"User-Agent": WINDOWS}, follow_redirects=False)

        data = client.get(f"/api/shorten/overall/{alias}").json()

        assert data["totalUrls"] == 1
        assert data["totalClicks"] == 2
        assert data["uniqueUsers"] == 2
        assert [(o["osName"], o["uniqueUsers"]) for o in data["osType"]] == [("iOS", 1), ("Windows", 1)]
        assert [d["deviceName"] for d in data["deviceType"]] == ["mobile", "desktop"]

    def test_overall_not_found(self, client: TestClient):
        response = client.get("/api/shorten/overall/missing1")
        assert response.status_code == 404


class TestStoreOutage:
    """Record store failures render as 503 DependencyUnavailable"""

    def test_redirect_when_store_is_down(self, client: TestClient):
        app.dependency_overrides[get_record_store] = lambda: UnavailableStore()

        response = client.get("/api/shorten/abc12345", follow_redirects=False)

        assert response.status_code == 503
        assert response.json() == {
            "error": {"kind": "DependencyUnavailable", "message": "Service 'record_store' is unavailable"}
        }

    def test_shorten_when_store_is_down(self, client: TestClient):
        app.dependency_overrides[get_record_store] = lambda: UnavailableStore()

        response = client.post("/api/shorten", json={"longUrl": "https://www.example.com/"})

        assert response.status_code == 503
        assert response.json()["error"]["kind"] == "DependencyUnavailable"

    def test_topic_analytics_when_store_is_down(self, client: TestClient):
        app.dependency_overrides[get_record_store] = lambda: UnavailableStore()

        response = client.get("/api/shorten/topic/Tech")

        assert response.status_code == 503


class TestMeta:

    def test_root(self, client: TestClient):
        assert client.get("/").json()["message"] == f"Welcome to {settings.app_name}"

    def test_health(self, client: TestClient):
        assert client.get("/health").json()["status"] == "healthy"
