"""Tests for the snapshot HTTP surface."""
import pytest
from fastapi.testclient import TestClient

from beacon.config import BeaconSettings
from beacon.main import create_app
from beacon.routers import guess_image_type
from beacon.services.slideshow_engine import SlideshowEngine
from conftest import make_event


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class StubRuntime:
    """Exposes an engine driven synchronously by the test."""

    def __init__(self, engine: SlideshowEngine, running: bool = True):
        self.engine = engine
        self.running = running

    def snapshot(self):
        return self.engine.snapshot()


@pytest.fixture
def app():
    # No lifespan: TestClient is used without a context manager
    return create_app(BeaconSettings(api_url="https://api.example.org"))


@pytest.fixture
def client(app, engine):
    app.state.runtime = StubRuntime(engine)
    return TestClient(app)


class TestRouters:
    """Test cases for the display endpoints."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["service"] == "Beacon"
        assert body["window"] == {"width": 1920, "height": 1080}
        assert "slide" in body["endpoints"]

    def test_slide_before_first_refresh(self, client, engine):
        engine.tick()

        response = client.get("/slide")

        assert response.status_code == 200
        body = response.json()
        assert body["event"] is None
        assert body["event_count"] == 0
        assert body["spinner_phase"] == 1
        assert body["image_status"] == "none"

    def test_slide_with_pending_image(self, client, engine):
        url = "https://img.example.com/a.png"
        engine.tick()
        engine.on_events_loaded([make_event("a", 0, url)])

        body = client.get("/slide").json()

        assert body["event"]["id"] == "a"
        assert body["event"]["time_range"] == "6:00 PM - 7:00 PM"
        assert body["image_status"] == "pending"
        assert body["image_path"] is None
        assert client.get("/image", params={"url": url}).status_code == 404

    def test_slide_with_loaded_image(self, client, engine):
        url = "https://img.example.com/a.png?size=large"
        engine.tick()
        engine.on_events_loaded([make_event("a", 0, url)])
        engine.on_image_loaded(url, PNG_BYTES, engine.images.generation)

        body = client.get("/slide").json()

        assert body["image_status"] == "loaded"
        image = client.get(body["image_path"])
        assert image.status_code == 200
        assert image.content == PNG_BYTES
        assert image.headers["content-type"] == "image/png"

    def test_slide_without_image(self, client, engine):
        engine.tick()
        engine.on_events_loaded([make_event("a", 0)])

        assert client.get("/slide").json()["image_status"] == "none"

    def test_health(self, client, engine):
        engine.tick()

        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["scheduler_running"] is False
        assert body["fetch_in_flight"] is True
        assert body["last_refresh"] is None
        assert body["next_tick"] is None

    def test_runtime_not_started(self, app):
        client = TestClient(app)

        assert client.get("/slide").status_code == 503
        assert client.get("/health").status_code == 503

    def test_image_requires_url(self, client):
        assert client.get("/image").status_code == 422


class TestGuessImageType:

    @pytest.mark.parametrize("payload,expected", [
        (PNG_BYTES, "image/png"),
        (b"\xff\xd8\xff\xe0rest", "image/jpeg"),
        (b"GIF89a...", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"<svg/>", "application/octet-stream"),
    ])
    def test_guess(self, payload, expected):
        assert guess_image_type(payload) == expected
