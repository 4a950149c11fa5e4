"""Shared pytest fixtures for relay tests.

Outbound HTTP is served by :class:`FakeUpstream` through
``httpx.MockTransport``; the poll loop's clock and sleep are replaced by
:class:`FakeClock` so no test ever waits on wall-clock time.
"""

from __future__ import annotations

from collections.abc import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from nanobanana.api.main import app
from nanobanana.core.config import RelayConfig
from nanobanana.core.generator import ImageGenerator

SESSION_ID = "sess-123"
SOURCE_IMAGE_URL = "https://cdn.visualgpt.io/results/output-42.png"
HOSTED_URL = "https://o.uguu.se/AbCdEf.png"
IMAGE_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def status_payload(status: str | None = None, url: str = "", message: str = "success") -> dict:
    """Build a status-endpoint payload with one result (or none).

    Args:
        status: Status of the first result; ``None`` means an empty results list.
        url: Image URL of the first result.
        message: Top-level message field.

    Returns:
        Dictionary shaped like the upstream status response.
    """
    results = [] if status is None else [{"status": status, "url": url}]
    return {"code": 100000, "message": message, "data": {"results": results}}


class FakeClock:
    """Monotonic clock whose time only moves when :meth:`sleep` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeUpstream:
    """Scripted stand-in for the generation service, image CDN and file host.

    Each endpoint answers with a ``(status_code, body)`` pair.  ``statuses``
    is consumed in order for successive status checks; its last entry keeps
    being served once the others are used up.

    Attributes:
        requests: Every request received, in order.
    """

    def __init__(self, config: RelayConfig) -> None:
        self.config = config
        self.requests: list[httpx.Request] = []
        self.submit: tuple[int, object] = (200, {"code": 100000, "data": {"session_id": SESSION_ID}})
        self.statuses: list[tuple[int, object]] = [
            (200, status_payload("succeeded", SOURCE_IMAGE_URL)),
        ]
        self.image: tuple[int, bytes] = (200, IMAGE_BYTES)
        self.upload: tuple[int, object] = (200, {"success": True, "files": [{"url": HOSTED_URL}]})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        target = f"{request.url.scheme}://{request.url.host}{request.url.path}"

        if target == self.config.submit_url:
            status_code, body = self.submit
            return httpx.Response(status_code, json=body)
        if target == self.config.status_url:
            status_code, body = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(status_code, json=body)
        if target == self.config.upload_url:
            status_code, body = self.upload
            return httpx.Response(status_code, json=body)

        status_code, content = self.image
        return httpx.Response(status_code, content=content)

    def requests_to(self, url: str) -> list[httpx.Request]:
        """Return the recorded requests whose scheme/host/path equals *url*."""
        return [
            r for r in self.requests
            if f"{r.url.scheme}://{r.url.host}{r.url.path}" == url
        ]

    @property
    def status_requests(self) -> list[httpx.Request]:
        return self.requests_to(self.config.status_url)


@pytest.fixture
def test_config() -> RelayConfig:
    """Create a configuration isolated from any local ``.env`` file.

    Returns:
        RelayConfig instance for testing
    """
    return RelayConfig(
        _env_file=None,
        poll_timeout_ms=120_000,
        poll_interval_ms=5_000,
        fallback_image_url="https://wallpaperaccess.com/full/1556608.jpg",
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream(test_config: RelayConfig) -> FakeUpstream:
    return FakeUpstream(test_config)


@pytest.fixture
def http_client(upstream: FakeUpstream) -> httpx.AsyncClient:
    """Async HTTP client whose every request is answered by *upstream*."""
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def generator(
    http_client: httpx.AsyncClient,
    test_config: RelayConfig,
    fake_clock: FakeClock,
) -> ImageGenerator:
    return ImageGenerator(http_client, test_config, sleep=fake_clock.sleep, clock=fake_clock)


@pytest.fixture
def test_client(generator: ImageGenerator) -> Generator[TestClient, None, None]:
    """FastAPI TestClient with the generator wired to the fake upstream.

    Yields:
        TestClient with the application lifespan running
    """
    with TestClient(app) as client:
        app.state.generator = generator
        yield client
