"""Pytest fixtures for gateway tests."""

from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.gateway.config import Settings
from src.gateway.main import create_app
from src.gateway.translate.batch import BatchTranslator
from src.gateway.upstream.client import UpstreamClient


UPSTREAM_BASE_URL = "http://upstream.test"


class FakeUpstream:
    """Single-text upstream double served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.delays: dict[str, float] = {}
        self.failures: dict[str, tuple[int, str]] = {}
        self.raw_bodies: dict[str, str] = {}
        self.transport_errors: set[str] = set()
        self.crashes: set[str] = set()
        self.gate: Optional[asyncio.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        text = payload["text"]
        self.calls.append({"url": str(request.url), **payload})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            delay = self.delays.get(text, 0)
            if delay:
                await asyncio.sleep(delay)
        finally:
            self.in_flight -= 1

        if text in self.crashes:
            raise RuntimeError("upstream double crashed")
        if text in self.transport_errors:
            raise httpx.ConnectError("connection refused", request=request)
        if text in self.failures:
            status, body = self.failures[text]
            return httpx.Response(status, text=body)
        if text in self.raw_bodies:
            return httpx.Response(200, text=self.raw_bodies[text])

        detected = "EN" if payload["source_lang"] == "auto" else payload["source_lang"]
        return httpx.Response(
            200,
            json={
                "alternatives": [],
                "code": 200,
                "data": f"{payload['target_lang']}:{text}",
                "id": 8300000,
                "method": "Free",
                "source_lang": detected,
                "target_lang": payload["target_lang"],
            },
        )


def make_settings(**overrides) -> Settings:
    values = dict(
        app_env="test",
        log_level="DEBUG",
        target_base_url=UPSTREAM_BASE_URL,
        default_source_lang="auto",
        max_concurrent_requests=10,
        request_timeout=5,
        debug=True,
        log_request_body=True,
        log_response_body=True,
        log_headers=True,
        cors_allow_origins=[],
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    """Provide test-specific settings."""
    return make_settings()


@pytest.fixture(scope="function")
def settings_factory():
    """Build settings with per-test overrides."""
    return make_settings


@pytest.fixture(scope="function")
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest_asyncio.fixture(scope="function")
async def upstream_client(fake_upstream) -> AsyncIterator[UpstreamClient]:
    """Upstream client whose HTTP traffic is served by the fake upstream."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_upstream.handler))
    yield UpstreamClient(client=client, log_request_body=True, log_response_body=True)
    await client.aclose()


@pytest.fixture(scope="function")
def batch_translator(test_settings, upstream_client) -> BatchTranslator:
    return BatchTranslator(test_settings, upstream=upstream_client)


@pytest_asyncio.fixture(scope="function")
async def test_client(test_settings, upstream_client) -> AsyncIterator[AsyncClient]:
    """Provide an async HTTP client for testing the FastAPI app."""
    app = create_app(test_settings, upstream=upstream_client)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
