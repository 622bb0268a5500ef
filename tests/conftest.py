"""Shared fixtures: isolated settings, fake model providers, mock HTTP."""

from collections.abc import Callable

import httpx
import pytest

from jetai.core.config import Settings
from jetai.domains.chat.services.providers import ModelProvider
from jetai.domains.credentials import CredentialPoolManager
from jetai.domains.monitoring import MetricsRegistry


class FakeProvider(ModelProvider):
    """Replays canned replies; an Exception entry is raised instead."""

    def __init__(self, name: str, replies: list):
        self.name = name
        self.replies = list(replies)
        self.calls: list[list] = []

    async def complete(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingRouter:
    """httpx.MockTransport handler dispatching on host."""

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, host: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handlers[host] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.handlers.get(request.url.host)
        if handler is None:
            raise httpx.ConnectError(f"no route to {request.url.host}", request=request)
        return handler(request)

    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        GOOGLE_GROUP1_API_KEY="group1-key",
        GOOGLE_GROUP2_API_KEY="",
        GOOGLE_GROUP3_API_KEY="group3-key",
        GOOGLE_GROUP4_API_KEY="",
        GOOGLE_API_KEY="group5-key",
        ADMIN_API_TOKEN="",
        LAST_PROVIDER_BACKOFF_SECONDS=0.0,
    )


@pytest.fixture
def credentials(test_settings) -> CredentialPoolManager:
    return CredentialPoolManager(settings=test_settings)


@pytest.fixture
def metrics(test_settings) -> MetricsRegistry:
    return MetricsRegistry(settings=test_settings)


@pytest.fixture
def router() -> RecordingRouter:
    return RecordingRouter()


@pytest.fixture
def transport(router) -> httpx.MockTransport:
    return httpx.MockTransport(router)


@pytest.fixture
def fake_provider_factory() -> type[FakeProvider]:
    return FakeProvider
