"""Pytest fixtures for unit tests.

Provides:
- backend: FakeBackend serving stream, approve and pending routes
- scheduler: FakeScheduler recording reconnect timers
- provider: StaticProvider pointing at http://localhost:9000
- settings: Settings with reference backoff (1s base, 5 attempts)
- stream_client / approval: wired to the fakes and closed after the test
"""

import logging

import pytest
import pytest_asyncio

from sampling_approval.approval import SamplingApproval
from sampling_approval.config import Settings
from sampling_approval.stream.client import SamplingStreamClient

from .fakes import FakeBackend, FakeScheduler, StaticProvider

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def provider() -> StaticProvider:
    return StaticProvider()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        backend_url="",
        secret_key="",
        reconnect_base_delay_seconds=1.0,
        max_reconnect_attempts=5,
    )


@pytest_asyncio.fixture
async def stream_client(backend, scheduler, provider, settings):
    client = SamplingStreamClient(
        provider=provider,
        settings=settings,
        transport=backend.transport,
        scheduler=scheduler,
    )
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def approval(backend, scheduler, provider, settings):
    session = SamplingApproval(
        provider=provider,
        settings=settings,
        transport=backend.transport,
        scheduler=scheduler,
    )
    yield session
    await session.stop()
