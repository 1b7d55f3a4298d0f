"""Test configuration and shared fixtures.

Pattern: Pytest fixtures, conftest.py
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from llm_conversation.conversation.storage import InMemorySessionStorage
from llm_conversation.core.config import Settings
from llm_conversation.core.retry import RetryExecutor, RetryPolicy
from tests.fakes.fake_participant import FakeClock


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with fake credentials and no .env lookup."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test-openai",
        anthropic_api_key="sk-ant-test",
        log_dir=tmp_path / "logs",
        log_level="DEBUG",
        retry_randomize=False,
    )


# ============================================================================
# Runtime Fixtures
# ============================================================================

@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock whose sleep advances time instantly."""
    return FakeClock()


@pytest.fixture
def memory_storage() -> InMemorySessionStorage:
    """Fresh in-memory session storage."""
    return InMemorySessionStorage()


@pytest.fixture
def retry_executor(fake_clock: FakeClock) -> RetryExecutor:
    """Deterministic retry executor (no jitter, instant sleeps)."""
    return RetryExecutor(
        RetryPolicy(max_attempts=5, min_delay_ms=1000, max_delay_ms=30000, factor=2.0, randomize=False),
        sleep=fake_clock.sleep,
    )


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest.fixture
def mock_client_factory() -> Callable[..., httpx.AsyncClient]:
    """Build an httpx.AsyncClient served by a handler function."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        base_url: str = "https://api.test/v1",
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=base_url,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return _make
