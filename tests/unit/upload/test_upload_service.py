"""Tests for UploadService."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from llm_conversation.core.config import Settings
from llm_conversation.core.retry import RetryExecutor, RetryPolicy, retry_everything
from llm_conversation.upload.service import UploadService, validate_conversation
from tests.fakes.fake_participant import FakeClock


UPLOAD_URL = "https://viewer.test/api/upload"

DOCUMENT = {
    "metadata": {"session_id": "conversation_x", "status": "completed"},
    "conversation": {"topic": "tides", "max_turns": 2, "actual_turns": 2},
    "models": {"llm1": {"provider": "openai"}},
    "statistics": {"total_tokens": 10},
    "turns": [],
}


@pytest.fixture
def upload_settings(test_settings: Settings) -> Settings:
    return test_settings.model_copy(update={
        "upload_enabled": True,
        "upload_api_url": UPLOAD_URL,
        "viewer_base_url": "https://viewer.test/conversation",
    })


def make_service(settings: Settings, handler, clock: FakeClock, retries: int = 3) -> UploadService:
    executor = RetryExecutor(
        RetryPolicy(max_attempts=retries + 1, min_delay_ms=1000, randomize=False),
        classifier=retry_everything,
        sleep=clock.sleep,
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return UploadService(settings, client=client, executor=executor)


class TestValidateConversation:

    def test_valid_document(self) -> None:
        assert validate_conversation(DOCUMENT)

    @pytest.mark.parametrize("missing", ["metadata", "conversation", "models", "statistics", "turns"])
    def test_missing_section(self, missing: str) -> None:
        document = {k: v for k, v in DOCUMENT.items() if k != missing}

        assert not validate_conversation(document)

    def test_turns_must_be_list(self) -> None:
        assert not validate_conversation(dict(DOCUMENT, turns={}))

    def test_not_a_dict(self) -> None:
        assert not validate_conversation(["metadata"])


class TestUploadConversation:

    @pytest.mark.asyncio
    async def test_disabled(self, test_settings: Settings) -> None:
        result = await UploadService(test_settings).upload_conversation(DOCUMENT)

        assert not result.success
        assert "disabled" in result.error

    @pytest.mark.asyncio
    async def test_success(self, upload_settings: Settings, fake_clock: FakeClock) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"message": "ok", "filename": "abc123.json"})

        service = make_service(upload_settings, handler, fake_clock)

        result = await service.upload_conversation(DOCUMENT)

        assert result.success
        assert result.filename == "abc123.json"
        assert result.viewer_url == "https://viewer.test/conversation/abc123.json"
        assert seen[0].method == "POST"
        assert seen[0].url == UPLOAD_URL
        assert json.loads(seen[0].content) == DOCUMENT

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, upload_settings: Settings, fake_clock: FakeClock) -> None:
        responses = [
            httpx.Response(500, text="oops"),
            httpx.Response(400, text="bad"),
            httpx.Response(200, json={"filename": "f.json"}),
        ]
        service = make_service(upload_settings, lambda request: responses.pop(0), fake_clock)

        result = await service.upload_conversation(DOCUMENT)

        assert result.success
        assert fake_clock.sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_failure_after_retries(self, upload_settings: Settings, fake_clock: FakeClock) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="down")

        service = make_service(upload_settings, handler, fake_clock, retries=2)

        result = await service.upload_conversation(DOCUMENT)

        assert not result.success
        assert "HTTP 503" in result.error
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_filename_fallback(self, upload_settings: Settings, fake_clock: FakeClock) -> None:
        service = make_service(upload_settings, lambda request: httpx.Response(200, json={}), fake_clock)

        result = await service.upload_conversation(DOCUMENT, filename="conversation_x")

        assert result.filename == "conversation_x"

    @pytest.mark.asyncio
    async def test_default_executor_uses_upload_settings(self, upload_settings: Settings) -> None:
        service = UploadService(upload_settings.model_copy(update={"upload_max_retries": 4}))

        assert service._executor.policy.max_attempts == 5
        assert service._executor.classifier is retry_everything


class TestUploadFile:

    @pytest.mark.asyncio
    async def test_upload_file(self, upload_settings: Settings, fake_clock: FakeClock, tmp_path: Path) -> None:
        path = tmp_path / "conversation_x.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        service = make_service(upload_settings, lambda request: httpx.Response(200, json={}), fake_clock)

        result = await service.upload_file(path)

        assert result.success
        assert result.filename == "conversation_x"

    @pytest.mark.asyncio
    async def test_invalid_structure(self, upload_settings: Settings, fake_clock: FakeClock, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"turns": []}), encoding="utf-8")
        service = make_service(upload_settings, lambda request: httpx.Response(200, json={}), fake_clock)

        result = await service.upload_file(path)

        assert not result.success
        assert result.error == "Invalid conversation file structure"

    @pytest.mark.asyncio
    async def test_unreadable_file(self, upload_settings: Settings, tmp_path: Path) -> None:
        result = await UploadService(upload_settings).upload_file(tmp_path / "missing.json")

        assert not result.success
        assert result.error.startswith("Failed to read or parse file")


class TestConnectionAndUrls:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("status", "reachable"), [(200, True), (405, True), (502, False)])
    async def test_connection(
        self, upload_settings: Settings, fake_clock: FakeClock, status: int, reachable: bool
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "OPTIONS"
            return httpx.Response(status)

        service = make_service(upload_settings, handler, fake_clock)

        assert await service.test_connection() is reachable

    @pytest.mark.asyncio
    async def test_connection_error(self, upload_settings: Settings, fake_clock: FakeClock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        service = make_service(upload_settings, handler, fake_clock)

        assert await service.test_connection() is False

    def test_viewer_url_strips_directories(self, upload_settings: Settings) -> None:
        service = UploadService(upload_settings)

        assert service.generate_viewer_url("logs/abc.json") == "https://viewer.test/conversation/abc.json"
