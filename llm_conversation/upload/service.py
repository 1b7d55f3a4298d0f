"""
Upload Service - Publishes finished transcripts to the conversation viewer.

The viewer API accepts a transcript document via POST and answers with the
stored filename; the public viewer URL is derived from that filename.

Upload failures never raise to the caller. Every outcome is reported as an
UploadResult so a completed conversation is never lost to a viewer outage.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

import httpx

from llm_conversation.core.config import Settings, get_settings
from llm_conversation.core.exceptions import UploadError
from llm_conversation.core.logging import get_logger
from llm_conversation.core.retry import RetryExecutor, RetryPolicy, retry_everything


logger = get_logger(__name__)

REQUIRED_SECTIONS = ("metadata", "conversation", "models", "statistics")


@dataclass(frozen=True)
class UploadResult:
    """Outcome of an upload attempt.

    Attributes:
        success: Whether the viewer accepted the transcript.
        filename: Name the viewer stored it under.
        viewer_url: Public URL of the uploaded conversation.
        error: Failure description when ``success`` is False.
    """

    success: bool
    filename: str | None = None
    viewer_url: str | None = None
    error: str | None = None


def validate_conversation(data: Any) -> bool:
    """Check that ``data`` has the transcript document structure."""
    return (
        isinstance(data, dict)
        and all(data.get(section) for section in REQUIRED_SECTIONS)
        and isinstance(data.get("turns"), list)
    )


class UploadService:
    """Client for the conversation viewer upload API.

    Example:
        ```python
        service = UploadService(settings)
        result = await service.upload_conversation(transcript.to_dict())
        if result.success:
            print(result.viewer_url)
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        executor: RetryExecutor | None = None,
    ) -> None:
        """Initialize the upload service.

        Args:
            settings: Application settings. Uses get_settings() if not provided.
            client: HTTP client. A short-lived one is created per call if omitted.
            executor: Retry executor. Defaults to the upload retry policy.
        """
        self.settings = settings or get_settings()
        self._client = client
        self._executor = executor or RetryExecutor(
            RetryPolicy(
                max_attempts=self.settings.upload_max_retries + 1,
                min_delay_ms=self.settings.upload_retry_delay_ms,
                max_delay_ms=self.settings.retry_max_delay_ms,
                factor=2.0,
                randomize=False,
            ),
            classifier=retry_everything,
        )

    @property
    def enabled(self) -> bool:
        return self.settings.upload_enabled and bool(self.settings.upload_api_url)

    def generate_viewer_url(self, filename: str) -> str:
        """Public viewer URL for a stored filename (directories stripped)."""
        clean = PurePosixPath(filename.replace("\\", "/")).name
        return f"{self.settings.viewer_base_url.rstrip('/')}/{clean}"

    async def test_connection(self) -> bool:
        """Check the upload endpoint with an OPTIONS request.

        Any status below 500 (including 405) counts as reachable.
        """
        if not self.settings.upload_api_url:
            return False
        try:
            response = await self._request("OPTIONS", timeout=10.0)
        except httpx.HTTPError as e:
            logger.warning("Upload endpoint unreachable", error=str(e))
            return False
        return response.status_code < 500

    async def upload_conversation(
        self,
        conversation: dict[str, Any],
        filename: str | None = None,
    ) -> UploadResult:
        """Upload a transcript document with retries.

        Args:
            conversation: Transcript document (ConversationTranscript.to_dict()).
            filename: Local name, used when the viewer does not echo one back.

        Returns:
            UploadResult; never raises for upload failures.
        """
        if not self.enabled:
            return UploadResult(success=False, error="Upload is disabled in configuration")

        try:
            result = await self._executor.run(
                lambda: self._perform_upload(conversation, filename),
                description="conversation upload",
            )
        except (UploadError, httpx.HTTPError) as e:
            logger.error("Upload failed", error=str(e))
            return UploadResult(success=False, error=f"Upload failed after retries: {e}")

        logger.info("Conversation uploaded", filename=result.filename, viewer_url=result.viewer_url)
        return result

    async def upload_file(self, path: str | Path) -> UploadResult:
        """Read, validate and upload a saved transcript file."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                conversation = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            return UploadResult(success=False, error=f"Failed to read or parse file: {e}")

        if not validate_conversation(conversation):
            return UploadResult(success=False, error="Invalid conversation file structure")

        return await self.upload_conversation(conversation, filename=path.stem)

    async def _perform_upload(
        self,
        conversation: dict[str, Any],
        filename: str | None,
    ) -> UploadResult:
        response = await self._request("POST", json=conversation)
        if response.status_code != 200:
            raise UploadError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UploadError(f"Failed to parse response: {e}") from e

        stored = body.get("filename") if isinstance(body, dict) else None
        stored = stored or filename
        if not stored:
            raise UploadError("Upload response did not include a filename")
        return UploadResult(
            success=True,
            filename=stored,
            viewer_url=self.generate_viewer_url(stored),
        )

    async def _request(self, method: str, timeout: float | None = None, **kwargs: Any) -> httpx.Response:
        url = self.settings.upload_api_url or ""
        request_timeout = timeout or self.settings.upload_timeout_seconds
        if self._client is not None:
            return await self._client.request(method, url, timeout=request_timeout, **kwargs)
        async with httpx.AsyncClient(timeout=request_timeout) as client:
            return await client.request(method, url, **kwargs)
