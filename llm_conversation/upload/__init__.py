"""Viewer upload for finished conversation transcripts."""

from llm_conversation.upload.service import UploadResult, UploadService, validate_conversation


__all__ = ["UploadResult", "UploadService", "validate_conversation"]
