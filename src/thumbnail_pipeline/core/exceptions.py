"""Custom exceptions for the thumbnail pipeline."""

from __future__ import annotations

from typing import Optional


class ThumbnailPipelineError(Exception):
    """Base exception for all thumbnail pipeline errors."""


class DecodeError(ThumbnailPipelineError):
    """Error raised when an inbound event batch is malformed."""


class TransferError(ThumbnailPipelineError):
    """Error raised for storage retrieval or upload failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(ThumbnailPipelineError):
    """Error raised when a thumbnail cannot be generated from the source bytes."""


class ConfigurationError(ThumbnailPipelineError):
    """Error raised for missing or invalid configuration options."""


class BatchProcessingError(ThumbnailPipelineError):
    """Fatal error that aborts a whole batch of notifications."""

    def __init__(self, message: str, source_key: str = ""):
        super().__init__(message)
        self.source_key = source_key
