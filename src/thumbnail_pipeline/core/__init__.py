"""Core utilities and shared components for the thumbnail pipeline."""

from .image_utils import (
    DESTINATION_PREFIX,
    THUMBNAIL_HEIGHT,
    THUMBNAIL_WIDTH,
    calculate_dest_key,
)
from .logging_config import get_logger, setup_logger
from .exceptions import (
    ThumbnailPipelineError,
    DecodeError,
    TransferError,
    GenerationError,
    ConfigurationError,
    BatchProcessingError,
)
from .models import (
    DEFAULT_MESSAGE,
    BatchResponse,
    FailurePolicy,
    Notification,
    PipelineConfig,
    UploadOutcome,
)
from .config import load_config

__all__ = [
    "PipelineConfig",
    "FailurePolicy",
    "Notification",
    "UploadOutcome",
    "BatchResponse",
    "DEFAULT_MESSAGE",
    "DESTINATION_PREFIX",
    "THUMBNAIL_WIDTH",
    "THUMBNAIL_HEIGHT",
    "calculate_dest_key",
    "load_config",
    "setup_logger",
    "get_logger",
    "ThumbnailPipelineError",
    "DecodeError",
    "TransferError",
    "GenerationError",
    "ConfigurationError",
    "BatchProcessingError",
]
