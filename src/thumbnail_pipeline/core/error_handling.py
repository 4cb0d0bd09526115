# src/thumbnail_pipeline/core/error_handling.py

import functools
import logging
from typing import Optional, Type

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from .exceptions import GenerationError, ThumbnailPipelineError, TransferError


def client_error_status(error: ClientError) -> Optional[int]:
    """Return the HTTP status code carried by a botocore ClientError, if any."""
    return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


def _translate(func_name: str, error: Exception) -> Optional[ThumbnailPipelineError]:
    if isinstance(error, ClientError):
        return TransferError(
            f"S3 operation failed in {func_name}: {error}",
            status_code=client_error_status(error),
        )
    if isinstance(error, BotoCoreError):
        return TransferError(f"S3 transport failed in {func_name}: {error}")
    if isinstance(error, (UnidentifiedImageError, Image.DecompressionBombError)):
        return GenerationError(f"Failed to identify image in {func_name}: {error}")
    return None


def with_error_handling(
    func=None, *, fallback: Optional[Type[ThumbnailPipelineError]] = None
):
    """
    A decorator to wrap pipeline stages with standardized error handling.

    botocore errors become TransferError and Pillow decode errors become
    GenerationError. Any other non-pipeline exception is wrapped in
    ``fallback`` when one is given, otherwise re-raised unchanged.
    """

    def decorator(inner):
        @functools.wraps(inner)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(inner.__module__ + "." + inner.__name__)
            try:
                return inner(*args, **kwargs)
            except ThumbnailPipelineError:
                raise
            except Exception as e:
                logger.error(f"Error in '{inner.__name__}': {e}", exc_info=True)
                translated = _translate(inner.__name__, e)
                if translated is None and fallback is not None:
                    translated = fallback(f"{inner.__name__} failed: {e}")
                if translated is not None:
                    raise translated from e
                raise

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """

    def __init__(self, operation_name="Batch Operation"):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} aborted: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i + 1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        return False

    def add_error(self, error_message, item_identifier: str = "Unknown item"):
        """
        Report an error for a specific item within the 'with' block.

        Args:
            error_message: The error message or exception.
            item_identifier: A string identifying the item that failed (e.g. an object key).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
