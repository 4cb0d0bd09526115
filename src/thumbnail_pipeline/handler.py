"""AWS Lambda entry point for S3-triggered thumbnail generation."""

from typing import Any, Dict, Optional

from .core import get_logger, load_config
from .core.factories import ProcessingPipelineFactory
from .core.services import ThumbnailOrchestrator

_pipeline: Optional[ThumbnailOrchestrator] = None


def get_pipeline() -> ThumbnailOrchestrator:
    """
    Return the process-wide pipeline, building it on first use.

    Configuration is read and validated once per container, so a missing
    TARGET_BUCKET fails the cold start instead of every upload.
    """
    global _pipeline
    if _pipeline is None:
        config = load_config()
        get_logger("handler").info(
            f"Thumbnail pipeline configured for target bucket '{config.target_bucket}' "
            f"(failure policy: {config.failure_policy.value})"
        )
        _pipeline = ProcessingPipelineFactory.create_pipeline(config)
    return _pipeline


def reset_pipeline() -> None:
    """Drop the cached pipeline so the next invocation rebuilds it."""
    global _pipeline
    _pipeline = None


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Handle one batch of S3 object-created notifications.

    Args:
        event: S3 event notification payload
        context: Lambda context object (its aws_request_id is used as correlation id)

    Returns:
        The batch response as a JSON-serialisable dict
    """
    logger = get_logger("handler")
    correlation_id = getattr(context, "aws_request_id", "") or ""
    records = event.get("Records") if isinstance(event, dict) else None
    logger.info(
        f"Received event with {len(records) if isinstance(records, list) else 0} record(s) "
        f"[{correlation_id}]"
    )

    response = get_pipeline().process_event(event, correlation_id=correlation_id)
    return response.to_dict()
