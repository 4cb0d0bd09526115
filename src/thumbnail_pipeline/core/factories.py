"""Factory classes for creating configured service instances."""

from typing import Any, Optional, TYPE_CHECKING

import boto3

from .models import PipelineConfig
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, ResizerProtocol, S3ClientProtocol
from .services import (
    NotificationDecoder,
    PillowResizer,
    S3TransferService,
    ThumbnailGenerator,
    ThumbnailOrchestrator,
    ThumbnailPipelineService,
)

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client


def attach_status_text(http_response: Any, parsed: Any, **kwargs: Any) -> None:
    """
    botocore ``after-call`` hook copying the HTTP reason phrase into the
    parsed response as ``ResponseMetadata.HTTPStatusText``.
    """
    if not isinstance(parsed, dict):
        return
    raw = getattr(http_response, "raw", None)
    reason = getattr(raw, "reason", None)
    if reason:
        parsed.setdefault("ResponseMetadata", {})["HTTPStatusText"] = reason


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = "thumbnail-pipeline", level: Optional[str] = None
    ) -> LoggerProtocol:
        """Create a configured structured logger."""
        return StructuredLogger(name, level=level)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(region_name: Optional[str] = None, **kwargs: Any) -> "S3Client":
        """Create an S3 client that reports the HTTP status text of PutObject."""
        session = boto3.Session()
        client = session.client("s3", region_name=region_name, **kwargs)
        client.meta.events.register("after-call.s3.PutObject", attach_status_text)
        return client


class ProcessingPipelineFactory:
    """Factory for creating the complete thumbnail pipeline."""

    @staticmethod
    def create_pipeline(
        config: PipelineConfig,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        resizer: Optional[ResizerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> ThumbnailOrchestrator:
        """Create a fully configured pipeline for the given configuration."""
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(region_name=config.region_name)

        if logger is None:
            logger = LoggerFactory.create_logger()

        if resizer is None:
            resizer = PillowResizer()

        if metrics_collector is None:
            metrics_collector = MetricsCollector()

        transfer = S3TransferService(s3_client, logger)
        generator = ThumbnailGenerator(resizer, logger)
        processor = ThumbnailPipelineService(
            transfer=transfer,
            generator=generator,
            target_bucket=config.target_bucket,
            logger=logger,
            scratch_root=config.scratch_root,
            metrics_collector=metrics_collector,
        )

        return ThumbnailOrchestrator(
            decoder=NotificationDecoder(decode_keys=config.decode_keys),
            processor=processor,
            target_bucket=config.target_bucket,
            logger=logger,
            failure_policy=config.failure_policy,
            metrics_collector=metrics_collector,
        )
