"""Service implementations for the thumbnail pipeline."""

import io
import time
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus

from PIL import Image

from .error_handling import BatchOperationContextManager, with_error_handling
from .exceptions import (
    BatchProcessingError,
    DecodeError,
    GenerationError,
    TransferError,
)
from .image_utils import (
    THUMBNAIL_HEIGHT,
    THUMBNAIL_WIDTH,
    calculate_dest_key,
    content_type_for,
    describe_image,
    fit_within,
    output_format,
    prepare_for_format,
)
from .models import (
    BatchResponse,
    FailurePolicy,
    Notification,
    Thumbnail,
    TransferredObject,
    UploadOutcome,
    UploadStatus,
)
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .protocols import (
    BatchProcessor,
    EventDecoder,
    LoggerProtocol,
    NotificationProcessor,
    ResizerProtocol,
    S3ClientProtocol,
)
from .scratch import ScratchSpace


class PillowResizer:
    """Resize primitive backed by Pillow."""

    def resize(self, image_bytes: bytes, width: int, height: int) -> bytes:
        """Fit image bytes within width x height, keeping the aspect ratio."""
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                image.load()
                format_type = output_format(image.format)
                thumbnail = prepare_for_format(
                    fit_within(image, width, height), format_type
                )

            output_stream = io.BytesIO()
            if format_type == "JPEG":
                thumbnail.save(output_stream, format=format_type, quality=95)
            else:
                thumbnail.save(output_stream, format=format_type)
            return output_stream.getvalue()
        except (OSError, SyntaxError, Image.DecompressionBombError) as img_err:
            # UnidentifiedImageError is an OSError
            raise GenerationError(f"Cannot create thumbnail: {img_err}") from img_err


class NotificationDecoder(EventDecoder):
    """
    Decoder for S3 event notifications.

    S3 URL-encodes object keys in events, so keys are passed through
    unquote_plus unless decode_keys is False. With decoding off, keys are
    used exactly as they appear in the event.
    """

    def __init__(self, decode_keys: bool = True):
        self._decode_keys = decode_keys

    def decode(self, event: Dict[str, Any]) -> List[Notification]:
        """Extract (bucket, key) pairs from an S3 event, preserving order."""
        if not isinstance(event, dict) or not isinstance(event.get("Records"), list):
            raise DecodeError("Event has no 'Records' list")

        notifications = []
        for index, record in enumerate(event["Records"]):
            try:
                s3 = record["s3"]
                bucket = s3["bucket"]["name"]
                key = s3["object"]["key"]
            except (KeyError, TypeError) as e:
                raise DecodeError(f"Record {index} is malformed: missing {e}") from e

            if not isinstance(bucket, str) or not isinstance(key, str):
                raise DecodeError(f"Record {index} has a non-string bucket or key")

            if self._decode_keys:
                key = unquote_plus(key)

            notifications.append(Notification(source_bucket=bucket, source_key=key))

        return notifications


class S3TransferService:
    """Moves source objects into scratch storage and thumbnails out to S3."""

    def __init__(self, s3_client: S3ClientProtocol, logger: LoggerProtocol):
        self._s3_client = s3_client
        self._logger = logger

    @with_error_handling(fallback=TransferError)
    def fetch_source(
        self,
        bucket: str,
        key: str,
        scratch: ScratchSpace,
        context: Optional[LogContext] = None,
    ) -> TransferredObject:
        """Download s3://bucket/key into <scratch>/<key>."""
        download_context = (context or LogContext()).with_operation("download_source")
        self._logger.info(
            f"Start downloading the object '{key}' from bucket '{bucket}'",
            download_context,
        )

        response = self._s3_client.get_object(Bucket=bucket, Key=key)
        body = response["Body"].read()

        path = scratch.source_path(key)
        with open(path, "wb") as f:
            f.write(body)

        self._logger.info(
            f"Downloaded the object '{key}' from bucket '{bucket}'",
            download_context,
            size=len(body),
        )
        return TransferredObject(
            source_key=key,
            path=path,
            content_type=response.get("ContentType"),
            size=len(body),
        )

    @with_error_handling(fallback=TransferError)
    def put_destination(
        self,
        bucket: str,
        source_key: str,
        thumbnail: Thumbnail,
        context: Optional[LogContext] = None,
    ) -> UploadStatus:
        """Upload a thumbnail to s3://bucket/thumbnails/<source_key>."""
        dest_key = calculate_dest_key(source_key)
        upload_context = (context or LogContext()).with_operation("upload_thumbnail")
        self._logger.info(
            f"Putting thumbnail '{dest_key}' to the target bucket '{bucket}'",
            upload_context,
        )

        with open(thumbnail.path, "rb") as f:
            data = f.read()

        response = self._s3_client.put_object(
            Bucket=bucket,
            Key=dest_key,
            Body=data,
            ContentType=thumbnail.content_type,
        )

        metadata = response.get("ResponseMetadata", {})
        status_code = metadata.get("HTTPStatusCode")
        if status_code is None:
            raise TransferError(f"Upload of '{dest_key}' returned no HTTP status")

        self._logger.info(
            f"Thumbnail '{dest_key}' was sent to the target bucket '{bucket}'",
            upload_context,
            status=status_code,
        )
        return UploadStatus(
            status_code=status_code, status_text=metadata.get("HTTPStatusText")
        )


class ThumbnailGenerator:
    """Creates fixed-size thumbnails through a pluggable resizer."""

    def __init__(self, resizer: ResizerProtocol, logger: LoggerProtocol):
        self._resizer = resizer
        self._logger = logger

    @with_error_handling(fallback=GenerationError)
    def generate(
        self,
        transferred: TransferredObject,
        scratch: ScratchSpace,
        width: int = THUMBNAIL_WIDTH,
        height: int = THUMBNAIL_HEIGHT,
        context: Optional[LogContext] = None,
    ) -> Thumbnail:
        """Resize the downloaded source into <scratch>/thumbnail-<key>."""
        with open(transferred.path, "rb") as f:
            source_bytes = f.read()

        resized = self._resizer.resize(source_bytes, width, height)

        try:
            size, image_format = describe_image(resized)
            content_type = content_type_for(image_format)
        except (OSError, SyntaxError):
            # Resizer output Pillow cannot identify
            size = (width, height)
            content_type = transferred.content_type or "application/octet-stream"

        path = scratch.thumbnail_path(transferred.source_key)
        with open(path, "wb") as f:
            f.write(resized)

        self._logger.info(
            f"Created thumbnail '{path}' for file '{transferred.source_key}'",
            (context or LogContext()).with_operation("generate_thumbnail"),
            width=size[0],
            height=size[1],
        )
        return Thumbnail(
            source_key=transferred.source_key,
            path=path,
            width=size[0],
            height=size[1],
            content_type=content_type,
        )


class ThumbnailPipelineService(NotificationProcessor):
    """Runs one notification through download, resize and upload."""

    def __init__(
        self,
        transfer: S3TransferService,
        generator: ThumbnailGenerator,
        target_bucket: str,
        logger: LoggerProtocol,
        scratch_root: Optional[str] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._transfer = transfer
        self._generator = generator
        self._target_bucket = target_bucket
        self._logger = logger
        self._scratch_root = scratch_root
        self._metrics_collector = metrics_collector

    def process_notification(
        self, notification: Notification, correlation_id: str = ""
    ) -> UploadOutcome:
        """Process a single notification; any failure propagates to the caller."""
        log_context = LogContext(
            correlation_id=correlation_id or str(uuid.uuid4()),
            operation="process_notification",
            component="thumbnail_pipeline_service",
        ).with_metadata(
            source_bucket=notification.source_bucket,
            source_key=notification.source_key,
        )

        start_time = time.time()
        success = False
        error_message = None

        try:
            with ScratchSpace(self._scratch_root) as scratch:
                transferred = self._transfer.fetch_source(
                    notification.source_bucket,
                    notification.source_key,
                    scratch,
                    log_context,
                )
                thumbnail = self._generator.generate(
                    transferred, scratch, context=log_context
                )
                scratch.discard(transferred.path)
                upload = self._transfer.put_destination(
                    self._target_bucket,
                    notification.source_key,
                    thumbnail,
                    log_context,
                )

            outcome = UploadOutcome.from_upload(
                notification.source_key, self._target_bucket, upload
            )
            success = True
            self._logger.info(
                "Successfully processed notification",
                log_context,
                status=outcome.status,
            )
            return outcome
        except Exception as e:
            error_message = str(e)
            self._logger.error(
                "Notification processing failed",
                log_context.with_metadata(error=error_message),
            )
            raise
        finally:
            if self._metrics_collector is not None:
                self._metrics_collector.record_metric(
                    PerformanceMetrics(
                        operation="process_notification",
                        start_time=start_time,
                        end_time=time.time(),
                        success=success,
                        error_message=error_message,
                        metadata={"source_key": notification.source_key},
                    )
                )


class BatchResponseBuilder:
    """Accumulates outcomes in arrival order; the response is built once."""

    def __init__(self):
        self._outcomes: List[UploadOutcome] = []
        self._built = False

    def add(self, outcome: UploadOutcome) -> None:
        if self._built:
            raise RuntimeError("BatchResponse has already been built")
        self._outcomes.append(outcome)

    def build(self) -> BatchResponse:
        if self._built:
            raise RuntimeError("BatchResponse has already been built")
        self._built = True
        return BatchResponse(outcomes=list(self._outcomes))


class ThumbnailOrchestrator(BatchProcessor):
    """Main orchestrator for one invocation's batch of notifications."""

    def __init__(
        self,
        decoder: EventDecoder,
        processor: NotificationProcessor,
        target_bucket: str,
        logger: LoggerProtocol,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._decoder = decoder
        self._processor = processor
        self._target_bucket = target_bucket
        self._logger = logger
        self._failure_policy = failure_policy
        self._metrics_collector = metrics_collector

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._failure_policy

    def process_event(
        self, event: Dict[str, Any], correlation_id: str = ""
    ) -> BatchResponse:
        """Process every notification in the event sequentially, in order."""
        correlation_id = correlation_id or str(uuid.uuid4())
        log_context = LogContext(
            correlation_id=correlation_id,
            operation="process_event",
            component="thumbnail_orchestrator",
        )

        notifications = self._decoder.decode(event)
        if not notifications:
            self._logger.info("Event contained no notifications", log_context)
            return BatchResponse()

        self._logger.info(
            f"Processing {len(notifications)} notification(s)",
            log_context,
            failure_policy=self._failure_policy.value,
        )

        builder = BatchResponseBuilder()
        try:
            with BatchOperationContextManager(
                f"Thumbnail batch {correlation_id}"
            ) as batch:
                for notification in notifications:
                    try:
                        outcome = self._processor.process_notification(
                            notification, correlation_id
                        )
                    except Exception as exc:  # noqa: BLE001
                        if self._failure_policy is FailurePolicy.FAIL_FAST:
                            raise BatchProcessingError(
                                f"Failed to process '{notification.source_key}': {exc}",
                                source_key=notification.source_key,
                            ) from exc
                        batch.add_error(exc, notification.source_key)
                        outcome = self._failure_outcome(notification, exc)
                    builder.add(outcome)
        finally:
            self._flush_metrics(log_context)

        response = builder.build()

        self._logger.info(
            "Batch finished",
            log_context,
            processed=response.processed_count,
            failed=response.failed_count,
        )
        return response

    def _flush_metrics(self, log_context: LogContext) -> None:
        """Log this batch's metrics summary and reset the collector."""
        if self._metrics_collector is None:
            return
        summary = self._metrics_collector.get_summary("process_notification")
        self._logger.info("Batch metrics", log_context, **summary)
        self._metrics_collector.clear_metrics()

    def _failure_outcome(
        self, notification: Notification, error: Exception
    ) -> UploadOutcome:
        status = getattr(error, "status_code", None) or 500
        return UploadOutcome(
            file_name=notification.source_key,
            target_bucket=self._target_bucket,
            status=status,
            message=str(error),
            error=type(error).__name__,
        )
