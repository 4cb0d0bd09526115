"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Protocol

from .models import BatchResponse, Notification, UploadOutcome


class S3ClientProtocol(Protocol):
    """Protocol for S3 client operations."""

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(
        self, Bucket: str, Key: str, Body: bytes, ContentType: str
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...


class ResizerProtocol(Protocol):
    """Protocol for the image resize primitive."""

    def resize(self, image_bytes: bytes, width: int, height: int) -> bytes:
        """Return image_bytes resized to fit within width x height."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Optional[Any] = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class EventDecoder(ABC):
    """Abstract decoder turning an inbound event into notifications."""

    @abstractmethod
    def decode(self, event: Dict[str, Any]) -> List[Notification]:
        """Decode an event batch."""
        ...


class NotificationProcessor(ABC):
    """Abstract processor for a single notification."""

    @abstractmethod
    def process_notification(
        self, notification: Notification, correlation_id: str = ""
    ) -> UploadOutcome:
        """Process a single notification."""
        ...


class BatchProcessor(ABC):
    """Abstract batch processor."""

    @abstractmethod
    def process_event(
        self, event: Dict[str, Any], correlation_id: str = ""
    ) -> BatchResponse:
        """Process every notification in an event batch."""
        ...
