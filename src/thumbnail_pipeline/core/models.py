"""Shared data models for the thumbnail pipeline."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MESSAGE = "Thumbnail upload is finished."


class FailurePolicy(str, Enum):
    """How a batch reacts when one of its notifications fails."""

    FAIL_FAST = "fail_fast"
    ISOLATE = "isolate"


class PipelineConfig(BaseModel):
    """Configuration for the pipeline, validated once at startup."""

    target_bucket: str
    scratch_root: Optional[str] = None
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    decode_keys: bool = True
    region_name: Optional[str] = None

    @field_validator("target_bucket")
    @classmethod
    def _target_bucket_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("target_bucket must not be blank")
        return value


class Notification(BaseModel):
    """A single newly stored source object."""

    model_config = ConfigDict(frozen=True)

    source_bucket: str
    source_key: str


class TransferredObject(BaseModel):
    """Source object bytes downloaded into scratch storage."""

    source_key: str
    path: str
    content_type: Optional[str] = None
    size: int = 0


class Thumbnail(BaseModel):
    """Generated thumbnail waiting in scratch storage for upload."""

    source_key: str
    path: str
    width: int
    height: int
    content_type: str = "application/octet-stream"


class UploadStatus(BaseModel):
    """Transport status reported by the storage service for an upload."""

    status_code: int
    status_text: Optional[str] = None


class UploadOutcome(BaseModel):
    """Result of processing a single notification."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    target_bucket: str = Field(alias="targetBucket")
    status: int
    message: str = DEFAULT_MESSAGE
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def from_upload(
        cls, source_key: str, target_bucket: str, upload: UploadStatus
    ) -> "UploadOutcome":
        """Build the outcome of a finished upload."""
        return cls(
            file_name=source_key,
            target_bucket=target_bucket,
            status=upload.status_code,
            message=upload.status_text or DEFAULT_MESSAGE,
        )


class BatchResponse(BaseModel):
    """Ordered outcomes for one batch of notifications."""

    outcomes: List[UploadOutcome] = Field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the JSON shape returned to the invoking platform."""
        return {
            "outcomes": [
                outcome.model_dump(by_alias=True, exclude_none=True)
                for outcome in self.outcomes
            ],
            "processedCount": self.processed_count,
            "failedCount": self.failed_count,
        }
