"""Unit tests for factory classes."""

from types import SimpleNamespace
from unittest.mock import Mock, patch

from thumbnail_pipeline.core.factories import (
    LoggerFactory,
    ProcessingPipelineFactory,
    S3ClientFactory,
    attach_status_text,
)
from thumbnail_pipeline.core.models import FailurePolicy, PipelineConfig
from thumbnail_pipeline.core.observability import StructuredLogger
from thumbnail_pipeline.core.services import ThumbnailOrchestrator
from thumbnail_pipeline.testing.fakes import FakeLogger, FakeS3Client


class TestAttachStatusText:
    def test_copies_reason_phrase(self):
        parsed = {"ResponseMetadata": {"HTTPStatusCode": 200}}
        http_response = SimpleNamespace(raw=SimpleNamespace(reason="OK"))

        attach_status_text(http_response=http_response, parsed=parsed)

        assert parsed["ResponseMetadata"] == {
            "HTTPStatusCode": 200,
            "HTTPStatusText": "OK",
        }

    def test_missing_reason_leaves_response_untouched(self):
        parsed = {"ResponseMetadata": {"HTTPStatusCode": 200}}

        attach_status_text(http_response=SimpleNamespace(raw=None), parsed=parsed)

        assert parsed == {"ResponseMetadata": {"HTTPStatusCode": 200}}

    def test_ignores_non_dict_response(self):
        attach_status_text(http_response=None, parsed=None)


class TestS3ClientFactory:
    @patch("thumbnail_pipeline.core.factories.boto3.Session")
    def test_registers_status_text_hook(self, mock_session):
        client = S3ClientFactory.create_s3_client(region_name="eu-north-1")

        mock_session.return_value.client.assert_called_once_with(
            "s3", region_name="eu-north-1"
        )
        client.meta.events.register.assert_called_once_with(
            "after-call.s3.PutObject", attach_status_text
        )


class TestLoggerFactory:
    def test_creates_structured_logger(self):
        assert isinstance(LoggerFactory.create_logger("test-factory"), StructuredLogger)


class TestProcessingPipelineFactory:
    def test_create_pipeline_with_injected_dependencies(self):
        config = PipelineConfig(target_bucket="thumbs", failure_policy="isolate")

        pipeline = ProcessingPipelineFactory.create_pipeline(
            config, s3_client=FakeS3Client(), logger=FakeLogger()
        )

        assert isinstance(pipeline, ThumbnailOrchestrator)
        assert pipeline.failure_policy is FailurePolicy.ISOLATE

    @patch("thumbnail_pipeline.core.factories.S3ClientFactory.create_s3_client")
    def test_create_pipeline_defaults_s3_client(self, mock_create_client):
        mock_create_client.return_value = Mock()
        config = PipelineConfig(target_bucket="thumbs", region_name="eu-north-1")

        ProcessingPipelineFactory.create_pipeline(config, logger=FakeLogger())

        mock_create_client.assert_called_once_with(region_name="eu-north-1")
