"""Integration tests for the complete pipeline."""

import io
import os

import pytest
from PIL import Image

from thumbnail_pipeline.core.exceptions import BatchProcessingError, TransferError
from thumbnail_pipeline.core.factories import ProcessingPipelineFactory
from thumbnail_pipeline.core.models import DEFAULT_MESSAGE, FailurePolicy, PipelineConfig
from thumbnail_pipeline.testing.fakes import (
    FakeLogger,
    FakeResizer,
    build_s3_event,
    setup_test_s3_environment,
)


@pytest.fixture
def fake_s3():
    return setup_test_s3_environment()


def _pipeline(fake_s3, tmp_path, policy=FailurePolicy.FAIL_FAST, resizer=None):
    config = PipelineConfig(
        target_bucket="test-dest",
        scratch_root=str(tmp_path),
        failure_policy=policy,
    )
    return ProcessingPipelineFactory.create_pipeline(
        config, s3_client=fake_s3, logger=FakeLogger(), resizer=resizer
    )


class TestPipelineIntegration:
    """Integration tests for the complete thumbnail pipeline."""

    def test_two_valid_records(self, fake_s3, tmp_path):
        """Two valid records give two outcomes in order, each for the target bucket."""
        pipeline = _pipeline(fake_s3, tmp_path)
        event = build_s3_event(("test-source", "photo2.jpg"), ("test-source", "photo1.jpg"))

        response = pipeline.process_event(event)

        assert [o.file_name for o in response.outcomes] == ["photo2.jpg", "photo1.jpg"]
        for outcome in response.outcomes:
            assert outcome.target_bucket == "test-dest"
            assert outcome.status == 200
            assert outcome.message == DEFAULT_MESSAGE

        dest = fake_s3.get_bucket("test-dest")
        assert set(dest.objects) == {"thumbnails/photo1.jpg", "thumbnails/photo2.jpg"}

    def test_status_comes_from_upload_call(self, fake_s3, tmp_path):
        fake_s3.set_put_status(201, "Created")
        pipeline = _pipeline(fake_s3, tmp_path)

        response = pipeline.process_event(build_s3_event(("test-source", "photo1.jpg")))

        assert response.outcomes[0].status == 201
        assert response.outcomes[0].message == "Created"

    def test_nested_key(self, fake_s3, tmp_path):
        pipeline = _pipeline(fake_s3, tmp_path)

        response = pipeline.process_event(build_s3_event(("test-source", "images/a/b.png")))

        assert response.outcomes[0].file_name == "images/a/b.png"
        assert fake_s3.put_calls[0]["Key"] == "thumbnails/images/a/b.png"
        assert fake_s3.put_calls[0]["ContentType"] == "image/png"

    def test_one_pixel_source(self, fake_s3, tmp_path):
        pipeline = _pipeline(fake_s3, tmp_path)

        pipeline.process_event(build_s3_event(("test-source", "tiny.png")))

        stored = fake_s3.get_bucket("test-dest").get_object("thumbnails/tiny.png")
        with Image.open(io.BytesIO(stored.body)) as img:
            assert img.width <= 100 and img.height <= 100
            assert img.size == (1, 1)

    def test_thumbnails_fit_box(self, fake_s3, tmp_path):
        pipeline = _pipeline(fake_s3, tmp_path)

        pipeline.process_event(
            build_s3_event(("test-source", "photo2.jpg"), ("test-source", "images/a/b.png"))
        )

        dest = fake_s3.get_bucket("test-dest")
        with Image.open(io.BytesIO(dest.get_object("thumbnails/photo2.jpg").body)) as img:
            assert img.size == (100, 67)
        with Image.open(io.BytesIO(dest.get_object("thumbnails/images/a/b.png").body)) as img:
            assert img.size == (50, 100)

    def test_fake_resizer_substitutes_primitive(self, fake_s3, tmp_path):
        resizer = FakeResizer()
        pipeline = _pipeline(fake_s3, tmp_path, resizer=resizer)

        pipeline.process_event(build_s3_event(("test-source", "readme.txt")))

        assert len(resizer.calls) == 1
        assert fake_s3.get_bucket("test-dest").get_object("thumbnails/readme.txt")

    def test_download_failure_fails_whole_batch(self, fake_s3, tmp_path):
        """A missing object aborts the batch and no partial response is returned."""
        pipeline = _pipeline(fake_s3, tmp_path)
        event = build_s3_event(
            ("test-source", "photo1.jpg"),
            ("test-source", "missing.jpg"),
            ("test-source", "photo2.jpg"),
        )

        response = None
        with pytest.raises(BatchProcessingError) as excinfo:
            response = pipeline.process_event(event)

        assert response is None
        assert excinfo.value.source_key == "missing.jpg"
        assert isinstance(excinfo.value.__cause__, TransferError)
        dest = fake_s3.get_bucket("test-dest")
        assert "thumbnails/photo2.jpg" not in dest.objects
        assert os.listdir(tmp_path) == []

    def test_missing_target_bucket_fails_at_upload(self, fake_s3, tmp_path):
        config = PipelineConfig(target_bucket="no-such-bucket", scratch_root=str(tmp_path))
        pipeline = ProcessingPipelineFactory.create_pipeline(
            config, s3_client=fake_s3, logger=FakeLogger()
        )

        with pytest.raises(BatchProcessingError) as excinfo:
            pipeline.process_event(build_s3_event(("test-source", "photo1.jpg")))

        assert excinfo.value.__cause__.status_code == 404

    def test_isolate_policy_covers_whole_batch(self, fake_s3, tmp_path):
        pipeline = _pipeline(fake_s3, tmp_path, policy=FailurePolicy.ISOLATE)
        event = build_s3_event(
            ("test-source", "photo1.jpg"),
            ("test-source", "missing.jpg"),
            ("test-source", "readme.txt"),
            ("test-source", "photo2.jpg"),
        )

        response = pipeline.process_event(event)

        assert [o.file_name for o in response.outcomes] == [
            "photo1.jpg",
            "missing.jpg",
            "readme.txt",
            "photo2.jpg",
        ]
        assert [o.status for o in response.outcomes] == [200, 404, 500, 200]
        assert [o.error for o in response.outcomes] == [
            None,
            "TransferError",
            "GenerationError",
            None,
        ]
        assert response.to_dict()["processedCount"] == 2
        assert os.listdir(tmp_path) == []

    def test_url_encoded_key_is_decoded(self, fake_s3, tmp_path):
        fake_s3.get_bucket("test-source").add_object(
            "holiday photo.jpg", fake_s3.get_bucket("test-source").get_object("photo1.jpg").body
        )
        pipeline = _pipeline(fake_s3, tmp_path)

        response = pipeline.process_event(build_s3_event(("test-source", "holiday+photo.jpg")))

        assert response.outcomes[0].file_name == "holiday photo.jpg"
        assert fake_s3.get_bucket("test-dest").get_object("thumbnails/holiday photo.jpg")
