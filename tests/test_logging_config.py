"""Tests for the stdout logger configuration."""

import os
import sys
import logging
from unittest.mock import patch

import pytest

from thumbnail_pipeline.core.logging_config import get_logger, setup_logger


@pytest.fixture
def clean_env():
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("LOG_LEVEL", None)
        os.environ.pop("LOG_FORMAT", None)
        yield


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_default_pipeline_logger(self, clean_env):
        pipeline_logger = setup_logger()

        assert pipeline_logger.name == "thumbnail-pipeline"
        assert len(pipeline_logger.handlers) == 1
        assert pipeline_logger.handlers[0].stream is sys.stdout
        assert pipeline_logger.propagate is False

    @pytest.mark.parametrize(
        "level,expected",
        [("DEBUG", logging.DEBUG), ("error", logging.ERROR), ("bogus", logging.INFO)],
    )
    def test_explicit_level(self, clean_env, level, expected):
        assert setup_logger(name=f"level-{level}", level=level).level == expected

    def test_level_from_environment(self, clean_env):
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            assert setup_logger(name="env-level").level == logging.WARNING

    def test_explicit_level_wins_over_environment(self, clean_env):
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            assert setup_logger(name="explicit-level", level="DEBUG").level == logging.DEBUG

    def test_structured_format_is_default(self, clean_env):
        fmt = setup_logger(name="default-format").handlers[0].formatter._fmt

        assert "%(filename)s:%(lineno)d" in fmt
        assert "%(funcName)s()" in fmt

    def test_simple_format_from_environment(self, clean_env):
        with patch.dict(os.environ, {"LOG_FORMAT": "simple"}):
            fmt = setup_logger(name="simple-format").handlers[0].formatter._fmt

        assert fmt == "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def test_warm_container_reuse_keeps_single_handler(self, clean_env):
        first = setup_logger(name="warm-container")
        second = setup_logger(name="warm-container", level="DEBUG")

        assert first is second
        assert len(second.handlers) == 1
        assert second.level == logging.DEBUG


def test_get_logger_configures_named_logger(clean_env):
    cli_logger = get_logger("cli-test")

    assert cli_logger.name == "cli-test"
    assert len(cli_logger.handlers) == 1
    assert cli_logger.propagate is False
