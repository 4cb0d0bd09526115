"""Environment-driven configuration loading for the thumbnail pipeline."""

import os
from typing import Mapping, Optional

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import FailurePolicy, PipelineConfig

TARGET_BUCKET_VAR = "TARGET_BUCKET"
SCRATCH_DIR_VAR = "SCRATCH_DIR"
FAILURE_POLICY_VAR = "FAILURE_POLICY"
DECODE_KEYS_VAR = "DECODE_KEYS"
REGION_VAR = "AWS_REGION"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def load_config(environ: Optional[Mapping[str, str]] = None) -> PipelineConfig:
    """
    Build a PipelineConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If TARGET_BUCKET is missing or a value is invalid

    Environment Variables:
        TARGET_BUCKET: Destination bucket for thumbnails (required)
        SCRATCH_DIR: Root directory for per-notification scratch space
        FAILURE_POLICY: "fail_fast" (default) or "isolate"
        DECODE_KEYS: URL-decode object keys from events (default true)
        AWS_REGION: Region for the S3 client
    """
    env = os.environ if environ is None else environ

    target_bucket = env.get(TARGET_BUCKET_VAR, "").strip()
    if not target_bucket:
        raise ConfigurationError(
            f"{TARGET_BUCKET_VAR} environment variable is not configured"
        )

    raw_policy = env.get(FAILURE_POLICY_VAR, FailurePolicy.FAIL_FAST.value)
    try:
        failure_policy = FailurePolicy(raw_policy.strip().lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in FailurePolicy)
        raise ConfigurationError(
            f"{FAILURE_POLICY_VAR} must be one of: {choices}; got {raw_policy!r}"
        ) from exc

    decode_keys = _parse_bool(DECODE_KEYS_VAR, env.get(DECODE_KEYS_VAR, "true"))

    try:
        return PipelineConfig(
            target_bucket=target_bucket,
            scratch_root=env.get(SCRATCH_DIR_VAR) or None,
            failure_policy=failure_policy,
            decode_keys=decode_keys,
            region_name=env.get(REGION_VAR) or None,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid pipeline configuration: {exc}") from exc
