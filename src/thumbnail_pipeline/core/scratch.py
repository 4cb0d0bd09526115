"""Scoped scratch storage for the bytes of a single notification."""

import os
import shutil
import tempfile
from typing import Optional

from .image_utils import THUMBNAIL_FILE_PREFIX
from .logging_config import get_logger


class ScratchSpace:
    """
    A private temporary directory acquired for one notification.

    Use as a context manager; the directory and everything written into it
    are removed on exit, whether the block succeeded or raised.
    """

    def __init__(self, root: Optional[str] = None, prefix: str = "thumbnail-pipeline-"):
        self._root = root
        self._prefix = prefix
        self._path: Optional[str] = None
        self._logger = get_logger("scratch")

    @property
    def path(self) -> str:
        if self._path is None:
            raise RuntimeError("ScratchSpace used outside of its 'with' block")
        return self._path

    def __enter__(self) -> "ScratchSpace":
        if self._root:
            os.makedirs(self._root, exist_ok=True)
        self._path = tempfile.mkdtemp(prefix=self._prefix, dir=self._root)
        self._logger.debug(f"Acquired scratch directory {self._path}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        path, self._path = self._path, None
        if path is not None:
            shutil.rmtree(path, ignore_errors=True)
            self._logger.debug(f"Released scratch directory {path}")
        return False

    def _resolve(self, relative: str) -> str:
        # Object keys may contain "/" and ".."; keep every file inside the scratch root
        root = os.path.realpath(self.path)
        target = os.path.realpath(os.path.join(root, relative))
        if os.path.commonpath([root, target]) != root:
            raise ValueError(f"Key {relative!r} escapes the scratch directory")
        os.makedirs(os.path.dirname(target), exist_ok=True)
        return target

    def source_path(self, key: str) -> str:
        """Path for the downloaded source object: <scratch>/<key>."""
        return self._resolve(key)

    def thumbnail_path(self, key: str) -> str:
        """Path for the generated thumbnail: <scratch>/thumbnail-<key>."""
        return self._resolve(THUMBNAIL_FILE_PREFIX + key)

    def discard(self, path: str) -> None:
        """Remove a file from the scratch directory before the scope ends."""
        if os.path.exists(path):
            os.remove(path)
