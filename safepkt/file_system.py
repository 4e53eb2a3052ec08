"""Storage of uploaded sources in the file system."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from pathlib import Path

BASE64_ENCODED_SOURCE_EXTENSION = ".rs.b64"

logger = logging.getLogger("safepkt")


class MissingSourceError(FileNotFoundError):
    """Raised when an expected source file does not exist."""


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else bytes(content)


def hash_content(content: bytes | str) -> str:
    """Return the first ten hex digits of the SHA-256 digest of the content."""
    return hashlib.sha256(_as_bytes(content)).hexdigest()[:10]


def ensure_directory_exists(path: str | os.PathLike) -> Path:
    """Create a directory and its parents when missing; return its path."""
    directory = Path(path)
    if not directory.exists():
        directory.mkdir(parents=True)
    return directory


def guard_against_missing_source(path: str | os.PathLike) -> None:
    """Raise MissingSourceError unless something exists at the path."""
    if not Path(path).exists():
        message = f'Can not find file at path "{os.fspath(path)}"'
        logger.error(message)
        raise MissingSourceError(message)


def get_uploaded_source_directory() -> str:
    """Return the directory holding uploaded sources (SOURCE_DIRECTORY)."""
    return os.environ["SOURCE_DIRECTORY"]


def save_content_in_file_system(content: bytes | str) -> tuple[str, str]:
    """Write content to a file named after its hash; return (file path, project id)."""
    data = _as_bytes(content)
    project_id = hash_content(data)
    file_path = os.path.join(
        get_uploaded_source_directory(),
        f"{project_id}{BASE64_ENCODED_SOURCE_EXTENSION}",
    )
    Path(file_path).write_bytes(data)
    return file_path, project_id


def decode_base64(content: bytes | str) -> str:
    """Decode base64 content into UTF-8 text."""
    return base64.b64decode(_as_bytes(content), validate=True).decode("utf-8")