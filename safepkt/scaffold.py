"""Scaffolding of verification projects from uploaded sources."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from safepkt.file_system import (
    BASE64_ENCODED_SOURCE_EXTENSION,
    decode_base64,
    ensure_directory_exists,
    get_uploaded_source_directory,
    guard_against_missing_source,
)
from safepkt.manifest import make_manifest

TARGET_RVT_DIRECTORY = "/home/rust-verification-tools"

logger = logging.getLogger("safepkt")


def format_project_name(project_id: str) -> str:
    """Prefix a project id so that it is a valid package name."""
    return f"safepkt_{project_id}"


def format_directory_path_to_scaffold(project_id: str) -> str:
    """Return the directory, under the temporary directory, holding a project."""
    return os.path.join(tempfile.gettempdir(), project_id)


def create_project_source_directory(project_id: str) -> str:
    """Create the project's `src` directory and its parents; return its path."""
    source_directory = os.path.join(format_directory_path_to_scaffold(project_id), "src")
    ensure_directory_exists(source_directory)
    return source_directory


def find_source_by_project_id(project_id: str) -> str:
    """Read the base64-encoded source uploaded under a project id."""
    source_path = os.path.join(
        get_uploaded_source_directory(),
        f"{project_id}{BASE64_ENCODED_SOURCE_EXTENSION}",
    )
    guard_against_missing_source(source_path)
    return Path(source_path).read_text(encoding="utf-8")


def _write_decoded_source(project_id: str, file_name: str) -> Path:
    source_directory = create_project_source_directory(project_id)
    target = Path(source_directory, file_name)
    decoded = decode_base64(find_source_by_project_id(project_id))
    target.write_bytes(decoded.encode("utf-8"))
    return target


def create_entry_point(project_id: str) -> None:
    """Write the decoded source of a project as its `src/main.rs`."""
    _write_decoded_source(project_id, "main.rs")


def _parse_id(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise ValueError(f"invalid identifier: {value!r}")
    return parsed


def create_library(project_id: str) -> None:
    """Write the decoded source as `src/lib.rs` and hand the project to UID_GID."""
    _write_decoded_source(project_id, "lib.rs")

    project = format_directory_path_to_scaffold(project_id)
    parts = os.environ["UID_GID"].split(":")
    uid = _parse_id(parts[0])
    gid = _parse_id(parts[-1])

    logger.debug("Owner should have uid: %s", uid)
    logger.debug("Group should have gid: %s", gid)

    try:
        os.chown(project, uid, gid)
    except OSError as exc:
        raise RuntimeError("Can not change project directory owner.") from exc
    try:
        os.chmod(project, 0o770)
    except OSError as exc:
        raise RuntimeError("Can not change project directory permissions.") from exc


def create_manifest(project_id: str) -> None:
    """Write the Cargo manifest at the root of a scaffolded project."""
    contents = make_manifest(format_project_name(project_id), TARGET_RVT_DIRECTORY)
    manifest_path = Path(format_directory_path_to_scaffold(project_id), "Cargo.toml")
    manifest_path.write_bytes(contents.encode("utf-8"))


def scaffold_project(project_id: str) -> None:
    """Scaffold a binary project; nothing is done when its source is unavailable."""
    try:
        create_entry_point(project_id)
    except (OSError, KeyError):
        return
    create_manifest(project_id)


def scaffold_library(project_id: str) -> None:
    """Scaffold a library project; nothing more is done when its source is unavailable."""
    try:
        create_library(project_id)
    except (OSError, KeyError):
        return
    create_manifest(project_id)