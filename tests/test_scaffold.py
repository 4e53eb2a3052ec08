import os
import stat
import tempfile
from pathlib import Path

import pytest

from safepkt import scaffold
from safepkt.file_system import MissingSourceError

ENCODED_SOURCE = "Zm4gbWFpbigpIHt9"
DECODED_SOURCE = "fn main() {}"


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    temp_root = tmp_path / "tmp"
    temp_root.mkdir()
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp_root))
    monkeypatch.setenv("SOURCE_DIRECTORY", str(uploads))
    return temp_root, uploads


def _upload(uploads: Path, project_id: str, content: str = ENCODED_SOURCE) -> None:
    (uploads / f"{project_id}.rs.b64").write_text(content)


def test_format_project_name_starts_with_a_letter():
    project_name = scaffold.format_project_name("0_invalid_package_name_starting_with_a_number")
    assert project_name == "safepkt_0_invalid_package_name_starting_with_a_number"
    assert project_name[0].isalpha()


def test_format_directory_path_to_scaffold(monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", "/tmp")
    assert scaffold.format_directory_path_to_scaffold("project_dir") == "/tmp/project_dir"


def test_creates_a_project_source_directory(workspace):
    temp_root, _ = workspace
    actual = scaffold.create_project_source_directory("project_id")
    assert actual == str(temp_root / "project_id" / "src")
    assert Path(actual).is_dir()


def test_finds_a_source_in_the_file_system(workspace):
    _, uploads = workspace
    _upload(uploads, "project_id")
    assert scaffold.find_source_by_project_id("project_id") == ENCODED_SOURCE


def test_find_missing_source_raises(workspace):
    with pytest.raises(MissingSourceError):
        scaffold.find_source_by_project_id("absent")


def test_creates_an_entry_point(workspace):
    temp_root, uploads = workspace
    _upload(uploads, "abc_my_project_id")
    assert scaffold.create_entry_point("abc_my_project_id") is None
    entry_point = temp_root / "abc_my_project_id" / "src" / "main.rs"
    assert entry_point.read_text() == DECODED_SOURCE


def test_creates_a_project_manifest(workspace):
    temp_root, _ = workspace
    (temp_root / "my_project_id").mkdir()
    assert scaffold.create_manifest("my_project_id") is None
    manifest = (temp_root / "my_project_id" / "Cargo.toml").read_text()
    assert "safepkt_my_project_id" in manifest
    assert scaffold.TARGET_RVT_DIRECTORY + "/verification-annotations" in manifest


def test_create_manifest_without_project_directory_fails(workspace):
    with pytest.raises(FileNotFoundError):
        scaffold.create_manifest("no_such_project")


def test_scaffold_project(workspace):
    temp_root, uploads = workspace
    _upload(uploads, "my_project_id")
    assert scaffold.scaffold_project("my_project_id") is None
    project = temp_root / "my_project_id"
    assert (project / "src" / "main.rs").read_text() == DECODED_SOURCE
    assert (project / "Cargo.toml").exists()


def test_scaffold_project_without_source_writes_no_manifest(workspace):
    temp_root, _ = workspace
    assert scaffold.scaffold_project("missing_project") is None
    assert not (temp_root / "missing_project" / "Cargo.toml").exists()


def test_create_library_sets_owner_and_permissions(workspace, monkeypatch):
    temp_root, uploads = workspace
    monkeypatch.setenv("UID_GID", f"{os.getuid()}:{os.getgid()}")
    _upload(uploads, "lib_project")
    assert scaffold.create_library("lib_project") is None
    project = temp_root / "lib_project"
    assert (project / "src" / "lib.rs").read_text() == DECODED_SOURCE
    assert stat.S_IMODE(project.stat().st_mode) == 0o770
    assert project.stat().st_uid == os.getuid()


def test_create_library_requires_uid_gid(workspace, monkeypatch):
    _, uploads = workspace
    monkeypatch.delenv("UID_GID", raising=False)
    _upload(uploads, "lib_project")
    with pytest.raises(KeyError):
        scaffold.create_library("lib_project")


def test_create_library_rejects_malformed_uid_gid(workspace, monkeypatch):
    _, uploads = workspace
    monkeypatch.setenv("UID_GID", "abc:def")
    _upload(uploads, "lib_project")
    with pytest.raises(ValueError):
        scaffold.create_library("lib_project")


def test_scaffold_library(workspace, monkeypatch):
    temp_root, uploads = workspace
    monkeypatch.setenv("UID_GID", f"{os.getuid()}:{os.getgid()}")
    _upload(uploads, "lib_project")
    assert scaffold.scaffold_library("lib_project") is None
    manifest = (temp_root / "lib_project" / "Cargo.toml").read_text()
    assert 'name = "safepkt_lib_project"' in manifest


def test_scaffold_library_without_uid_gid_writes_no_manifest(workspace, monkeypatch):
    temp_root, uploads = workspace
    monkeypatch.delenv("UID_GID", raising=False)
    _upload(uploads, "lib_project")
    assert scaffold.scaffold_library("lib_project") is None
    assert (temp_root / "lib_project" / "src" / "lib.rs").exists()
    assert not (temp_root / "lib_project" / "Cargo.toml").exists()