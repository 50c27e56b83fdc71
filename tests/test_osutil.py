import os

import pytest

from draftkit.osutil import (
    copy_dir,
    ensure_directory,
    ensure_file,
    exists,
    symlink_with_fallback,
)
from draftkit.templatewriter import FileMapWriter


class RecordingWriter:
    def __init__(self):
        self.files = {}
        self.directories = []

    def write_file(self, path, data):
        self.files[path] = data

    def ensure_directory(self, path):
        self.directories.append(path)


def test_exists(tmp_path):
    name = tmp_path / "osutil"
    name.write_text("x")
    assert exists(name) is True
    name.unlink()
    assert exists(name) is False


def test_symlink_with_fallback(tmp_path):
    old = tmp_path / "foo.txt"
    new = tmp_path / "bar.txt"
    old.write_text("content")
    symlink_with_fallback(str(old), str(new))
    assert new.read_text() == "content"


def test_symlink_to_existing_target_fails(tmp_path):
    old = tmp_path / "foo.txt"
    new = tmp_path / "bar.txt"
    old.write_text("a")
    new.write_text("b")
    with pytest.raises(OSError):
        symlink_with_fallback(str(old), str(new))


def test_ensure_dir(tmp_path):
    valid = tmp_path / "templates"
    valid.mkdir()
    ensure_directory(valid)
    assert valid.is_dir()

    missing = tmp_path / "EnsureDirTest" / "nested"
    ensure_directory(missing)
    assert missing.is_dir()


def test_ensure_dir_on_file_fails(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(NotADirectoryError):
        ensure_directory(target)


def test_ensure_file(tmp_path):
    valid = tmp_path / "ensure_file.yaml"
    valid.write_text("kept: true\n")
    ensure_file(valid)
    assert valid.read_text() == "kept: true\n"

    created = tmp_path / "ensure_file_create.yaml"
    ensure_file(created)
    assert created.is_file()
    assert created.stat().st_size == 0


def test_ensure_file_on_directory_fails(tmp_path):
    with pytest.raises(IsADirectoryError):
        ensure_file(tmp_path)


@pytest.fixture
def template_root(tmp_path):
    base = tmp_path / "templates" / "app"
    (base / "static").mkdir(parents=True)
    (base / "Dockerfile").write_text("EXPOSE {{PORT}}\nFROM {{IMAGE}}\n")
    (base / "draft.yaml").write_text("variables: []\n")
    (base / "static" / "index.html").write_text("<p>{{PORT}}</p>")
    return tmp_path / "templates"


def test_copy_dir_replaces_variables_and_skips_draft_yaml(template_root):
    writer = RecordingWriter()
    copy_dir(template_root, "app", "/out", None, {"PORT": "8080", "IMAGE": "node"}, writer)
    assert writer.files["/out/Dockerfile"] == b"EXPOSE 8080\nFROM node\n"
    assert writer.files["/out/static/index.html"] == b"<p>8080</p>"
    assert "/out/draft.yaml" not in writer.files
    assert writer.directories == ["/out/static"]


def test_copy_dir_applies_name_overrides(template_root):
    writer = FileMapWriter()
    copy_dir(template_root, "app", "/out", {"Dockerfile": "prod-"}, {}, writer)
    assert "/out/prod-Dockerfile" in writer.file_map
    assert "/out/Dockerfile" not in writer.file_map
    assert writer.file_map["/out/static/index.html"] == b"<p>{{PORT}}</p>"


def test_copy_dir_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        copy_dir(tmp_path, "nope", "/out", None, {}, FileMapWriter())


def test_copy_dir_accepts_string_root(template_root):
    writer = FileMapWriter()
    copy_dir(os.fspath(template_root), "app/static", "dest", None, {"PORT": "1"}, writer)
    assert writer.file_map == {"dest/index.html": b"<p>1</p>"}