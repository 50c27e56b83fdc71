import pytest

from draftkit.osutil import copy_dir
from draftkit.templatewriter import FileMapWriter, LocalFSWriter, TemplateWriter


@pytest.fixture
def dockerfiles(tmp_path):
    base = tmp_path / "dockerfiles" / "javascript"
    base.mkdir(parents=True)
    (base / "Dockerfile").write_text("FROM node\nEXPOSE {{PORT}}\n")
    (base / ".dockerignore").write_text("node_modules\n")
    (base / "draft.yaml").write_text("language: javascript\n")
    return tmp_path


def test_copy_dir_to_file_map(dockerfiles):
    writer = FileMapWriter()
    copy_dir(dockerfiles, "dockerfiles/javascript", "/test/dir", None, {"PORT": "8080"}, writer)
    assert writer.file_map["/test/dir/Dockerfile"] == b"FROM node\nEXPOSE 8080\n"
    assert set(writer.file_map) == {"/test/dir/Dockerfile", "/test/dir/.dockerignore"}


def test_file_map_writer_overwrites_and_accepts_any_directory():
    writer = FileMapWriter()
    writer.ensure_directory("/nowhere")
    writer.write_file("a.txt", b"one")
    writer.write_file("a.txt", b"two")
    assert writer.file_map == {"a.txt": b"two"}
    assert isinstance(writer, TemplateWriter) and writer.file_map["a.txt"] == b"two"


def test_local_fs_writer_round_trip(tmp_path):
    writer = LocalFSWriter()
    target = tmp_path / "out" / "file.txt"
    writer.ensure_directory(str(target.parent))
    writer.write_file(str(target), b"hello")
    assert target.read_bytes() == b"hello"
    writer.write_file(str(target), b"hi")
    assert target.read_bytes() == b"hi"


def test_local_fs_writer_ensure_directory_on_file(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(NotADirectoryError):
        LocalFSWriter().ensure_directory(str(target))


def test_local_fs_writer_missing_parent(tmp_path):
    with pytest.raises(FileNotFoundError):
        LocalFSWriter().write_file(str(tmp_path / "missing" / "f.txt"), b"x")


def test_copy_dir_to_local_fs(dockerfiles, tmp_path):
    dest = tmp_path / "rendered"
    dest.mkdir()
    copy_dir(dockerfiles, "dockerfiles/javascript", str(dest), None, {"PORT": "3000"}, LocalFSWriter())
    assert (dest / "Dockerfile").read_text() == "FROM node\nEXPOSE 3000\n"
    assert not (dest / "draft.yaml").exists()