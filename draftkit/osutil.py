"""Filesystem helpers and template tree copying."""

from __future__ import annotations

import logging
import os
import posixpath
import sys
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

if TYPE_CHECKING:
    from draftkit.templatewriter import TemplateWriter

log = logging.getLogger(__name__)

_ERROR_PRIVILEGE_NOT_HELD = 0x522
_SKIPPED_FILE = "draft.yaml"

PathLike = Union[str, "os.PathLike[str]"]


def exists(path: PathLike) -> bool:
    """Whether ``path`` exists; other stat failures are raised."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def symlink_with_fallback(oldname: PathLike, newname: PathLike) -> None:
    """Symlink ``newname`` to ``oldname``, moving the file instead when
    Windows refuses the symlink for lack of privilege."""
    try:
        os.symlink(oldname, newname)
    except OSError as exc:
        if (
            sys.platform == "win32"
            and getattr(exc, "winerror", None) == _ERROR_PRIVILEGE_NOT_HELD
        ):
            os.rename(oldname, newname)
        else:
            raise


def ensure_directory(directory: PathLike) -> None:
    """Create ``directory`` if missing; fail if it exists as something else."""
    try:
        info = os.stat(directory)
    except OSError:
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(f"could not create {directory}: {exc}") from exc
        return
    if not os.path.isdir(directory) or info is None:
        raise NotADirectoryError(f"{directory} must be a directory")


def ensure_file(file: PathLike) -> None:
    """Create an empty ``file`` if missing; fail if it is a directory."""
    try:
        os.stat(file)
    except OSError:
        try:
            with open(file, "wb"):
                pass
        except OSError as exc:
            raise OSError(f"could not create {file}: {exc}") from exc
        return
    if os.path.isdir(file):
        raise IsADirectoryError(f"{file} must not be a directory")


def _replace_template_variables(content: bytes, custom_inputs: Mapping[str, str]) -> bytes:
    for old, new in custom_inputs.items():
        log.debug("replacing %s with %s", old, new)
        content = content.replace(b"{{" + old.encode() + b"}}", new.encode())
    return content


def _apply_name_override(
    file_name: str,
    src_path: str,
    dest_path: str,
    name_overrides: Optional[Mapping[str, str]],
) -> str:
    if name_overrides is None:
        return file_name
    log.debug("checking name override for srcPath: %s, destPath: %s", src_path, dest_path)
    prefix = name_overrides.get(file_name, "")
    if prefix:
        log.debug("overriding file: %s with prefix: %s", dest_path, prefix)
        return f"{prefix}{file_name}"
    return file_name


def _copy_tree(
    node: Any,
    src: str,
    dest: str,
    name_overrides: Optional[Mapping[str, str]],
    custom_inputs: Mapping[str, str],
    writer: "TemplateWriter",
) -> None:
    for entry in sorted(node.iterdir(), key=lambda item: item.name):
        if entry.name == _SKIPPED_FILE:
            continue
        src_path = posixpath.join(src, entry.name)
        dest_path = posixpath.join(dest, entry.name)
        if entry.is_dir():
            writer.ensure_directory(dest_path)
            _copy_tree(entry, src_path, dest_path, name_overrides, custom_inputs, writer)
        else:
            content = _replace_template_variables(entry.read_bytes(), custom_inputs)
            file_name = _apply_name_override(entry.name, src_path, dest_path, name_overrides)
            writer.write_file(f"{dest}/{file_name}", content)


def copy_dir(
    root: Any,
    src: str,
    dest: str,
    name_overrides: Optional[Mapping[str, str]],
    custom_inputs: Optional[Mapping[str, str]],
    writer: "TemplateWriter",
) -> None:
    """Copy the template tree ``src`` under ``root`` to ``dest`` through ``writer``.

    ``root`` is a directory path or a traversable resource. ``{{NAME}}``
    placeholders are replaced from ``custom_inputs``; ``name_overrides``
    maps file names to prefixes put in front of them. Files named
    ``draft.yaml`` are left out.
    """
    node = Path(root) if isinstance(root, (str, os.PathLike)) else root
    for part in PurePosixPath(src).parts:
        node = node.joinpath(part)
    _copy_tree(node, src, dest, name_overrides, dict(custom_inputs or {}), writer)