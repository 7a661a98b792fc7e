"""
Low-level filesystem primitives shared by the storage components.

Every structural mutation in the engine reduces to one of these calls. OSErrors
are wrapped into StorageIOError so callers only deal with storage error kinds.
"""

import os
import json
import shutil
import tempfile
import logging
from typing import Any, Optional

from .errors import StorageIOError
from .paths import to_disk

logger = logging.getLogger(__name__)


def node_exists(root: str, path: Optional[str]) -> bool:
    """True if anything (file, directory or dangling link) occupies ``path``."""
    return os.path.lexists(to_disk(root, path))


def same_node(root: str, path_a: str, path_b: str) -> bool:
    """True if two paths resolve to the same directory (case-insensitive filesystems)."""
    try:
        return os.path.samefile(to_disk(root, path_a), to_disk(root, path_b))
    except OSError:
        return False


def rename_node(root: str, source: str, target: str) -> None:
    """
    Rename the directory at ``source`` to ``target`` in a single call.

    Raises:
        StorageIOError: If the rename fails
    """
    try:
        os.rename(to_disk(root, source), to_disk(root, target))
    except OSError as e:
        raise StorageIOError(f"Failed to rename '{source}' to '{target}': {e}",
                             source=source, target=target) from e


def make_directory(root: str, path: str) -> None:
    """Create the directory for ``path``; its parent must already exist."""
    try:
        os.mkdir(to_disk(root, path))
    except OSError as e:
        raise StorageIOError(f"Failed to create directory '{path}': {e}", source=path) from e


def remove_tree(root: str, path: str) -> None:
    """Remove the directory at ``path`` and everything below it."""
    try:
        shutil.rmtree(to_disk(root, path))
    except OSError as e:
        raise StorageIOError(f"Failed to remove '{path}': {e}", source=path) from e


def atomic_write_text(filepath: str, text: str) -> None:
    """
    Perform atomic file write using temporary file and replace operation.

    The temporary file is created in the target directory so the final replace
    stays on one filesystem.

    Args:
        filepath: Absolute target file path
        text: Content to write

    Raises:
        StorageIOError: If write operation fails
    """
    temp_dir = os.path.dirname(filepath)
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            newline='',
            dir=temp_dir,
            prefix='.',
            suffix='.tmp',
            delete=False
        ) as temp_file:
            temp_path = temp_file.name
            temp_file.write(text)

        os.replace(temp_path, filepath)

    except OSError as e:
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as cleanup_e:
                logger.warning(f"Could not remove temporary file {temp_path}: {cleanup_e}")
        raise StorageIOError(f"Atomic write failed for {filepath}: {e}", source=filepath) from e


def atomic_write_json(filepath: str, data: Any) -> None:
    """Serialize ``data`` as indented JSON and write it atomically."""
    atomic_write_text(filepath, json.dumps(data, indent=2, ensure_ascii=False))


def read_text(filepath: str) -> str:
    """Read a UTF-8 text file without newline translation."""
    try:
        with open(filepath, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise StorageIOError(f"File {filepath} is not valid UTF-8: {e}", source=filepath) from e
    except OSError as e:
        raise StorageIOError(f"Failed to read {filepath}: {e}", source=filepath) from e
