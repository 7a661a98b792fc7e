"""
Node Type Detection for Buza Storage

A directory under the storage root is a *folder* when it holds the folder marker
file, a *project* when it holds the project metadata file, and unmanaged
otherwise. Classification only performs the two presence checks, so its cost is
independent of the size of the subtree.
"""

import os
import logging
from typing import Optional

from .errors import StorageIOError
from .folder import FOLDER, PROJECT
from .paths import to_disk

logger = logging.getLogger(__name__)

FOLDER_MARKER_FILE = ".folder"
PROJECT_JSON_FILE = "project.json"


def classify(root: str, path: Optional[str]) -> Optional[str]:
    """
    Determine the node type of the directory at ``path``.

    The folder marker is checked first; a directory that somehow carries both
    markers is therefore reported as a folder.

    Args:
        root: Storage root directory
        path: Node path (None for the storage root)

    Returns:
        "folder", "project", or None when neither marker is present
    """
    full_path = to_disk(root, path)

    if os.path.isfile(os.path.join(full_path, FOLDER_MARKER_FILE)):
        return FOLDER

    if os.path.isfile(os.path.join(full_path, PROJECT_JSON_FILE)):
        return PROJECT

    return None


def is_folder(root: str, path: Optional[str]) -> bool:
    return classify(root, path) == FOLDER


def is_project(root: str, path: Optional[str]) -> bool:
    return classify(root, path) == PROJECT


def write_folder_marker(root: str, path: str) -> None:
    """
    Create the empty marker file that turns the directory at ``path`` into a folder.

    Raises:
        StorageIOError: If the marker cannot be written
    """
    marker_path = os.path.join(to_disk(root, path), FOLDER_MARKER_FILE)
    try:
        with open(marker_path, "w", encoding="utf-8"):
            pass
    except OSError as e:
        raise StorageIOError(f"Failed to write folder marker for '{path}': {e}", source=path) from e
