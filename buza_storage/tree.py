"""
Tree Builder for Buza Storage

Lists directories, classifies each entry and assembles the lazily loaded
FolderTree. Only one level below the root is loaded eagerly; deeper folders are
loaded on demand with ``load_folder`` / ``load_folder_in_tree`` and merged into
the caller's tree, which is a plain dictionary insert.
"""

import os
import logging
from typing import List, Optional

from .detector import classify
from .errors import NotFoundError, StorageIOError
from .folder import FOLDER, Folder, FolderItem, FolderTree, sort_items
from .paths import InvalidNameError, join, leaf_name, normalize, parent_of, to_disk, validate_name

logger = logging.getLogger(__name__)


def list_children(root: str, path: Optional[str] = None) -> List[FolderItem]:
    """
    List the managed children of a directory.

    Hidden entries and plain files are skipped, as are subdirectories that carry
    neither marker or whose name is not a valid node name. Results are sorted
    folders first, then by name (case-sensitive), which is a user-facing contract.

    Args:
        root: Storage root directory
        path: Directory path relative to the root (None for the root)

    Returns:
        Sorted list of FolderItems

    Raises:
        NotFoundError: If ``path`` does not exist or is not a directory
        StorageIOError: If the directory cannot be read
    """
    path = normalize(path)
    full_path = to_disk(root, path)

    if not os.path.isdir(full_path):
        raise NotFoundError(f"Path '{path or ''}' does not exist or is not a directory", source=path)

    try:
        entries = list(os.scandir(full_path))
    except FileNotFoundError as e:
        raise NotFoundError(f"Path '{path or ''}' disappeared while listing", source=path) from e
    except OSError as e:
        raise StorageIOError(f"Failed to list '{path or ''}': {e}", source=path) from e

    items = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError:
            logger.warning(f"Skipping unreadable entry '{entry.path}'")
            continue

        try:
            valid = validate_name(entry.name) == entry.name
        except InvalidNameError:
            valid = False
        if not valid:
            logger.warning(f"Skipping entry with an invalid name '{entry.path}'")
            continue

        item_path = join(path, entry.name)
        node_type = classify(root, item_path)
        if node_type is None:
            continue

        items.append(FolderItem(node_type, entry.name, item_path))

    return sort_items(items)


def load_folder(root: str, path: str) -> Folder:
    """
    Load a single folder with its immediate children.

    Args:
        root: Storage root directory
        path: Folder path

    Returns:
        Folder with ``is_expanded`` set to False

    Raises:
        NotFoundError: If ``path`` does not exist or is not a directory
    """
    path = normalize(path)
    if path is None:
        raise NotFoundError("The storage root is not a loadable folder", source=path)

    children = list_children(root, path)
    return Folder(leaf_name(path), path, parent_of(path), children)


def build_tree(root: str) -> FolderTree:
    """
    Build the initial tree: the root listing plus every root-level folder.

    Args:
        root: Storage root directory

    Returns:
        FolderTree with one level of eager loading below the root
    """
    root_items = list_children(root, None)
    folders = {}

    for item in root_items:
        if item.type == FOLDER:
            folders[item.path] = load_folder(root, item.path)

    return FolderTree(root_items, folders)


def merge_folder(tree: FolderTree, folder: Folder) -> FolderTree:
    """Insert a newly loaded folder into a tree, returning a new tree."""
    return tree.with_folder(folder)


def load_folder_in_tree(root: str, tree: FolderTree, path: str) -> FolderTree:
    """
    Load ``path`` (and one level of its subfolders) into an existing tree.

    Used when a folder is expanded. Subfolders that are already loaded are kept
    as they are.

    Args:
        root: Storage root directory
        tree: Tree currently held by the caller (not modified)
        path: Folder being expanded

    Returns:
        New FolderTree with the loaded folders merged in
    """
    folder = load_folder(root, path)
    folders = dict(tree.folders)
    folders[folder.path] = folder

    for child in folder.child_folders():
        if child.path not in folders:
            folders[child.path] = load_folder(root, child.path)

    return FolderTree(tree.root_items, folders)
