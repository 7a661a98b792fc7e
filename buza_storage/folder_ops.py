"""
Folder Operations for Buza Storage

Create, rename and delete folder nodes. Each operation is built from single
directory renames, so children never need their paths rewritten individually:
they live relative to the directory that moved.

Deleting a folder promotes its children to the parent level first. The check for
sibling name collisions runs over every child before the first rename, so a
delete either promotes everything or leaves the folder untouched.
"""

import uuid
import logging
from typing import List, Optional

from .detector import classify, write_folder_marker
from .errors import NameCollisionError, NotFoundError, StorageIOError, UniqueNameExhaustedError
from .folder import FOLDER, Folder, FolderItem
from .fs import make_directory, node_exists, remove_tree, rename_node, same_node
from .paths import join, leaf_name, normalize, parent_of, validate_name, validate_path
from .tree import list_children, load_folder

logger = logging.getLogger(__name__)

DEFAULT_FOLDER_NAME = "New Folder"
MAX_UNIQUE_NAME_ATTEMPTS = 1000


def require_parent_folder(root: str, parent_path: Optional[str]) -> None:
    """Raise NotFoundError unless ``parent_path`` is the root or a folder."""
    if parent_path is None:
        return
    if classify(root, parent_path) != FOLDER:
        raise NotFoundError(f"Parent path '{parent_path}' is not a valid folder", source=parent_path)


def _require_folder(root: str, path: str) -> None:
    if classify(root, path) != FOLDER:
        raise NotFoundError(f"Path '{path}' is not a valid folder", source=path)


def generate_unique_name(root: str, parent_path: Optional[str], base_name: str,
                         max_attempts: int = MAX_UNIQUE_NAME_ATTEMPTS) -> str:
    """
    Generate a sibling name that is free under ``parent_path``.

    Probes ``base_name``, then ``base_name-1``, ``base_name-2`` and so on.

    Args:
        root: Storage root directory
        parent_path: Parent folder path (None for root)
        base_name: Preferred name
        max_attempts: Number of numeric suffixes to try before giving up

    Returns:
        The first free name

    Raises:
        UniqueNameExhaustedError: If every candidate up to the cap is taken
    """
    parent_path = normalize(parent_path)
    base_name = validate_name(base_name)

    if not node_exists(root, join(parent_path, base_name)):
        return base_name

    for suffix in range(1, max_attempts + 1):
        candidate = f"{base_name}-{suffix}"
        if not node_exists(root, join(parent_path, candidate)):
            return candidate

    raise UniqueNameExhaustedError(
        f"Unable to generate unique name for '{base_name}' after {max_attempts} attempts",
        source=join(parent_path, base_name)
    )


def create_folder(root: str, parent_path: Optional[str], name: str = DEFAULT_FOLDER_NAME,
                  max_attempts: int = MAX_UNIQUE_NAME_ATTEMPTS) -> Folder:
    """
    Create a new, empty folder.

    A taken name is resolved with a numeric suffix rather than rejected. If the
    marker cannot be written after the directory was created, the directory is
    left in place (it classifies as unmanaged) and the error is raised.

    Args:
        root: Storage root directory
        parent_path: Parent folder path (None for root)
        name: Desired folder name

    Returns:
        The created Folder

    Raises:
        NotFoundError: If the parent is not a folder
        StorageIOError: If the directory or marker cannot be written
    """
    parent_path = validate_path(parent_path)
    require_parent_folder(root, parent_path)

    unique_name = generate_unique_name(root, parent_path, name, max_attempts)
    folder_path = join(parent_path, unique_name)

    make_directory(root, folder_path)
    write_folder_marker(root, folder_path)

    logger.info(f"Created folder '{folder_path}'")
    return Folder(unique_name, folder_path, parent_path)


def rename_folder(root: str, path: str, new_name: str) -> Folder:
    """
    Rename a folder in place.

    Args:
        root: Storage root directory
        path: Current folder path
        new_name: New folder name

    Returns:
        The folder freshly loaded at its new path

    Raises:
        NotFoundError: If ``path`` is not a folder
        NameCollisionError: If a sibling already uses ``new_name``
        StorageIOError: If the rename fails
    """
    new_path = rename_in_place(root, path, new_name, FOLDER)
    return load_folder(root, new_path)


def rename_in_place(root: str, path: str, new_name: str, node_type: str) -> str:
    """
    Rename a folder or project without changing its parent.

    Args:
        root: Storage root directory
        path: Current node path
        new_name: New leaf name
        node_type: Type the node must classify as

    Returns:
        The new node path (the old one if the name did not change)

    Raises:
        NotFoundError: If ``path`` is not a node of ``node_type``
        NameCollisionError: If a sibling already uses ``new_name``
        StorageIOError: If the rename fails
    """
    path = validate_path(path)
    new_name = validate_name(new_name)
    if path is None:
        raise NotFoundError("The storage root cannot be renamed")
    if classify(root, path) != node_type:
        raise NotFoundError(f"Path '{path}' is not a valid {node_type}", source=path)

    new_path = join(parent_of(path), new_name)
    if new_path == path:
        return path

    # a case-only rename on a case-insensitive filesystem finds the node itself
    if node_exists(root, new_path) and not same_node(root, path, new_path):
        raise NameCollisionError(
            f"A folder or project with name '{new_name}' already exists at this level",
            source=path, target=new_path
        )

    rename_node(root, path, new_path)
    logger.info(f"Renamed {node_type} '{path}' to '{new_path}'")
    return new_path


def delete_folder(root: str, path: str) -> List[FolderItem]:
    """
    Delete a folder, promoting its children to the parent level.

    All children are checked against the parent level before anything moves; a
    collision aborts the delete with the filesystem unchanged. A child that has
    the same name as the folder being deleted is allowed: the folder is first
    moved aside to a hidden staging name so the child can take its place.

    Args:
        root: Storage root directory
        path: Folder path

    Returns:
        The promoted items with their new paths

    Raises:
        NotFoundError: If ``path`` is not a folder
        NameCollisionError: If a child name is already taken at the parent level
        StorageIOError: If a rename fails part-way; ``completed`` lists the
            items moved before the failure (the staged folder first, when it
            was moved aside) and ``staged_path`` names the staging location
    """
    path = validate_path(path)
    if path is None:
        raise NotFoundError("The storage root cannot be deleted")
    _require_folder(root, path)

    parent_path = parent_of(path)
    folder_name = leaf_name(path)
    children = list_children(root, path)

    needs_staging = False
    for child in children:
        target = join(parent_path, child.name)
        if child.name == folder_name:
            needs_staging = True
            continue
        if node_exists(root, target):
            raise NameCollisionError(
                f"Cannot delete folder '{path}': an item named '{child.name}' already exists in the parent",
                source=child.path, target=target
            )

    working_path = path
    staged_path = None
    moved_items = []
    if needs_staging:
        staged_path = join(parent_path, f".{folder_name}.deleting-{uuid.uuid4().hex[:8]}")
        rename_node(root, path, staged_path)
        working_path = staged_path
        moved_items.append(FolderItem(FOLDER, leaf_name(staged_path), staged_path))

    for child in children:
        source = join(working_path, child.name)
        target = join(parent_path, child.name)
        try:
            rename_node(root, source, target)
        except StorageIOError as e:
            logger.error(f"Folder delete of '{path}' stopped after moving {len(moved_items)} item(s): {e}")
            raise StorageIOError(
                f"Failed to promote '{child.path}' while deleting '{path}': {e.message}",
                source=source, target=target, completed=moved_items,
                staged_path=staged_path
            ) from e
        moved_items.append(child.with_path(target))

    try:
        remove_tree(root, working_path)
    except StorageIOError as e:
        raise StorageIOError(
            f"Promoted all children but failed to remove folder '{path}': {e.message}",
            source=path, completed=moved_items, staged_path=staged_path
        ) from e

    promoted = [item for item in moved_items if item.path != staged_path]
    logger.info(f"Deleted folder '{path}' ({len(promoted)} item(s) moved to parent)")
    return promoted
