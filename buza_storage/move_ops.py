"""
Move Operations for Buza Storage

Relocate a project or a folder subtree under a new parent. A move is validated
completely (cycle check, target type, destination collision) before the single
rename that performs it; nothing is ever copied.
"""

import logging
from typing import Optional

from .detector import classify
from .errors import InvalidMoveError, NameCollisionError, NotFoundError
from .folder import FOLDER, PROJECT
from .fs import node_exists, rename_node
from .paths import is_descendant_or_self, join, leaf_name, validate_path

logger = logging.getLogger(__name__)


def is_valid_move_target(source_path: str, target_path: Optional[str]) -> bool:
    """
    Check that moving ``source_path`` under ``target_path`` creates no cycle.

    Args:
        source_path: Path of the item being moved
        target_path: Destination folder path (None for root)

    Returns:
        False if the target is the source itself or one of its descendants

    Example:
        >>> is_valid_move_target("A", "A/B")
        False
        >>> is_valid_move_target("A/B", "A")
        True
    """
    if not target_path:
        return True

    if target_path == source_path:
        return False

    return not is_descendant_or_self(source_path, target_path)


def _move(root: str, source_path: str, target_folder_path: Optional[str], kind: str) -> str:
    name = leaf_name(source_path)
    new_path = join(target_folder_path, name)

    if new_path == source_path:
        return source_path

    if target_folder_path is not None and classify(root, target_folder_path) != FOLDER:
        raise InvalidMoveError(
            f"Target path '{target_folder_path}' is not a valid folder",
            source=source_path, target=target_folder_path
        )

    if node_exists(root, new_path):
        raise NameCollisionError(
            f"An item with name '{name}' already exists at the target location",
            source=source_path, target=new_path
        )

    rename_node(root, source_path, new_path)
    logger.info(f"Moved {kind} '{source_path}' to '{new_path}'")
    return new_path


def move_project(root: str, project_path: str, target_folder_path: Optional[str]) -> str:
    """
    Move a project into a folder (or to the root).

    Args:
        root: Storage root directory
        project_path: Current project path
        target_folder_path: Destination folder (None for root)

    Returns:
        The new project path (unchanged if it already lives there)

    Raises:
        NotFoundError: If ``project_path`` is not a project
        InvalidMoveError: If the target is not a folder
        NameCollisionError: If the destination name is taken
    """
    project_path = validate_path(project_path)
    target_folder_path = validate_path(target_folder_path)

    if project_path is None or classify(root, project_path) != PROJECT:
        raise NotFoundError(f"Path '{project_path}' is not a valid project",
                            source=project_path, target=target_folder_path)

    return _move(root, project_path, target_folder_path, PROJECT)


def move_folder(root: str, folder_path: str, target_folder_path: Optional[str]) -> str:
    """
    Move a folder and its whole subtree into another folder (or to the root).

    Args:
        root: Storage root directory
        folder_path: Current folder path
        target_folder_path: Destination folder (None for root)

    Returns:
        The new folder path (unchanged if it already lives there)

    Raises:
        NotFoundError: If ``folder_path`` is not a folder
        InvalidMoveError: If the move would put the folder inside itself or
            the target is not a folder
        NameCollisionError: If the destination name is taken
    """
    folder_path = validate_path(folder_path)
    target_folder_path = validate_path(target_folder_path)

    if folder_path is None or classify(root, folder_path) != FOLDER:
        raise NotFoundError(f"Path '{folder_path}' is not a valid folder",
                            source=folder_path, target=target_folder_path)

    if not is_valid_move_target(folder_path, target_folder_path):
        raise InvalidMoveError(
            "Cannot move a folder into itself or one of its subfolders",
            source=folder_path, target=target_folder_path
        )

    return _move(root, folder_path, target_folder_path, FOLDER)
