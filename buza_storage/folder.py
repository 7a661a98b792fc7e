"""
Folder Data Model for Buza Storage

This module provides the in-memory types that describe a (partially loaded) view
of the folder/project tree: FolderItem, Folder, FolderTree and SearchResult.

Paths are the identity of every node. Each object also receives a UUID when it
is built, but that UUID only lives for the current display session (it is handy
as a UI key) and never takes part in equality or persistence.
"""

import uuid
import logging
from typing import Dict, List, Any, Optional, Tuple

from .paths import leaf_name, parent_of

logger = logging.getLogger(__name__)

FOLDER = "folder"
PROJECT = "project"
NODE_TYPES = (FOLDER, PROJECT)


class FolderValidationError(ValueError):
    """Exception raised when folder model data is invalid"""
    pass


def generate_id() -> str:
    """Generate a display-session identifier for folders and items."""
    return str(uuid.uuid4())


class FolderItem:
    """
    Lightweight reference to a folder or project inside a listing.

    Carries no children; use Folder for a loaded folder.
    """

    def __init__(self, type: str, name: str, path: str, id: str = None):
        if type not in NODE_TYPES:
            raise FolderValidationError(f"Item type must be one of {NODE_TYPES}, got '{type}'")
        if not isinstance(name, str) or not name:
            raise FolderValidationError("Item name cannot be empty")
        if not isinstance(path, str) or not path:
            raise FolderValidationError("Item path cannot be empty")

        self.type = type
        self.name = name
        self.path = path
        self.id = id if id else generate_id()

    @property
    def is_folder(self) -> bool:
        return self.type == FOLDER

    @property
    def parent_path(self) -> Optional[str]:
        return parent_of(self.path)

    def with_path(self, path: str) -> 'FolderItem':
        """Return a copy of this item relocated to ``path`` (same session id)."""
        return FolderItem(self.type, leaf_name(path), path, id=self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FolderItem':
        if not isinstance(data, dict):
            raise FolderValidationError("Folder item data must be a dictionary")
        try:
            return cls(data["type"], data["name"], data["path"], id=data.get("id"))
        except KeyError as e:
            raise FolderValidationError(f"Missing required field in folder item: {e}")

    def sort_key(self) -> Tuple[int, str]:
        """Folders before projects, then case-sensitive by name."""
        return (0 if self.type == FOLDER else 1, self.name)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FolderItem):
            return False
        return (self.type, self.name, self.path) == (other.type, other.name, other.path)

    def __hash__(self) -> int:
        return hash((self.type, self.path))

    def __repr__(self) -> str:
        return f"FolderItem(type='{self.type}', name='{self.name}', path='{self.path}')"


class Folder:
    """
    A loaded folder node.

    ``children`` is authoritative only right after loading; mutations elsewhere in
    the tree can make it stale and the caller is expected to reload.
    """

    def __init__(self, name: str, path: str, parent_path: Optional[str] = None,
                 children: Optional[List[FolderItem]] = None, is_expanded: bool = False,
                 id: str = None):
        """
        Initialize a Folder instance.

        Args:
            name: Directory name of the folder
            path: Path relative to the storage root
            parent_path: Path of the containing folder, None at the root level
            children: Immediate children as FolderItems
            is_expanded: UI hint only, never persisted to disk
            id: Display-session identifier. Generated if omitted.

        Raises:
            FolderValidationError: If name/path are inconsistent
        """
        if not isinstance(name, str) or not name:
            raise FolderValidationError("Folder name cannot be empty")
        if not isinstance(path, str) or not path:
            raise FolderValidationError("Folder path cannot be empty")
        if leaf_name(path) != name:
            raise FolderValidationError(f"Folder name '{name}' does not match path '{path}'")
        if parent_of(path) != (parent_path or None):
            raise FolderValidationError(f"Parent path '{parent_path}' does not match path '{path}'")

        self.id = id if id else generate_id()
        self.name = name
        self.path = path
        self.parent_path = parent_path or None
        self.children = list(children) if children else []
        self.is_expanded = is_expanded

    @classmethod
    def at(cls, path: str, children: Optional[List[FolderItem]] = None) -> 'Folder':
        """Build a Folder whose name and parent are derived from ``path``."""
        return cls(leaf_name(path), path, parent_of(path), children)

    def child_folders(self) -> List[FolderItem]:
        return [child for child in self.children if child.type == FOLDER]

    def child_projects(self) -> List[FolderItem]:
        return [child for child in self.children if child.type == PROJECT]

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert folder to dictionary representation for transport.

        Returns:
            Dictionary with camelCase keys matching the on-the-wire tree format
        """
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "parentPath": self.parent_path,
            "children": [child.to_dict() for child in self.children],
            "isExpanded": self.is_expanded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Folder':
        """
        Create Folder instance from dictionary data.

        Raises:
            FolderValidationError: If data is invalid or missing required fields
        """
        if not isinstance(data, dict):
            raise FolderValidationError("Folder data must be a dictionary")

        try:
            children = [FolderItem.from_dict(child) for child in data.get("children", [])]
            return cls(
                name=data["name"],
                path=data["path"],
                parent_path=data.get("parentPath"),
                children=children,
                is_expanded=bool(data.get("isExpanded", False)),
                id=data.get("id"),
            )
        except KeyError as e:
            raise FolderValidationError(f"Missing required field in folder: {e}")

    def __eq__(self, other) -> bool:
        if not isinstance(other, Folder):
            return False
        return (self.path == other.path
                and self.children == other.children
                and self.is_expanded == other.is_expanded)

    def __hash__(self) -> int:
        return hash(self.path)

    def __str__(self) -> str:
        parent_info = f" (parent: {self.parent_path})" if self.parent_path else " (root)"
        return f"Folder({self.name}{parent_info})"

    def __repr__(self) -> str:
        return f"Folder(name='{self.name}', path='{self.path}', children={len(self.children)})"


class FolderTree:
    """
    Partially materialised view of the whole tree.

    ``folders`` holds only the folders that were explicitly loaded. A folder item
    that appears in ``root_items`` or in a loaded folder's children but has no
    entry in ``folders`` is simply not loaded yet.
    """

    def __init__(self, root_items: Optional[List[FolderItem]] = None,
                 folders: Optional[Dict[str, Folder]] = None):
        self.root_items = list(root_items) if root_items else []
        self.folders = dict(folders) if folders else {}

    def is_loaded(self, path: str) -> bool:
        return path in self.folders

    def get_folder(self, path: str) -> Optional[Folder]:
        return self.folders.get(path)

    def children_of(self, path: Optional[str]) -> Optional[List[FolderItem]]:
        """Children of ``path`` (None for root), or None if that folder is not loaded."""
        if path is None:
            return self.root_items
        folder = self.folders.get(path)
        return folder.children if folder else None

    def with_folder(self, folder: Folder) -> 'FolderTree':
        """Return a new tree with ``folder`` inserted into the loaded-folders map."""
        folders = dict(self.folders)
        folders[folder.path] = folder
        return FolderTree(self.root_items, folders)

    def to_dict(self) -> Dict[str, Any]:
        return serialize_folder_tree(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FolderTree':
        return deserialize_folder_tree(data)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FolderTree):
            return False
        return self.root_items == other.root_items and self.folders == other.folders

    def __repr__(self) -> str:
        return f"FolderTree(root_items={len(self.root_items)}, loaded_folders={len(self.folders)})"


class SearchResult:
    """A project whose name matched a search query, with its folder context."""

    def __init__(self, project: FolderItem, folder_path: Optional[str], matched_text: str,
                 span: Tuple[int, int], metadata: Optional[Dict[str, Any]] = None):
        self.project = project
        self.folder_path = folder_path
        self.matched_text = matched_text
        self.span = span
        self.metadata = metadata

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "project": self.project.to_dict(),
            "folderPath": self.folder_path,
            "matchedText": self.matched_text,
            "span": list(self.span),
        }
        if self.metadata is not None:
            result["metadata"] = self.metadata
        return result

    def __repr__(self) -> str:
        return f"SearchResult(project='{self.project.path}', matched='{self.matched_text}')"


def sort_items(items: List[FolderItem]) -> List[FolderItem]:
    """Sort items folders-first, then case-sensitive lexicographic by name."""
    return sorted(items, key=lambda item: item.sort_key())


def serialize_folder_tree(tree: FolderTree) -> Dict[str, Any]:
    """
    Serialize a FolderTree to a plain dictionary.

    Args:
        tree: Tree to serialize

    Returns:
        ``{"rootItems": [...], "folders": {path: folder_dict}}``
    """
    return {
        "rootItems": [item.to_dict() for item in tree.root_items],
        "folders": {path: folder.to_dict() for path, folder in tree.folders.items()},
    }


def deserialize_folder_tree(data: Dict[str, Any]) -> FolderTree:
    """
    Deserialize a plain dictionary back to a FolderTree.

    Raises:
        FolderValidationError: If the data is not a serialized tree
    """
    if not isinstance(data, dict):
        raise FolderValidationError("Folder tree data must be a dictionary")

    root_items = [FolderItem.from_dict(item) for item in data.get("rootItems", [])]
    folders = {}
    for path, folder_data in data.get("folders", {}).items():
        folder = Folder.from_dict(folder_data)
        if folder.path != path:
            logger.warning(f"Folder key '{path}' does not match folder path '{folder.path}', using folder path")
        folders[folder.path] = folder
    return FolderTree(root_items, folders)
