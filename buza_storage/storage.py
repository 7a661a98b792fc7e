"""
Project Library for Buza Storage

This module binds the stateless storage components to one storage root and
serialises access to it.

Key Features:
- One re-entrant lock per root; structural mutations never interleave with
  each other or with reads
- Every folder, project, variant and search operation exposed as a method
- Construction from StorageConfig, plus a shared global instance
"""

import os
import logging
import threading
from typing import Any, Dict, List, Optional

from . import folder_ops, move_ops, search as search_engine, tree, variants
from .config import StorageConfig, load_config
from .errors import StorageIOError
from .folder import Folder, FolderItem, FolderTree, SearchResult
from .variants import DEFAULT_VARIANT_NAME, Project, Variant

logger = logging.getLogger(__name__)


class ProjectLibrary:
    """
    Thread-safe access to a folder/project tree stored under one root directory.

    All methods take paths relative to the root; ``None`` (or ``""``) denotes the
    root itself. The filesystem stays the single source of truth: nothing is
    cached between calls.
    """

    def __init__(self, root: str, config: Optional[StorageConfig] = None):
        """
        Initialize the library and make sure the root directory exists.

        Args:
            root: Storage root directory
            config: Optional settings; defaults are used when omitted

        Raises:
            StorageIOError: If the root directory cannot be created
        """
        self._lock = threading.RLock()
        self._root = os.path.abspath(os.path.expanduser(root))
        self._config = config or StorageConfig(self._root)
        self._ensure_root()

    @classmethod
    def from_config(cls, config: StorageConfig) -> 'ProjectLibrary':
        return cls(config.projects_dir, config)

    @property
    def root(self) -> str:
        return self._root

    @property
    def config(self) -> StorageConfig:
        return self._config

    def _ensure_root(self) -> None:
        try:
            os.makedirs(self._root, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"Failed to create storage root {self._root}: {e}") from e

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def list_children(self, path: Optional[str] = None) -> List[FolderItem]:
        with self._lock:
            return tree.list_children(self._root, path)

    def load_folder(self, path: str) -> Folder:
        with self._lock:
            return tree.load_folder(self._root, path)

    def build_tree(self) -> FolderTree:
        with self._lock:
            return tree.build_tree(self._root)

    def load_folder_in_tree(self, current: FolderTree, path: str) -> FolderTree:
        with self._lock:
            return tree.load_folder_in_tree(self._root, current, path)

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def generate_unique_name(self, parent_path: Optional[str], base_name: str) -> str:
        with self._lock:
            return folder_ops.generate_unique_name(
                self._root, parent_path, base_name, self._config.max_unique_name_attempts
            )

    def create_folder(self, parent_path: Optional[str] = None,
                      name: str = folder_ops.DEFAULT_FOLDER_NAME) -> Folder:
        with self._lock:
            return folder_ops.create_folder(
                self._root, parent_path, name, self._config.max_unique_name_attempts
            )

    def rename_folder(self, path: str, new_name: str) -> Folder:
        with self._lock:
            return folder_ops.rename_folder(self._root, path, new_name)

    def delete_folder(self, path: str) -> List[FolderItem]:
        with self._lock:
            return folder_ops.delete_folder(self._root, path)

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def move_project(self, project_path: str, target_folder_path: Optional[str]) -> str:
        with self._lock:
            return move_ops.move_project(self._root, project_path, target_folder_path)

    def move_folder(self, folder_path: str, target_folder_path: Optional[str]) -> str:
        with self._lock:
            return move_ops.move_folder(self._root, folder_path, target_folder_path)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, parent_path: Optional[str], name: str, description: str = "") -> Project:
        with self._lock:
            return variants.create_project(
                self._root, parent_path, name,
                self._config.default_variant_name or DEFAULT_VARIANT_NAME,
                description
            )

    def rename_project(self, project_path: str, new_name: str) -> str:
        with self._lock:
            return variants.rename_project(self._root, project_path, new_name)

    def delete_project(self, project_path: str) -> None:
        with self._lock:
            variants.delete_project(self._root, project_path)

    def get_project(self, project_path: str) -> Project:
        with self._lock:
            return variants.get_project(self._root, project_path)

    def read_project_metadata(self, project_path: str) -> Dict[str, Any]:
        with self._lock:
            return variants.read_project_metadata(self._root, project_path)

    def update_project_metadata(self, project_path: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            return variants.update_project_metadata(self._root, project_path, updates)

    def update_description(self, project_path: str, description: str) -> Dict[str, Any]:
        with self._lock:
            return variants.update_description(self._root, project_path, description)

    def update_variables(self, project_path: str, project_variables: List[Dict[str, str]]) -> Dict[str, Any]:
        with self._lock:
            return variants.update_variables(self._root, project_path, project_variables)

    def touch_project(self, project_path: str) -> Dict[str, Any]:
        with self._lock:
            return variants.touch_project(self._root, project_path)

    # ------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------

    def list_variants(self, project_path: str) -> List[str]:
        with self._lock:
            return variants.list_variants(self._root, project_path)

    def read_variant(self, project_path: str, variant_name: str) -> Variant:
        with self._lock:
            return variants.read_variant(self._root, project_path, variant_name)

    def write_variant(self, project_path: str, variant_name: str, content: str,
                      metadata: Optional[Dict[str, Any]] = None) -> Variant:
        """
        Create or overwrite a variant and bump the project's ``updatedAt``.

        Args:
            project_path: Project path
            variant_name: Variant name
            content: Prompt body
            metadata: Header values

        Returns:
            The written Variant
        """
        with self._lock:
            variant = variants.write_variant(self._root, project_path, variant_name, content, metadata)
            variants.touch_project(self._root, project_path)
            return variant

    def delete_variant(self, project_path: str, variant_name: str) -> None:
        with self._lock:
            variants.delete_variant(self._root, project_path, variant_name)
            variants.touch_project(self._root, project_path)

    def rename_variant(self, project_path: str, old_name: str, new_name: str) -> Variant:
        with self._lock:
            variant = variants.rename_variant(self._root, project_path, old_name, new_name)
            variants.touch_project(self._root, project_path)
            return variant

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: Optional[str], include_metadata: bool = False) -> List[SearchResult]:
        with self._lock:
            return search_engine.search(self._root, query, include_metadata)

    def __repr__(self) -> str:
        return f"ProjectLibrary(root='{self._root}')"


def create_storage(root: Optional[str] = None, config: Optional[StorageConfig] = None) -> ProjectLibrary:
    """
    Factory function to create a ProjectLibrary.

    Args:
        root: Storage root directory; taken from ``config`` (or the loaded
            configuration) when omitted
        config: Optional settings

    Returns:
        Configured ProjectLibrary instance
    """
    if root is None:
        config = config or load_config()
        return ProjectLibrary.from_config(config)
    return ProjectLibrary(root, config)


# Global storage instance for shared use
_global_storage: Optional[ProjectLibrary] = None
_global_lock = threading.Lock()


def get_global_storage() -> ProjectLibrary:
    """
    Get or create the global library instance built from the loaded configuration.

    Returns:
        Global ProjectLibrary instance
    """
    global _global_storage
    with _global_lock:
        if _global_storage is None:
            _global_storage = ProjectLibrary.from_config(load_config())
            logger.info(f"Opened project library at {_global_storage.root}")
        return _global_storage


def reset_global_storage() -> None:
    """
    Reset the global instance so the next access reloads the configuration.
    """
    global _global_storage
    with _global_lock:
        _global_storage = None
