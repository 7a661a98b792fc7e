"""
Buza Storage

A folder/project storage engine that keeps a tree of folders and prompt
projects as plain directories under a storage root:

- paths: path arithmetic and name validation
- detector: folder/project classification by marker file
- tree: directory listings and the lazily loaded FolderTree
- folder_ops / move_ops: structural mutations built from single renames
- frontmatter / variants: variant file codec, variant I/O and project metadata
- search: case-insensitive project name search
- storage: the locked ProjectLibrary façade and its global instance
"""

from .errors import (
    StorageError,
    NotFoundError,
    NameCollisionError,
    InvalidMoveError,
    MalformedMetadataError,
    StorageIOError,
    UniqueNameExhaustedError
)

from .paths import InvalidNameError

from .folder import (
    FOLDER,
    PROJECT,
    FolderItem,
    Folder,
    FolderTree,
    SearchResult,
    serialize_folder_tree,
    deserialize_folder_tree
)

from .frontmatter import (
    MetadataEncodeError,
    encode,
    decode,
    extract_variables
)

from .variants import (
    Project,
    Variant
)

from .move_ops import is_valid_move_target

from .validation import (
    ValidationResult,
    validate_project_metadata,
    validate_folder_tree
)

from .config import (
    StorageConfig,
    load_config
)

from .storage import (
    ProjectLibrary,
    create_storage,
    get_global_storage,
    reset_global_storage
)

__all__ = [
    # Data model
    "FOLDER",
    "PROJECT",
    "FolderItem",
    "Folder",
    "FolderTree",
    "SearchResult",
    "Project",
    "Variant",
    "serialize_folder_tree",
    "deserialize_folder_tree",

    # Exceptions
    "StorageError",
    "NotFoundError",
    "NameCollisionError",
    "InvalidMoveError",
    "MalformedMetadataError",
    "StorageIOError",
    "UniqueNameExhaustedError",
    "InvalidNameError",
    "MetadataEncodeError",

    # Variant header codec
    "encode",
    "decode",
    "extract_variables",

    # Validation
    "ValidationResult",
    "validate_project_metadata",
    "validate_folder_tree",
    "is_valid_move_target",

    # Configuration and storage
    "StorageConfig",
    "load_config",
    "ProjectLibrary",
    "create_storage",
    "get_global_storage",
    "reset_global_storage"
]
