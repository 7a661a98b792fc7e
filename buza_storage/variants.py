"""
Variant and Project Storage for Buza Storage

A project is a directory holding a ``project.json`` metadata record and one
``<variant>.md`` file per prompt variant. This module covers the project
lifecycle (create, rename, delete, load), variant file I/O on top of the header
codec, and read-merge-write updates of the project metadata record.
"""

import os
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .detector import PROJECT_JSON_FILE, classify
from .errors import NameCollisionError, NotFoundError, StorageIOError
from .folder import PROJECT
from .folder_ops import rename_in_place, require_parent_folder
from .frontmatter import decode, encode
from .fs import atomic_write_json, atomic_write_text, make_directory, node_exists, read_text, remove_tree
from .paths import join, leaf_name, to_disk, validate_name, validate_path
from .validation import validate_project_metadata

logger = logging.getLogger(__name__)

VARIANT_EXTENSION = ".md"
DEFAULT_VARIANT_NAME = "Main"


def now_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


@dataclass
class Variant:
    """One prompt variant: a file inside a project directory"""
    name: str
    path: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    content: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "metadata": dict(self.metadata),
            "content": self.content,
        }


@dataclass
class Project:
    """A project with its metadata record and loaded variants"""
    name: str
    path: str
    variants: List[Variant] = field(default_factory=list)
    variables: List[Dict[str, str]] = field(default_factory=list)
    description: str = ""
    created_at: int = 0
    updated_at: int = 0

    def get_variant(self, name: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "variants": [variant.to_dict() for variant in self.variants],
            "variables": [dict(variable) for variable in self.variables],
            "description": self.description,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _require_project(root: str, project_path: str) -> str:
    project_path = validate_path(project_path)
    if project_path is None or classify(root, project_path) != PROJECT:
        raise NotFoundError(f"Path '{project_path}' is not a valid project", source=project_path)
    return project_path


def _variant_file(root: str, project_path: str, variant_name: str) -> str:
    return os.path.join(to_disk(root, project_path), f"{variant_name}{VARIANT_EXTENSION}")


def _variant_path(project_path: str, variant_name: str) -> str:
    return join(project_path, f"{variant_name}{VARIANT_EXTENSION}")


def _metadata_file(root: str, project_path: str) -> str:
    return os.path.join(to_disk(root, project_path), PROJECT_JSON_FILE)


def _repair_variables(variables: Any, project_path: str) -> List[Dict[str, str]]:
    if not isinstance(variables, list):
        logger.warning(f"'variables' of project '{project_path}' is not a list, resetting to empty")
        return []

    clean = []
    for variable in variables:
        if (isinstance(variable, dict)
                and isinstance(variable.get("id"), str)
                and isinstance(variable.get("key"), str)):
            value = variable.get("value", "")
            clean.append({**variable, "value": value if isinstance(value, str) else str(value)})
        else:
            logger.warning(f"Removing invalid variable entry from project '{project_path}': {variable}")
    return clean


def _repair_metadata(data: Any, project_path: str) -> Dict[str, Any]:
    """
    Repair a loaded metadata record field by field.

    Unknown keys are preserved; invalid known fields fall back to safe defaults.
    """
    if not isinstance(data, dict):
        logger.warning(f"Metadata of project '{project_path}' is not an object, using defaults")
        data = {}

    safe_data = dict(data)
    result = validate_project_metadata(safe_data)
    if result.is_valid:
        return safe_data

    logger.warning(f"Project '{project_path}' metadata has validation issues: {'; '.join(result.errors)}")

    description = safe_data.get("description", "")
    if not isinstance(description, str):
        safe_data["description"] = "" if description is None else str(description)

    if "variables" in safe_data:
        safe_data["variables"] = _repair_variables(safe_data["variables"], project_path)

    for key in ("createdAt", "updatedAt"):
        value = safe_data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            logger.warning(f"Dropping invalid '{key}' from project '{project_path}': {value!r}")
            del safe_data[key]
        else:
            safe_data[key] = int(value)

    return safe_data


# ----------------------------------------------------------------------
# Project metadata
# ----------------------------------------------------------------------

def read_project_metadata(root: str, project_path: str) -> Dict[str, Any]:
    """
    Read a project's metadata record.

    Missing fields are filled with defaults (empty description and variables,
    timestamps of "now"). A corrupt record is repaired in memory rather than
    failing the read; the file itself is not rewritten.

    Args:
        root: Storage root directory
        project_path: Project path

    Returns:
        Dictionary with at least ``description``, ``variables``, ``createdAt``
        and ``updatedAt``

    Raises:
        NotFoundError: If ``project_path`` is not a project
    """
    project_path = _require_project(root, project_path)
    return _load_metadata(root, project_path)


def _load_metadata(root: str, project_path: str) -> Dict[str, Any]:
    text = read_text(_metadata_file(root, project_path))
    try:
        data = json.loads(text) if text.strip() else {}
    except ValueError as e:
        logger.warning(f"Could not parse metadata of project '{project_path}': {e}, using defaults")
        data = {}

    data = _repair_metadata(data, project_path)

    now = now_ms()
    data.setdefault("description", "")
    data.setdefault("variables", [])
    data.setdefault("createdAt", now)
    data.setdefault("updatedAt", data["createdAt"])
    return data


def update_project_metadata(root: str, project_path: str, updates: Dict[str, Any],
                            touch: bool = True) -> Dict[str, Any]:
    """
    Merge ``updates`` into a project's metadata record and write it back.

    Only the given keys change; every other field (including keys this module
    does not know about) is preserved.

    Args:
        root: Storage root directory
        project_path: Project path
        updates: Fields to set
        touch: Bump ``updatedAt`` to now unless ``updates`` sets it explicitly

    Returns:
        The merged record as written

    Raises:
        NotFoundError: If ``project_path`` is not a project
        ValueError: If the merged record violates the metadata schema
    """
    project_path = _require_project(root, project_path)

    merged = {**_load_metadata(root, project_path), **updates}
    if touch and "updatedAt" not in updates:
        merged["updatedAt"] = now_ms()

    result = validate_project_metadata(merged)
    if not result.is_valid:
        raise ValueError(f"Invalid project metadata: {'; '.join(result.errors)}")

    atomic_write_json(_metadata_file(root, project_path), merged)
    return merged


def update_description(root: str, project_path: str, description: str) -> Dict[str, Any]:
    return update_project_metadata(root, project_path, {"description": description})


def update_variables(root: str, project_path: str, variables: List[Dict[str, str]]) -> Dict[str, Any]:
    return update_project_metadata(root, project_path, {"variables": list(variables)})


def touch_project(root: str, project_path: str) -> Dict[str, Any]:
    return update_project_metadata(root, project_path, {})


# ----------------------------------------------------------------------
# Variants
# ----------------------------------------------------------------------

def list_variants(root: str, project_path: str) -> List[str]:
    """
    List the variant names of a project, sorted by name.

    Raises:
        NotFoundError: If ``project_path`` is not a project
    """
    project_path = _require_project(root, project_path)
    try:
        entries = list(os.scandir(to_disk(root, project_path)))
    except OSError as e:
        raise StorageIOError(f"Failed to list variants of '{project_path}': {e}", source=project_path) from e

    names = []
    for entry in entries:
        if entry.name.startswith(".") or not entry.name.endswith(VARIANT_EXTENSION):
            continue
        if entry.is_file():
            names.append(entry.name[:-len(VARIANT_EXTENSION)])
    return sorted(names)


def read_variant(root: str, project_path: str, variant_name: str) -> Variant:
    """
    Read and decode a variant file.

    Raises:
        NotFoundError: If the project or the variant does not exist
    """
    project_path = _require_project(root, project_path)
    variant_name = validate_name(variant_name)

    filepath = _variant_file(root, project_path, variant_name)
    if not os.path.isfile(filepath):
        raise NotFoundError(f"Variant '{variant_name}' not found in project '{project_path}'",
                            source=_variant_path(project_path, variant_name))

    metadata, body = decode(read_text(filepath))
    return Variant(variant_name, _variant_path(project_path, variant_name), metadata, body)


def write_variant(root: str, project_path: str, variant_name: str, content: str,
                  metadata: Optional[Dict[str, Any]] = None) -> Variant:
    """
    Create or overwrite a variant file.

    Args:
        root: Storage root directory
        project_path: Project path
        variant_name: Variant name (file stem)
        content: Prompt body
        metadata: Header values; None or empty writes a plain file

    Returns:
        The written Variant

    Raises:
        NotFoundError: If ``project_path`` is not a project
        MetadataEncodeError: If the metadata cannot be represented
    """
    project_path = _require_project(root, project_path)
    variant_name = validate_name(variant_name)
    metadata = dict(metadata) if metadata else {}

    atomic_write_text(_variant_file(root, project_path, variant_name), encode(metadata, content))
    return Variant(variant_name, _variant_path(project_path, variant_name), metadata, content)


def delete_variant(root: str, project_path: str, variant_name: str) -> None:
    """
    Remove a variant file.

    Raises:
        NotFoundError: If the project or the variant does not exist
    """
    project_path = _require_project(root, project_path)
    variant_name = validate_name(variant_name)

    filepath = _variant_file(root, project_path, variant_name)
    if not os.path.isfile(filepath):
        raise NotFoundError(f"Variant '{variant_name}' not found in project '{project_path}'",
                            source=_variant_path(project_path, variant_name))
    try:
        os.remove(filepath)
    except OSError as e:
        raise StorageIOError(f"Failed to delete variant '{variant_name}': {e}",
                             source=_variant_path(project_path, variant_name)) from e

    logger.info(f"Deleted variant '{variant_name}' from project '{project_path}'")


def rename_variant(root: str, project_path: str, old_name: str, new_name: str) -> Variant:
    """
    Rename a variant by writing the new file, then deleting the old one.

    The file content is copied verbatim, so the header and body are preserved
    byte for byte.

    Raises:
        NotFoundError: If the project or the old variant does not exist
        NameCollisionError: If a variant named ``new_name`` already exists
    """
    project_path = _require_project(root, project_path)
    old_name = validate_name(old_name)
    new_name = validate_name(new_name)

    old_file = _variant_file(root, project_path, old_name)
    if not os.path.isfile(old_file):
        raise NotFoundError(f"Variant '{old_name}' not found in project '{project_path}'",
                            source=_variant_path(project_path, old_name))
    if new_name == old_name:
        return read_variant(root, project_path, old_name)

    new_file = _variant_file(root, project_path, new_name)
    if os.path.lexists(new_file):
        raise NameCollisionError(f"Variant '{new_name}' already exists",
                                 source=_variant_path(project_path, old_name),
                                 target=_variant_path(project_path, new_name))

    text = read_text(old_file)
    atomic_write_text(new_file, text)
    try:
        os.remove(old_file)
    except OSError as e:
        raise StorageIOError(f"Wrote '{new_name}' but failed to delete old variant '{old_name}': {e}",
                             source=_variant_path(project_path, old_name),
                             target=_variant_path(project_path, new_name)) from e

    logger.info(f"Renamed variant '{old_name}' to '{new_name}' in project '{project_path}'")
    metadata, body = decode(text)
    return Variant(new_name, _variant_path(project_path, new_name), metadata, body)


# ----------------------------------------------------------------------
# Project lifecycle
# ----------------------------------------------------------------------

def create_project(root: str, parent_path: Optional[str], name: str,
                   default_variant: Optional[str] = DEFAULT_VARIANT_NAME,
                   description: str = "") -> Project:
    """
    Create a project directory with its metadata record and a default variant.

    The metadata record doubles as the project marker and is written last, so a
    failure part-way leaves an unmanaged directory rather than a half-built
    project.

    Args:
        root: Storage root directory
        parent_path: Parent folder path (None for root)
        name: Project name
        default_variant: Name of the empty variant to create, or None for none
        description: Initial description

    Returns:
        The created Project

    Raises:
        NotFoundError: If the parent is not a folder
        NameCollisionError: If the name is already taken at this level
        StorageIOError: If a directory or file cannot be written
    """
    parent_path = validate_path(parent_path)
    name = validate_name(name)
    require_parent_folder(root, parent_path)

    project_path = join(parent_path, name)
    if node_exists(root, project_path):
        raise NameCollisionError(f"A folder or project with name '{name}' already exists at this level",
                                 target=project_path)

    make_directory(root, project_path)

    variants = []
    if default_variant:
        default_variant = validate_name(default_variant)
        atomic_write_text(_variant_file(root, project_path, default_variant), "")
        variants.append(Variant(default_variant, _variant_path(project_path, default_variant)))

    now = now_ms()
    metadata = {
        "description": description,
        "variables": [],
        "createdAt": now,
        "updatedAt": now,
    }
    atomic_write_json(_metadata_file(root, project_path), metadata)

    logger.info(f"Created project '{project_path}'")
    return Project(name, project_path, variants, [], description, now, now)


def rename_project(root: str, project_path: str, new_name: str) -> str:
    """
    Rename a project in place with a single directory rename.

    Returns:
        The new project path

    Raises:
        NotFoundError: If ``project_path`` is not a project
        NameCollisionError: If a sibling already uses ``new_name``
    """
    return rename_in_place(root, project_path, new_name, PROJECT)


def delete_project(root: str, project_path: str) -> None:
    """
    Remove a project and everything inside it.

    Raises:
        NotFoundError: If ``project_path`` is not a project
    """
    project_path = _require_project(root, project_path)
    remove_tree(root, project_path)
    logger.info(f"Deleted project '{project_path}'")


def get_project(root: str, project_path: str) -> Project:
    """
    Load a project with its metadata and every variant.

    Raises:
        NotFoundError: If ``project_path`` is not a project
    """
    project_path = _require_project(root, project_path)
    metadata = _load_metadata(root, project_path)
    variants = [read_variant(root, project_path, name) for name in list_variants(root, project_path)]

    return Project(
        name=leaf_name(project_path),
        path=project_path,
        variants=variants,
        variables=metadata["variables"],
        description=metadata["description"],
        created_at=metadata["createdAt"],
        updated_at=metadata["updatedAt"],
    )
