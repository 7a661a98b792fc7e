"""
Validation System for Buza Storage

This module checks stored records and in-memory trees for integrity:

- Project metadata records (project.json) against the bundled JSON schema
- Structural invariants of a loaded FolderTree (path derivation, unique siblings)
- Detailed, accumulated error reporting through ValidationResult
"""

import os
import json
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from functools import lru_cache

import jsonschema

from .folder import FolderItem, FolderTree
from .paths import join

logger = logging.getLogger(__name__)

SCHEMA_DIR = os.path.join(os.path.dirname(__file__), "schemas")
PROJECT_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "project-schema.json")
CONFIG_SCHEMA_PATH = os.path.join(SCHEMA_DIR, "config-schema.json")


@dataclass
class ValidationResult:
    """
    Result container for validation operations.

    Provides structured feedback about validation success/failure
    with detailed error and warning messages.
    """
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as invalid"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message"""
        self.warnings.append(message)

    def merge(self, other: 'ValidationResult') -> None:
        """Merge another validation result into this one"""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.is_valid:
            self.is_valid = False


@lru_cache(maxsize=None)
def load_schema(schema_path: str) -> Dict[str, Any]:
    """Load and cache a bundled JSON schema."""
    with open(schema_path, "r", encoding="utf-8") as schema_file:
        return json.load(schema_file)


def validate_against_schema(data: Any, schema_path: str) -> ValidationResult:
    """
    Validate ``data`` against a JSON schema file, collecting every violation.

    Args:
        data: Parsed JSON data
        schema_path: Path of the schema file

    Returns:
        ValidationResult listing each violation with its location
    """
    result = ValidationResult(is_valid=True)
    validator = jsonschema.Draft7Validator(load_schema(schema_path))

    for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
        location = "/".join(str(part) for part in error.absolute_path) or "<root>"
        result.add_error(f"{location}: {error.message}")

    return result


def validate_project_metadata(data: Any) -> ValidationResult:
    """
    Validate a project metadata record.

    Example:
        >>> validate_project_metadata({"description": "", "variables": []}).is_valid
        True
        >>> validate_project_metadata({"variables": "nope"}).is_valid
        False
    """
    return validate_against_schema(data, PROJECT_SCHEMA_PATH)


def validate_config_data(data: Any) -> ValidationResult:
    return validate_against_schema(data, CONFIG_SCHEMA_PATH)


def _check_siblings(items: List[FolderItem], parent_path: Optional[str], result: ValidationResult) -> None:
    seen = set()
    for item in items:
        expected_path = join(parent_path, item.name)
        if item.path != expected_path:
            result.add_error(f"Item '{item.name}' has path '{item.path}', expected '{expected_path}'")
        if item.name in seen:
            parent_name = parent_path or "root"
            result.add_error(f"Duplicate name '{item.name}' in '{parent_name}'")
        seen.add(item.name)


def validate_folder_tree(tree: FolderTree) -> ValidationResult:
    """
    Check a loaded tree for structural consistency.

    Verifies that every path is derived from its parent path and name, that no
    two siblings share a name, and that every loaded folder is keyed by its path.
    Folders that are referenced but not loaded are not an error.

    Args:
        tree: Tree to check

    Returns:
        ValidationResult with one error per violated invariant
    """
    result = ValidationResult(is_valid=True)

    _check_siblings(tree.root_items, None, result)

    for path, folder in tree.folders.items():
        if folder.path != path:
            result.add_error(f"Folder loaded under key '{path}' has path '{folder.path}'")
        expected_path = join(folder.parent_path, folder.name)
        if folder.path != expected_path:
            result.add_error(f"Folder '{folder.name}' has path '{folder.path}', expected '{expected_path}'")
        _check_siblings(folder.children, folder.path, result)

    unloaded = [
        item.path for item in tree.root_items
        if item.is_folder and item.path not in tree.folders
    ]
    if unloaded:
        result.add_warning(f"{len(unloaded)} root folder(s) not loaded")

    return result
