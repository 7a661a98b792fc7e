"""
Test configuration and fixtures for Buza Storage tests.
"""
import json
import os

import pytest

from buza_storage.detector import FOLDER_MARKER_FILE, PROJECT_JSON_FILE


def make_folder(root, path):
    """Create a folder directory (with marker) directly on disk."""
    full_path = os.path.join(str(root), *path.split("/"))
    os.makedirs(full_path, exist_ok=True)
    open(os.path.join(full_path, FOLDER_MARKER_FILE), "w").close()
    return full_path


def make_project(root, path, metadata=None, variants=None):
    """Create a project directory with project.json and optional variant files."""
    full_path = os.path.join(str(root), *path.split("/"))
    os.makedirs(full_path, exist_ok=True)
    if metadata is None:
        metadata = {"description": "", "variables": [], "createdAt": 1000, "updatedAt": 1000}
    with open(os.path.join(full_path, PROJECT_JSON_FILE), "w", encoding="utf-8") as f:
        if isinstance(metadata, str):
            f.write(metadata)
        else:
            json.dump(metadata, f)
    for name, text in (variants or {}).items():
        with open(os.path.join(full_path, f"{name}.md"), "w", encoding="utf-8", newline="") as f:
            f.write(text)
    return full_path


def snapshot(root):
    """Sorted list of every relative file and directory path under ``root``."""
    entries = []
    for dirpath, dirnames, filenames in os.walk(str(root)):
        rel = os.path.relpath(dirpath, str(root))
        for name in dirnames + filenames:
            entries.append(os.path.normpath(os.path.join(rel, name)).replace(os.sep, "/"))
    return sorted(entries)


@pytest.fixture
def root(tmp_path):
    """Fixture providing an empty storage root directory."""
    storage_root = tmp_path / "projects"
    storage_root.mkdir()
    return str(storage_root)


@pytest.fixture
def library(root):
    """Fixture providing a ProjectLibrary bound to the temporary root."""
    from buza_storage.storage import ProjectLibrary
    return ProjectLibrary(root)
