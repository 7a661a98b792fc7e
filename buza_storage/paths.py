"""
Path Codec for Buza Storage

Pure helpers converting between a hierarchical node path ("A/B/C"), its parent,
its leaf name and its on-disk location under the storage root. No I/O happens
here apart from ``to_disk`` building an absolute path string.

The root of the tree is represented by ``None``; an empty string is accepted
anywhere a path is expected and normalised to ``None``.
"""

import os
from typing import List, Optional

SEPARATOR = "/"
MAX_NAME_LENGTH = 255


class InvalidNameError(ValueError):
    """Raised when a node name or path segment is not usable on disk"""
    pass


def normalize(path: Optional[str]) -> Optional[str]:
    """
    Normalise a node path.

    Args:
        path: Path string, empty string or None

    Returns:
        Path without leading/trailing separators, or None for the root
    """
    if path is None:
        return None
    path = path.strip(SEPARATOR)
    return path or None


def split(path: Optional[str]) -> List[str]:
    """Return the segments of ``path`` (empty list for the root)."""
    path = normalize(path)
    if path is None:
        return []
    return path.split(SEPARATOR)


def parent_of(path: str) -> Optional[str]:
    """
    Strip the last segment of ``path``.

    Args:
        path: Node path

    Returns:
        Parent path, or None if the node sits at the root level

    Example:
        >>> parent_of("Work/Drafts/Intro")
        'Work/Drafts'
        >>> parent_of("Work") is None
        True
    """
    if SEPARATOR not in path:
        return None
    return path[:path.rindex(SEPARATOR)]


def leaf_name(path: str) -> str:
    """Substring after the last separator, or the whole path if there is none."""
    if SEPARATOR not in path:
        return path
    return path[path.rindex(SEPARATOR) + 1:]


def join(parent: Optional[str], name: str) -> str:
    """
    Build a child path.

    Args:
        parent: Parent path (None for root)
        name: Child name

    Returns:
        ``name`` at the root, otherwise ``parent + "/" + name``
    """
    parent = normalize(parent)
    if parent is None:
        return name
    return f"{parent}{SEPARATOR}{name}"


def is_descendant_or_self(ancestor: str, path: str) -> bool:
    """
    Check whether ``path`` is ``ancestor`` itself or lies below it.

    Used for cycle prevention when moving folders.

    Example:
        >>> is_descendant_or_self("A", "A/B")
        True
        >>> is_descendant_or_self("A", "AB")
        False
    """
    return path == ancestor or path.startswith(ancestor + SEPARATOR)


def validate_name(name: str) -> str:
    """
    Validate a single path segment and return it stripped.

    Raises:
        InvalidNameError: If the name is empty, contains a separator, is a
            relative marker, is hidden, or is too long
    """
    if not isinstance(name, str):
        raise InvalidNameError("Name must be a string")

    name = name.strip()
    if not name:
        raise InvalidNameError("Name cannot be empty")
    if SEPARATOR in name or "\\" in name:
        raise InvalidNameError(f"Name '{name}' cannot contain path separators")
    if name in (".", ".."):
        raise InvalidNameError(f"Name '{name}' is reserved")
    if name.startswith("."):
        raise InvalidNameError(f"Name '{name}' cannot start with '.'")
    if "\0" in name:
        raise InvalidNameError("Name cannot contain NUL characters")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(f"Name must be between 1 and {MAX_NAME_LENGTH} characters")

    return name


def validate_path(path: Optional[str]) -> Optional[str]:
    """Validate every segment of ``path`` and return it normalised."""
    path = normalize(path)
    if path is None:
        return None
    for segment in path.split(SEPARATOR):
        validate_name(segment)
    return path


def to_disk(root: str, path: Optional[str]) -> str:
    """
    Absolute on-disk location of ``path`` under ``root``.

    Args:
        root: Storage root directory
        path: Node path (None for the root itself)
    """
    segments = split(path)
    return os.path.join(os.path.abspath(root), *segments)
