"""
Project Search for Buza Storage

Case-insensitive substring search over project names. The whole tree is walked
on every call; only directory listings are read, never variant content.
"""

import re
import logging
from typing import List, Optional

from .folder import FOLDER, PROJECT, SearchResult
from .tree import list_children
from .variants import read_project_metadata

logger = logging.getLogger(__name__)


def normalize_query(query: Optional[str]) -> str:
    """Strip surrounding whitespace; None becomes the empty query."""
    return (query or "").strip()


def search(root: str, query: Optional[str], include_metadata: bool = False) -> List[SearchResult]:
    """
    Find every project whose name contains ``query``, ignoring case.

    Folder names and variant content are not searched. An empty or
    whitespace-only query matches nothing.

    Args:
        root: Storage root directory
        query: Text to look for
        include_metadata: Attach each project's metadata record to its result

    Returns:
        SearchResults in tree order (depth-first, folders before projects)

    Raises:
        StorageIOError: If a directory cannot be listed

    Example:
        >>> [r.folder_path for r in search(root, "cat")]
        ['Fiction']
    """
    query = normalize_query(query)
    if not query:
        return []

    pattern = re.compile(re.escape(query), re.IGNORECASE)
    results = []
    _walk(root, None, pattern, include_metadata, results)

    logger.debug(f"Search for '{query}' matched {len(results)} project(s)")
    return results


def _walk(root: str, folder_path: Optional[str], pattern: re.Pattern, include_metadata: bool,
          results: List[SearchResult]) -> None:
    for item in list_children(root, folder_path):
        if item.type == FOLDER:
            _walk(root, item.path, pattern, include_metadata, results)
            continue

        if item.type != PROJECT:
            continue

        match = pattern.search(item.name)
        if not match:
            continue

        metadata = None
        if include_metadata:
            metadata = read_project_metadata(root, item.path)

        results.append(SearchResult(item, folder_path, match.group(0), match.span(), metadata))
