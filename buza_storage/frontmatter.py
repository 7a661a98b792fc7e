"""
Variant Header Codec for Buza Storage

A variant file is an optional header block followed by free-form body text:

    ---
    model: "gemini-2.5-flash"
    temperature: 0.7
    variables: [{"id": "v1", "key": "topic", "value": "a space cat"}]
    ---

    Write a creative short story about {{topic}}.

Header values follow simple rules: strings are JSON-quoted, numbers, booleans and
null are bare, lists and objects are embedded as compact JSON. A file without the
header is a valid variant with empty metadata.

Decoding is lenient by default. A value that cannot be parsed is kept as its raw
string and a warning is logged, so one bad line never makes a variant unreadable.
"""

import re
import json
import math
import logging
from typing import Any, Dict, Set, Tuple

from .errors import MalformedMetadataError

logger = logging.getLogger(__name__)

DELIMITER = "---"

_HEADER_PATTERN = re.compile(r"^---\n(.*?)\n---\n(.*)$", re.DOTALL)
_INT_PATTERN = re.compile(r"^[-+]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[-+]?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?$")
_VARIANT_VARIABLE_PATTERN = re.compile(r"(?<!@)\{\{([^}]+)\}\}")


class MetadataEncodeError(ValueError):
    """Raised when metadata contains keys or values the header cannot represent"""
    pass


def _encode_value(key: str, value: Any) -> str:
    if value is None or isinstance(value, (bool, str, list, dict)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise MetadataEncodeError(f"Metadata value for '{key}' must be a finite number")
        return repr(value)
    raise MetadataEncodeError(f"Unsupported metadata value type for '{key}': {type(value).__name__}")


def encode(metadata: Dict[str, Any], body: str) -> str:
    """
    Serialize metadata and body into variant file text.

    Args:
        metadata: Header key/value pairs. An empty mapping produces no header.
        body: Prompt text

    Returns:
        Full file content

    Raises:
        MetadataEncodeError: If a key contains ':' or a line break, or a value
            has an unsupported type

    Example:
        >>> encode({"temperature": 0.7}, "Hello")
        '---\\ntemperature: 0.7\\n---\\n\\nHello'
    """
    if not metadata:
        return body

    lines = []
    for key, value in metadata.items():
        if not isinstance(key, str) or not key.strip():
            raise MetadataEncodeError("Metadata keys must be non-empty strings")
        if ":" in key or "\n" in key or "\r" in key or key != key.strip():
            raise MetadataEncodeError(f"Metadata key '{key}' cannot contain ':', line breaks or surrounding spaces")
        lines.append(f"{key}: {_encode_value(key, value)}")

    header = "\n".join(lines)
    return f"{DELIMITER}\n{header}\n{DELIMITER}\n\n{body}"


def _decode_value(key: str, raw: str, strict: bool) -> Any:
    if raw.startswith("[") or raw.startswith("{"):
        try:
            return json.loads(raw)
        except ValueError as e:
            if strict:
                raise MalformedMetadataError(f"Invalid JSON value for '{key}': {e}", source=key) from e
            logger.warning(f"Malformed JSON in header value for '{key}', keeping raw string")
            return raw

    if raw == "true":
        return True
    if raw == "false":
        return False
    if raw == "null":
        return None

    if _INT_PATTERN.match(raw):
        return int(raw)
    if _FLOAT_PATTERN.match(raw):
        return float(raw)

    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("\"", "'"):
        if raw[0] == "\"":
            try:
                value = json.loads(raw)
                if isinstance(value, str):
                    return value
            except ValueError:
                pass
            if strict:
                raise MalformedMetadataError(f"Invalid quoted string for '{key}'", source=key)
            logger.warning(f"Malformed quoted header value for '{key}', stripping quotes")
        return raw[1:-1]

    return raw


def decode(text: str, strict: bool = False) -> Tuple[Dict[str, Any], str]:
    """
    Split variant file text into metadata and body.

    Args:
        text: Full file content
        strict: Raise MalformedMetadataError instead of degrading to strings

    Returns:
        ``(metadata, body)``; metadata is empty when there is no header

    Example:
        >>> decode('---\\ntemperature: 0.7\\n---\\n\\nHello')
        ({'temperature': 0.7}, 'Hello')
    """
    match = _HEADER_PATTERN.match(text)
    if not match:
        return {}, text

    header, body = match.groups()
    if body.startswith("\n"):
        body = body[1:]

    metadata: Dict[str, Any] = {}
    for line in header.split("\n"):
        if not line.strip():
            continue
        key, sep, raw = line.partition(":")
        key = key.strip()
        if not sep or not key:
            if strict:
                raise MalformedMetadataError(f"Header line is not a 'key: value' pair: {line!r}")
            logger.warning(f"Skipping malformed header line: {line!r}")
            continue
        metadata[key] = _decode_value(key, raw.strip(), strict)

    return metadata, body


def extract_variables(content: str) -> Set[str]:
    """
    Collect the variant-level ``{{name}}`` placeholders used in a body.

    Project-level placeholders written as ``@{{name}}`` are excluded.

    Example:
        >>> sorted(extract_variables("Tell {{audience}} about @{{topic}}"))
        ['audience']
    """
    names = set()
    for match in _VARIANT_VARIABLE_PATTERN.finditer(content):
        name = match.group(1).strip()
        if name:
            names.add(name)
    return names
