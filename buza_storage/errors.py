"""
Storage Exceptions for Buza Storage

Every failure raised by the storage engine derives from StorageError and carries
the error kind plus the source and target paths involved, so callers can decide
whether to retry with a different name or abort.
"""

from typing import Any, List, Optional


class StorageError(Exception):
    """Base exception for storage operations"""

    kind = "StorageError"

    def __init__(self, message: str, source: Optional[str] = None, target: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.target = target

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "source": self.source,
            "target": self.target,
        }


class NotFoundError(StorageError):
    """Raised when a path does not resolve to an existing managed node"""

    kind = "NotFound"


class NameCollisionError(StorageError):
    """Raised when the target path of a mutation is already occupied"""

    kind = "NameCollision"


class InvalidMoveError(StorageError):
    """Raised when a move would create a cycle or the target is not a folder"""

    kind = "InvalidMove"


class MalformedMetadataError(StorageError):
    """Raised by strict header decoding when a value cannot be parsed"""

    kind = "MalformedMetadata"


class StorageIOError(StorageError):
    """
    Raised when the underlying filesystem call fails.

    For multi-step operations (folder delete) ``completed`` lists the items that
    were already moved before the failure, so the caller can reconcile its view.
    ``staged_path`` is set when the folder itself had already been moved to a
    hidden staging name.
    """

    kind = "IOFailure"

    def __init__(self, message: str, source: Optional[str] = None, target: Optional[str] = None,
                 completed: Optional[List[Any]] = None, staged_path: Optional[str] = None):
        super().__init__(message, source, target)
        self.completed = list(completed) if completed else []
        self.staged_path = staged_path

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["completed"] = [
            item.to_dict() if hasattr(item, "to_dict") else item
            for item in self.completed
        ]
        result["stagedPath"] = self.staged_path
        return result


class UniqueNameExhaustedError(StorageError):
    """Raised when no free sibling name is found within the attempt cap"""

    kind = "UniqueNameExhausted"
