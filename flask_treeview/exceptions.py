"""
Exceptions raised by the tree view widgets and the nested set store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class TreeViewError(Exception):
    """Base exception for tree view errors."""

    def __init__(
        self,
        message: str,
        node_key: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.node_key = node_key
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "node_key": self.node_key,
            "details": self.details,
        }


class ConfigurationError(TreeViewError):
    """
    Raised when the widget query, model or configuration is invalid.
    Detected at initialization, never recoverable at runtime.
    """

    pass


class InvalidOperation(TreeViewError):
    """Raised when a create or remove violates the tree rules."""

    pass


class BoundaryError(TreeViewError):
    """Raised when a node is moved past a tree extremity."""

    def __init__(self, message: str, direction: str = None, **kwargs):
        super().__init__(message, **kwargs)
        self.direction = direction

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["direction"] = self.direction
        return result


__all__ = [
    "TreeViewError",
    "ConfigurationError",
    "InvalidOperation",
    "BoundaryError",
]
