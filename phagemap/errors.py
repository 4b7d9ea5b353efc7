"""Exception types raised by cluster, session and dataset operations.

All of these are validation failures the user can recover from. Callers
surface ``str(exc)`` directly, so messages are written for people.
"""
from __future__ import annotations

from typing import Optional


class PhageMapError(Exception):
    """Base class for every error raised by phagemap."""


class ClusterOperationError(PhageMapError, ValueError):
    """A cluster mutation was rejected."""


class DuplicateNameError(ClusterOperationError):
    """A cluster with the requested name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Cluster '{name}' already exists.")
        self.name = name


class ProtectedNodeError(ClusterOperationError):
    """The root cluster cannot be deleted or moved."""

    def __init__(self, name: str, operation: str):
        if operation == "delete":
            message = f"Cannot delete the {name} cluster."
        else:
            message = f"Cannot change parent of {name} cluster."
        ClusterOperationError.__init__(self, message)
        self.name = name
        self.operation = operation


class CycleError(ClusterOperationError):
    """Reparenting would make a cluster its own ancestor."""

    def __init__(self, name: str, new_parent: Optional[str], reason: str = ""):
        message = f"Cannot move '{name}' under '{new_parent}': circular dependency between clusters."
        if reason:
            message = f"Cannot move '{name}' under '{new_parent}': {reason}."
        ClusterOperationError.__init__(self, message)
        self.name = name
        self.new_parent = new_parent


class RootMoveError(ProtectedNodeError, CycleError):
    """Root was asked to move; it is both protected and everyone's ancestor."""

    def __init__(self, name: str, new_parent: Optional[str]):
        ProtectedNodeError.__init__(self, name, "reparent")
        self.new_parent = new_parent


class UnknownClusterError(PhageMapError, KeyError):
    """Referenced cluster does not exist."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Cluster '{self.name}' does not exist."


class InvalidSessionError(PhageMapError, ValueError):
    """Session payload is missing required fields or is not valid JSON."""


class DatasetError(PhageMapError, ValueError):
    """Spreadsheet could not be turned into a bacteria/phage dataset."""
