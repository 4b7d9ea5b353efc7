"""Cluster hierarchy with structural invariants.

Clusters live in a flat, insertion-ordered table keyed by name; ``parent``
is stored as a name, never as a live reference. Insertion order doubles as
the fallback display order for siblings.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set

from phagemap.errors import (
    CycleError,
    DuplicateNameError,
    ProtectedNodeError,
    RootMoveError,
    UnknownClusterError,
)
from phagemap.hierarchy.builder import TOP_NODE_NAME
from phagemap.hierarchy.models import Cluster
from phagemap.hierarchy.traversal import (
    get_ancestors,
    get_children,
    get_depth,
    get_descendants,
    reaches,
    would_create_cycle,
)

logger = logging.getLogger(__name__)

DEFAULT_ROOT = "Root"


class ClusterHierarchy:
    """Owns the set of clusters and their parent edges."""

    def __init__(self, root_name: str = DEFAULT_ROOT):
        self.root_name = root_name
        self._parents: Dict[str, Optional[str]] = {root_name: None}

    # -- queries ---------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._parents

    def __len__(self) -> int:
        return len(self._parents)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._parents))

    @property
    def names(self) -> List[str]:
        return list(self._parents)

    @property
    def parents(self) -> Mapping[str, Optional[str]]:
        """Read-only view of name -> parent."""
        return dict(self._parents)

    def parent_of(self, name: str) -> Optional[str]:
        self._require(name)
        return self._parents[name]

    def get_children(self, name: str) -> List[str]:
        self._require(name)
        return get_children(self._parents, name)

    def get_descendants(self, name: str) -> Set[str]:
        self._require(name)
        return get_descendants(self._parents, name)

    def get_ancestors(self, name: str) -> List[str]:
        self._require(name)
        return get_ancestors(self._parents, name)

    def depth(self, name: str) -> int:
        self._require(name)
        return get_depth(self._parents, name)

    def clusters(self) -> List[Cluster]:
        return [Cluster(name=name, parent=parent) for name, parent in self._parents.items()]

    # -- mutations -------------------------------------------------------

    def add_cluster(self, name: str, parent: Optional[str] = None) -> Cluster:
        """Insert a new cluster.

        The parent is not required to exist; a dangling parent renders at
        root level until it is fixed. A parent whose chain already points
        back at ``name`` is rejected, and so is the name of the synthetic
        top node, which already owns that slot in the render tree.
        """
        if not name or not name.strip():
            raise ValueError("Cluster name must not be empty.")
        if name in self._parents or name == TOP_NODE_NAME:
            raise DuplicateNameError(name)
        if parent is not None and reaches(self._parents, parent, name):
            raise CycleError(name, parent)
        self._parents[name] = parent
        logger.info("Added cluster %s (parent=%s)", name, parent)
        return Cluster(name=name, parent=parent)

    def delete_cluster(self, name: str) -> Set[str]:
        """Remove ``name`` and everything beneath it; return the removed names."""
        if name == self.root_name:
            raise ProtectedNodeError(name, "delete")
        self._require(name)
        removed = get_descendants(self._parents, name)
        for cluster_name in removed:
            self._parents.pop(cluster_name, None)
        logger.info("Deleted cluster %s and %d descendant(s)", name, len(removed) - 1)
        return removed

    def update_parent(self, name: str, new_parent: Optional[str]) -> None:
        """Move ``name`` under ``new_parent`` (``None`` detaches it to root level)."""
        if name == self.root_name:
            raise RootMoveError(name, new_parent)
        self._require(name)
        if new_parent is not None:
            if new_parent not in self._parents:
                raise CycleError(name, new_parent, reason=f"parent '{new_parent}' does not exist")
            if would_create_cycle(self._parents, name, new_parent):
                raise CycleError(name, new_parent)
        self._parents[name] = new_parent
        logger.info("Moved cluster %s under %s", name, new_parent)

    # -- serialisation ---------------------------------------------------

    def to_list(self) -> List[Dict[str, Optional[str]]]:
        return [cluster.to_dict() for cluster in self.clusters()]

    @classmethod
    def from_list(
        cls,
        clusters: Iterable[Mapping[str, Optional[str]]],
        root_name: str = DEFAULT_ROOT,
    ) -> "ClusterHierarchy":
        """Rebuild from session rows without re-validating their structure.

        Root is forced to exist with a null parent. Duplicate rows keep the
        last parent seen. A row named after the top node is dropped.
        """
        hierarchy = cls(root_name=root_name)
        for row in clusters:
            name = row.get("name")
            if not name:
                continue
            if name == TOP_NODE_NAME:
                logger.warning("Skipping cluster row named after the top node: %s", name)
                continue
            hierarchy._parents[name] = None if name == root_name else row.get("parent")
        return hierarchy

    def _require(self, name: str) -> None:
        if name not in self._parents:
            raise UnknownClusterError(name)
