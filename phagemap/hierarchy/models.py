"""Data models for the bacteria cluster tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np


@dataclass
class Cluster:
    """A user-defined group of bacteria and/or child clusters."""

    name: str
    parent: Optional[str] = None  # None only for Root (or detached root-level clusters)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"name": self.name, "parent": self.parent}


@dataclass(frozen=True)
class Leaf:
    """A single bacterium and its phage interaction vector."""

    name: str
    values: Tuple[int, ...]


@dataclass
class Dataset:
    """Loaded spreadsheet: phage headers plus one row per bacterium."""

    headers: List[str]
    leaves: List[Leaf]
    source_name: str = ""
    _by_name: Dict[str, Leaf] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_name = {leaf.name: leaf for leaf in self.leaves}

    @property
    def leaf_names(self) -> List[str]:
        return [leaf.name for leaf in self.leaves]

    def get_leaf(self, name: str) -> Optional[Leaf]:
        return self._by_name.get(name)

    def interaction_matrix(self) -> np.ndarray:
        """Return an (n_leaves, n_features) 0/1 matrix in dataset order."""
        if not self.leaves:
            return np.zeros((0, len(self.headers)), dtype=np.int8)
        return np.array([leaf.values for leaf in self.leaves], dtype=np.int8)


@dataclass
class TreeNode:
    """Node of the render tree.

    Branches carry ``children`` (possibly empty) and no values; leaves carry
    their interaction vector and ``children is None``.
    """

    name: str
    children: Optional[List["TreeNode"]] = None
    values: Optional[Tuple[int, ...]] = None

    @classmethod
    def branch(cls, name: str, children: Optional[List["TreeNode"]] = None) -> "TreeNode":
        return cls(name=name, children=list(children or []))

    @classmethod
    def leaf(cls, name: str, values) -> "TreeNode":
        return cls(name=name, values=tuple(values))

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    @property
    def leaves(self) -> List["TreeNode"]:
        """Direct leaf children, in display order."""
        return [c for c in self.children or [] if c.is_leaf]

    @property
    def branches(self) -> List["TreeNode"]:
        """Direct child branches, in display order."""
        return [c for c in self.children or [] if not c.is_leaf]

    def iter_leaves(self) -> Iterator["TreeNode"]:
        if self.is_leaf:
            yield self
            return
        for child in self.children:
            yield from child.iter_leaves()

    def iter_branches(self) -> Iterator["TreeNode"]:
        """Pre-order walk over branch nodes, including self."""
        if self.is_leaf:
            return
        yield self
        for child in self.children:
            yield from child.iter_branches()

    def find(self, name: str) -> Optional["TreeNode"]:
        for branch in self.iter_branches():
            if branch.name == name:
                return branch
        return None


@dataclass
class NodePosition:
    """Computed coordinates for one node of the render tree."""

    name: str
    x: float
    y: float
    is_leaf: bool
    depth: int
    parent: Optional[str] = None


@dataclass
class TreeLayout:
    """Complete layout for a render tree."""

    positions: List[NodePosition]
    heights: Dict[str, float]  # Branch name -> subtree height
    width: float  # Max X over all nodes
    height: float  # Max Y over all nodes

    def position_of(self, name: str, is_leaf: Optional[bool] = None) -> Optional[NodePosition]:
        for pos in self.positions:
            if pos.name == name and (is_leaf is None or pos.is_leaf == is_leaf):
                return pos
        return None


@dataclass(frozen=True)
class Contributor:
    """A bacterium explaining why a phage is present for a cluster."""

    name: str
    cluster: str  # Immediate cluster of the bacterium, not the aggregating ancestor

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "cluster": self.cluster}


@dataclass
class SelectionResult:
    """One row of a cross-selection query."""

    label: str
    contributors: List[Contributor]
