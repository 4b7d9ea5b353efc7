"""Bacteria -> cluster assignment and declared display orders."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

logger = logging.getLogger(__name__)

Direction = Union[str, int]

_DIRECTION_STEPS = {
    "up": -1,
    "down": 1,
    -1: -1,
    1: 1,
}


def _step_for(direction: Direction) -> int:
    key = direction.lower() if isinstance(direction, str) else direction
    try:
        return _DIRECTION_STEPS[key]
    except KeyError:
        raise ValueError(f"Unknown direction {direction!r}; expected 'up' or 'down'") from None


def move_item(items: Sequence[str], from_index: int, to_index: int) -> List[str]:
    """Return a copy of ``items`` with one element moved; indices are clamped."""
    moved = list(items)
    if not moved:
        return moved
    from_index = max(0, min(from_index, len(moved) - 1))
    to_index = max(0, min(to_index, len(moved) - 1))
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return moved


class AssignmentStore:
    """Owns leaf assignment, leaf order per cluster and child order per parent."""

    def __init__(
        self,
        assignments: Optional[Mapping[str, str]] = None,
        leaf_order: Optional[Mapping[str, Iterable[str]]] = None,
        child_order: Optional[Mapping[str, Iterable[str]]] = None,
    ):
        self.assignments: Dict[str, str] = dict(assignments or {})
        self.leaf_order: Dict[str, List[str]] = {k: list(v) for k, v in (leaf_order or {}).items()}
        self.child_order: Dict[str, List[str]] = {k: list(v) for k, v in (child_order or {}).items()}

    def initialise(self, leaf_names: Iterable[str], root: str) -> None:
        """Put every leaf under ``root`` in dataset order and clear all orders."""
        names = list(dict.fromkeys(leaf_names))
        self.assignments = {name: root for name in names}
        self.leaf_order = {root: names}
        self.child_order = {}

    def cluster_of(self, leaf_name: str) -> Optional[str]:
        return self.assignments.get(leaf_name)

    def leaves_in(self, cluster_name: str) -> List[str]:
        return list(self.leaf_order.get(cluster_name, []))

    def register_cluster(self, cluster_name: str) -> None:
        self.leaf_order.setdefault(cluster_name, [])

    def assign_leaf(self, leaf_name: str, cluster_name: str) -> None:
        previous = self.assignments.get(leaf_name)
        self.assignments[leaf_name] = cluster_name
        if previous is not None and previous != cluster_name:
            previous_order = self.leaf_order.get(previous)
            if previous_order and leaf_name in previous_order:
                previous_order.remove(leaf_name)
        target = self.leaf_order.setdefault(cluster_name, [])
        if leaf_name not in target:
            target.append(leaf_name)
        logger.debug("Assigned %s to %s (was %s)", leaf_name, cluster_name, previous)

    def reorder_leaf(self, cluster_name: str, leaf_name: str, direction: Direction) -> bool:
        """Move a leaf one slot within its cluster. Returns False at a boundary."""
        step = _step_for(direction)
        order = self.leaf_order.get(cluster_name)
        if not order or leaf_name not in order:
            return False
        return self._shift(order, leaf_name, step)

    def reorder_child_cluster(
        self,
        parent_name: str,
        child_name: str,
        direction: Direction,
        current_children: Optional[Sequence[str]] = None,
    ) -> bool:
        """Move a child one slot among its siblings. Returns False at a boundary.

        ``current_children`` is the parent's children in creation order; it
        seeds the explicit order when none exists yet or a child is missing.
        """
        step = _step_for(direction)
        order = self.child_order.get(parent_name, [])
        if current_children is not None:
            live = set(current_children)
            order = [c for c in order if c in live]
            order.extend(c for c in current_children if c not in order)
        if child_name not in order:
            return False
        self.child_order[parent_name] = order
        return self._shift(order, child_name, step)

    def move_leaf(self, cluster_name: str, from_index: int, to_index: int) -> None:
        order = self.leaf_order.get(cluster_name)
        if order:
            self.leaf_order[cluster_name] = move_item(order, from_index, to_index)

    def remove_clusters(self, removed: Set[str], root: str) -> List[str]:
        """Cascade a cluster deletion. Returns the leaves moved back to ``root``."""
        moved = [leaf for leaf, cluster in self.assignments.items() if cluster in removed]
        for leaf in moved:
            self.assign_leaf(leaf, root)
        for name in removed:
            self.leaf_order.pop(name, None)
            self.child_order.pop(name, None)
        for parent, children in self.child_order.items():
            self.child_order[parent] = [c for c in children if c not in removed]
        if moved:
            logger.info("Reassigned %d bacteria to %s after deleting %s", len(moved), root, sorted(removed))
        return moved

    @staticmethod
    def _shift(order: List[str], item: str, step: int) -> bool:
        index = order.index(item)
        target = index + step
        if target < 0 or target >= len(order):
            return False
        order[index], order[target] = order[target], order[index]
        return True
