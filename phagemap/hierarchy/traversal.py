"""Tree traversal utilities over a cluster parent map.

Every function takes ``parents``: a mapping of cluster name -> parent name
(``None`` at root level). Walks are bounded by the number of clusters so a
transiently inconsistent map can never loop forever.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Set


def get_children(parents: Mapping[str, Optional[str]], name: str) -> List[str]:
    """Direct children of a cluster, in map (creation) order."""
    return [child for child, parent in parents.items() if parent == name and child != name]


def build_children_index(parents: Mapping[str, Optional[str]]) -> Dict[str, List[str]]:
    """Parent name -> ordered list of direct children."""
    index: Dict[str, List[str]] = {}
    for child, parent in parents.items():
        if parent is None or parent == child:
            continue
        index.setdefault(parent, []).append(child)
    return index


def get_descendants(parents: Mapping[str, Optional[str]], name: str) -> Set[str]:
    """Transitive closure below ``name``, inclusive of ``name`` itself."""
    index = build_children_index(parents)
    found: Set[str] = {name}
    stack = [name]
    while stack:
        current = stack.pop()
        for child in index.get(current, []):
            if child not in found:
                found.add(child)
                stack.append(child)
    return found


def get_ancestors(parents: Mapping[str, Optional[str]], name: str) -> List[str]:
    """Parent chain of ``name``, nearest first. Stops at a missing parent."""
    chain: List[str] = []
    seen = {name}
    current = parents.get(name)
    for _ in range(len(parents)):
        if current is None or current in seen or current not in parents:
            break
        chain.append(current)
        seen.add(current)
        current = parents.get(current)
    return chain


def get_depth(parents: Mapping[str, Optional[str]], name: str) -> int:
    """Number of ancestors above ``name`` (0 at root level)."""
    return len(get_ancestors(parents, name))


def is_ancestor(parents: Mapping[str, Optional[str]], ancestor: str, name: str) -> bool:
    """Check whether ``ancestor`` appears on the parent chain of ``name``."""
    return ancestor in get_ancestors(parents, name)


def would_create_cycle(
    parents: Mapping[str, Optional[str]],
    name: str,
    new_parent: str,
) -> bool:
    """Return True when making ``new_parent`` the parent of ``name`` is invalid.

    Walks upward from ``new_parent``. Rejects when ``name`` is met, when a
    candidate on the walk does not exist, or when the walk outlasts the
    cluster count (the map already holds a cycle).
    """
    current: Optional[str] = new_parent
    for _ in range(len(parents) + 1):
        if current is None:
            return False
        if current == name:
            return True
        if current not in parents:
            return True
        current = parents[current]
    return True


def reaches(parents: Mapping[str, Optional[str]], start: Optional[str], target: str) -> bool:
    """Check whether the parent chain from ``start`` (inclusive) meets ``target``.

    Unlike ``get_ancestors`` this also compares a dangling parent reference,
    so a chain pointing at a not-yet-created name is detected.
    """
    current = start
    for _ in range(len(parents) + 1):
        if current is None:
            return False
        if current == target:
            return True
        if current not in parents:
            return False
        current = parents[current]
    return False
