"""Render tree construction from the cluster and assignment stores."""
from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from phagemap.hierarchy.models import Cluster, Dataset, TreeNode

logger = logging.getLogger(__name__)

TOP_NODE_NAME = "Bacteria"


def _order_siblings(children: List[str], declared: Optional[Sequence[str]]) -> List[str]:
    """Declared order first, then any remaining children in creation order."""
    if not declared:
        return children
    live = set(children)
    ordered = [name for name in dict.fromkeys(declared) if name in live]
    ordered.extend(name for name in children if name not in ordered)
    return ordered


def _order_leaves(staged: List[str], declared: Optional[Sequence[str]]) -> List[str]:
    """Leaves in declared order; unlisted ones are appended, never dropped."""
    present = set(staged)
    ordered = [name for name in dict.fromkeys(declared or []) if name in present]
    listed = set(ordered)
    ordered.extend(name for name in staged if name not in listed)
    return ordered


def build_render_tree(
    dataset: Optional[Dataset],
    clusters: Iterable[Cluster],
    assignments: Mapping[str, str],
    leaf_order: Mapping[str, Sequence[str]],
    child_order: Mapping[str, Sequence[str]],
    visible: Optional[Iterable[str]],
    root_name: str = "Root",
    top_name: str = TOP_NODE_NAME,
) -> Optional[TreeNode]:
    """Build the visibility-filtered, ordered tree for one render pass.

    Args:
        dataset: Loaded spreadsheet, or None when nothing is loaded
        clusters: All clusters, in creation order
        assignments: Bacterium name -> cluster name
        leaf_order: Cluster name -> declared bacteria order
        child_order: Parent cluster name -> declared child order
        visible: Cluster names eligible to render; None means all of them
        root_name: Cluster that absorbs bacteria assigned to unknown clusters
        top_name: Name of the synthetic node wrapping every root-level branch

    Returns:
        The synthetic top node, or None when no dataset is loaded.
    """
    if dataset is None:
        return None
    t_start = time.time()

    # Step 1: one childless branch per cluster, creation order preserved
    parents: Dict[str, Optional[str]] = {}
    for cluster in clusters:
        parents[cluster.name] = cluster.parent

    # Step 2: stage each assigned bacterium under its resolved cluster
    staged: Dict[str, List[str]] = {name: [] for name in parents}
    missing_leaves = 0
    for leaf_name, cluster_name in assignments.items():
        if dataset.get_leaf(leaf_name) is None:
            missing_leaves += 1
            continue
        key = cluster_name if cluster_name in parents else root_name
        if key != cluster_name:
            logger.debug("Bacterium %s assigned to unknown cluster %s; using %s", leaf_name, cluster_name, key)
        staged.setdefault(key, []).append(leaf_name)
    if missing_leaves:
        logger.debug("Skipped %d assignment(s) with no matching bacterium in the dataset", missing_leaves)

    # Step 3: order leaves within each cluster
    nodes: Dict[str, TreeNode] = {}
    for name in staged:
        ordered = _order_leaves(staged[name], leaf_order.get(name))
        nodes[name] = TreeNode.branch(
            name,
            [TreeNode.leaf(leaf_name, dataset.get_leaf(leaf_name).values) for leaf_name in ordered],
        )

    # Step 4: link branches to parents; unknown parents become root-level
    child_names: Dict[str, List[str]] = {}
    root_level: List[str] = []
    for name in nodes:
        parent = parents.get(name)
        if parent is not None and parent in nodes and parent != name:
            child_names.setdefault(parent, []).append(name)
        else:
            if parent is not None:
                logger.debug("Cluster %s has unknown parent %s; treating as root-level", name, parent)
            root_level.append(name)

    visible_set = set(nodes) if visible is None else set(visible)

    # Step 5: emit a branch iff visible; hidden branches drop their subtree
    def emit(name: str, path: frozenset) -> Optional[TreeNode]:
        if name not in visible_set or name in path:
            return None
        node = nodes[name]
        branch = TreeNode.branch(name, list(node.children))
        for child in _order_siblings(child_names.get(name, []), child_order.get(name)):
            emitted = emit(child, path | {name})
            if emitted is not None:
                branch.children.append(emitted)
        return branch

    # Step 6: wrap everything under the synthetic top node
    top_children = []
    for name in _order_siblings(root_level, child_order.get(top_name)):
        emitted = emit(name, frozenset())
        if emitted is not None:
            top_children.append(emitted)
    tree = TreeNode.branch(top_name, top_children)

    logger.info(
        "Built render tree: %d clusters (%d visible roots), %d bacteria in %.3fs",
        len(nodes),
        len(top_children),
        sum(1 for _ in tree.iter_leaves()),
        time.time() - t_start,
    )
    return tree


def build_full_tree(
    dataset: Optional[Dataset],
    clusters: Iterable[Cluster],
    assignments: Mapping[str, str],
    leaf_order: Mapping[str, Sequence[str]],
    child_order: Mapping[str, Sequence[str]],
    root_name: str = "Root",
    top_name: str = TOP_NODE_NAME,
) -> Optional[TreeNode]:
    """Build the tree with every cluster visible."""
    return build_render_tree(
        dataset,
        clusters,
        assignments,
        leaf_order,
        child_order,
        visible=None,
        root_name=root_name,
        top_name=top_name,
    )
