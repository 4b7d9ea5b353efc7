"""Layout computation for the render tree.

Two recursive passes: subtree heights (post-order), then coordinates
(pre-order). X grows by ``level_width`` per depth level; Y stacks bacteria
slots and inserts ``cluster_gap`` between sibling groups.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from phagemap.config import LayoutSettings, get_layout_settings
from phagemap.hierarchy.models import NodePosition, TreeLayout, TreeNode

logger = logging.getLogger(__name__)


def compute_height(
    node: TreeNode,
    leaf_spacing: float,
    cluster_gap: float,
    heights: Optional[Dict[int, float]] = None,
) -> float:
    """Compute (and cache by node identity) the vertical extent of a subtree."""
    if node.is_leaf:
        return leaf_spacing
    if heights is not None and id(node) in heights:
        return heights[id(node)]

    leaves = node.leaves
    branches = node.branches
    if not leaves and not branches:
        total = leaf_spacing
    else:
        leaves_height = len(leaves) * leaf_spacing
        gap = cluster_gap if leaves and branches else 0.0
        children_height = 0.0
        for index, child in enumerate(branches):
            children_height += compute_height(child, leaf_spacing, cluster_gap, heights)
            if index < len(branches) - 1:
                children_height += cluster_gap
        total = leaves_height + gap + children_height

    if heights is not None:
        heights[id(node)] = total
    return total


def assign_positions(
    node: TreeNode,
    start_y: float,
    current_x: float,
    leaf_spacing: float,
    cluster_gap: float,
    level_width: float,
    heights: Optional[Dict[int, float]] = None,
    positions: Optional[List[NodePosition]] = None,
    depth: int = 0,
    parent: Optional[str] = None,
) -> List[NodePosition]:
    """Place ``node`` and its subtree; returns the accumulated position list."""
    if positions is None:
        positions = []
    if heights is None:
        heights = {}

    if node.is_leaf:
        positions.append(NodePosition(node.name, current_x, start_y, True, depth, parent))
        return positions

    height = compute_height(node, leaf_spacing, cluster_gap, heights)
    positions.append(NodePosition(node.name, current_x, start_y + height / 2, False, depth, parent))

    leaves = node.leaves
    branches = node.branches
    child_x = current_x + level_width
    current_y = start_y
    for leaf in leaves:
        positions.append(NodePosition(leaf.name, child_x, current_y, True, depth + 1, node.name))
        current_y += leaf_spacing

    if leaves and branches:
        current_y += cluster_gap

    for index, child in enumerate(branches):
        assign_positions(
            child,
            current_y,
            child_x,
            leaf_spacing,
            cluster_gap,
            level_width,
            heights=heights,
            positions=positions,
            depth=depth + 1,
            parent=node.name,
        )
        current_y += heights[id(child)]
        if index < len(branches) - 1:
            current_y += cluster_gap

    return positions


def compute_layout(
    tree: Optional[TreeNode],
    settings: Optional[LayoutSettings] = None,
    start_y: float = 0.0,
    start_x: float = 0.0,
) -> Optional[TreeLayout]:
    """Run both layout passes over ``tree`` and measure the canvas extent."""
    if tree is None:
        return None
    settings = settings or get_layout_settings()

    heights: Dict[int, float] = {}
    compute_height(tree, settings.leaf_spacing, settings.cluster_gap, heights)
    positions = assign_positions(
        tree,
        start_y,
        start_x,
        settings.leaf_spacing,
        settings.cluster_gap,
        settings.level_width,
        heights=heights,
    )

    coords = np.array([[p.x, p.y] for p in positions], dtype=np.float64)
    width = float(coords[:, 0].max()) if len(coords) else 0.0
    height = float(coords[:, 1].max()) if len(coords) else 0.0

    named_heights = {branch.name: heights[id(branch)] for branch in tree.iter_branches()}
    logger.info(
        "Layout computed: %d nodes, extent %.1f x %.1f",
        len(positions), width, height,
    )
    return TreeLayout(positions=positions, heights=named_heights, width=width, height=height)


def feature_columns(headers: Sequence[str], visible_features: Iterable[str]) -> List[Tuple[int, str]]:
    """Visible phage columns as (header index, name), in header order."""
    wanted = set(visible_features)
    return [(index, name) for index, name in enumerate(headers) if name in wanted]
