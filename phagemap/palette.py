"""Cluster colour assignment for the rendered tree.

Clusters get colours from an ordinal palette in tree (pre-order) order, so
the same tree always yields the same colours. Bacteria reuse their immediate
cluster's colour, faded for the outer ring.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

from phagemap.hierarchy.models import TreeNode

logger = logging.getLogger(__name__)

DEFAULT_PALETTE = (
    "#3B82F6", "#1E40AF", "#60A5FA", "#0EA5E9", "#0284C7", "#38BDF8",
    "#8B5CF6", "#7C3AED", "#A855F7", "#6D28D9", "#C084FC", "#EC4899",
    "#DB2777", "#F472B6", "#E11D48", "#FB7185", "#D946EF", "#F97316",
    "#EA580C", "#FB923C", "#F59E0B", "#D97706", "#EAB308", "#06B6D4",
    "#0891B2", "#14B8A6", "#0D9488", "#6366F1", "#4F46E5", "#78716C",
    "#64748B", "#71717A",
)
DEFAULT_LEAF_COLOR = "#2B6CB0"
FADED_ALPHA = 0.3


@dataclass
class NodeColors:
    """Fill colours for one bacterium marker."""

    inner: str
    outer: str


def assign_cluster_colors(names: Iterable[str], palette: Sequence[str] = DEFAULT_PALETTE) -> Dict[str, str]:
    """Map each distinct name to a palette entry, cycling when names outnumber colours."""
    if not palette:
        raise ValueError("palette must contain at least one colour")
    colors: Dict[str, str] = {}
    for name in names:
        if name not in colors:
            colors[name] = palette[len(colors) % len(palette)]
    return colors


def cluster_colors_for_tree(tree: Optional[TreeNode], palette: Sequence[str] = DEFAULT_PALETTE) -> Dict[str, str]:
    """Colour every branch of the render tree, synthetic top node included."""
    if tree is None:
        return {}
    colors = assign_cluster_colors((branch.name for branch in tree.iter_branches()), palette)
    logger.debug("Assigned colours to %d clusters", len(colors))
    return colors


def with_alpha(hex_color: str, alpha: float) -> str:
    """Convert ``#RRGGBB`` to an ``rgba()`` string."""
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB colour, got {hex_color!r}")
    red, green, blue = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    alpha = max(0.0, min(1.0, alpha))
    return f"rgba({red}, {green}, {blue}, {alpha:g})"


def leaf_colors(cluster_name: Optional[str], cluster_colors: Dict[str, str]) -> NodeColors:
    """Marker colours for a bacterium sitting directly in ``cluster_name``."""
    color = cluster_colors.get(cluster_name) if cluster_name else None
    if color is None:
        return NodeColors(inner=DEFAULT_LEAF_COLOR, outer="#EEEEEE")
    return NodeColors(inner=color, outer=with_alpha(color, FADED_ALPHA))
