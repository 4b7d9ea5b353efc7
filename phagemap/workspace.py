"""Explorer workspace: the single entry point for mutating cluster state.

Every mutation updates the long-lived stores and marks the workspace dirty.
Nothing derived is cached: ``render()`` rebuilds the tree, layout and
aggregation from scratch on each call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from phagemap.config import LayoutSettings, get_layout_settings, get_root_cluster_name
from phagemap.errors import PhageMapError
from phagemap.hierarchy.aggregation import (
    CLUSTER_MODE,
    ClusterFeatureMap,
    compute_cluster_feature_map,
    query_selection,
)
from phagemap.hierarchy.assignments import AssignmentStore, Direction
from phagemap.hierarchy.builder import TOP_NODE_NAME, build_full_tree, build_render_tree
from phagemap.hierarchy.clusters import ClusterHierarchy
from phagemap.hierarchy.layout import compute_layout, feature_columns
from phagemap.hierarchy.models import Cluster, Dataset, SelectionResult, TreeLayout, TreeNode
from phagemap.session import SessionSnapshot

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Everything one render pass produces."""

    tree: Optional[TreeNode]
    layout: Optional[TreeLayout]
    feature_map: ClusterFeatureMap = field(default_factory=dict)
    columns: List[Tuple[int, str]] = field(default_factory=list)

    def query(self, selected: Sequence[str], mode: str = CLUSTER_MODE) -> List[SelectionResult]:
        return query_selection(self.feature_map, selected, mode)


class Workspace:
    """Dataset plus the user-editable cluster, assignment and visibility stores."""

    def __init__(self, root_name: Optional[str] = None, settings: Optional[LayoutSettings] = None):
        self.root_name = root_name or get_root_cluster_name()
        self.settings = settings or get_layout_settings()
        self.dataset: Optional[Dataset] = None
        self.hierarchy = ClusterHierarchy(self.root_name)
        self.assignments = AssignmentStore()
        self.visible_clusters: List[str] = [self.root_name]
        self.visible_phages: List[str] = []
        self.dirty = False

    # -- loading ---------------------------------------------------------

    def load_dataset(self, dataset: Dataset) -> None:
        """Reset to the initial state: only Root, everything in it, all visible."""
        self.dataset = dataset
        self.hierarchy = ClusterHierarchy(self.root_name)
        self.assignments = AssignmentStore()
        self.assignments.initialise(dataset.leaf_names, self.root_name)
        self.visible_clusters = [self.root_name]
        self.visible_phages = list(dataset.headers)
        self.dirty = False
        logger.info(
            "Loaded dataset %s: %d bacteria, %d phages",
            dataset.source_name or "<memory>", len(dataset.leaves), len(dataset.headers),
        )

    # -- cluster mutations -----------------------------------------------

    def add_cluster(self, name: str, parent: Optional[str] = None) -> Cluster:
        name = (name or "").strip()
        try:
            cluster = self.hierarchy.add_cluster(name, parent)
        except (PhageMapError, ValueError) as exc:
            logger.warning("Rejected add of cluster %r: %s", name, exc)
            raise
        self.assignments.register_cluster(name)
        if name not in self.visible_clusters:
            self.visible_clusters.append(name)
        self.dirty = True
        return cluster

    def delete_cluster(self, name: str) -> Set[str]:
        try:
            removed = self.hierarchy.delete_cluster(name)
        except PhageMapError as exc:
            logger.warning("Rejected delete of cluster %r: %s", name, exc)
            raise
        self.assignments.remove_clusters(removed, self.root_name)
        self.visible_clusters = [c for c in self.visible_clusters if c not in removed]
        self.dirty = True
        return removed

    def update_parent(self, name: str, new_parent: Optional[str]) -> None:
        try:
            self.hierarchy.update_parent(name, new_parent or None)
        except PhageMapError as exc:
            logger.warning("Rejected move of %r under %r: %s", name, new_parent, exc)
            raise
        self.dirty = True

    def reorder_child_cluster(self, parent_name: str, child_name: str, direction: Direction) -> bool:
        if parent_name == TOP_NODE_NAME:
            parents = self.hierarchy.parents
            current = [name for name, parent in parents.items() if parent is None or parent not in parents]
        else:
            current = self.hierarchy.get_children(parent_name)
        moved = self.assignments.reorder_child_cluster(parent_name, child_name, direction, current)
        self.dirty = self.dirty or moved
        return moved

    # -- bacteria mutations ----------------------------------------------

    def assign_leaf(self, leaf_name: str, cluster_name: str) -> None:
        self.assignments.assign_leaf(leaf_name, cluster_name)
        self.dirty = True

    def reorder_leaf(self, cluster_name: str, leaf_name: str, direction: Direction) -> bool:
        moved = self.assignments.reorder_leaf(cluster_name, leaf_name, direction)
        self.dirty = self.dirty or moved
        return moved

    def move_leaf(self, cluster_name: str, from_index: int, to_index: int) -> None:
        self.assignments.move_leaf(cluster_name, from_index, to_index)
        self.dirty = True

    # -- visibility ------------------------------------------------------

    def set_cluster_visible(self, name: str, visible: bool) -> None:
        if visible and name not in self.visible_clusters:
            self.visible_clusters.append(name)
        elif not visible and name in self.visible_clusters:
            self.visible_clusters.remove(name)
        self.dirty = True

    def toggle_cluster(self, name: str) -> bool:
        visible = name not in self.visible_clusters
        self.set_cluster_visible(name, visible)
        return visible

    def show_all_clusters(self) -> None:
        self.visible_clusters = self.hierarchy.names
        self.dirty = True

    def set_phage_visible(self, name: str, visible: bool) -> None:
        if visible and name not in self.visible_phages:
            self.visible_phages.append(name)
        elif not visible and name in self.visible_phages:
            self.visible_phages.remove(name)
        self.dirty = True

    def toggle_phage(self, name: str) -> bool:
        visible = name not in self.visible_phages
        self.set_phage_visible(name, visible)
        return visible

    # -- derived views ---------------------------------------------------

    def build_tree(self, include_hidden: bool = False) -> Optional[TreeNode]:
        args = (
            self.dataset,
            self.hierarchy.clusters(),
            self.assignments.assignments,
            self.assignments.leaf_order,
            self.assignments.child_order,
        )
        if include_hidden:
            return build_full_tree(*args, root_name=self.root_name)
        return build_render_tree(*args, visible=self.visible_clusters, root_name=self.root_name)

    def render(self) -> RenderResult:
        """Full rebuild: tree, then layout and aggregation over it."""
        tree = self.build_tree()
        if tree is None:
            return RenderResult(tree=None, layout=None)
        headers = self.dataset.headers
        return RenderResult(
            tree=tree,
            layout=compute_layout(tree, self.settings),
            feature_map=compute_cluster_feature_map(tree, headers),
            columns=feature_columns(headers, self.visible_phages),
        )

    # -- sessions --------------------------------------------------------

    def export_session(self) -> Dict[str, Any]:
        snapshot = SessionSnapshot(
            all_clusters=self.hierarchy.to_list(),
            visible_clusters=list(self.visible_clusters),
            visible_phages=list(self.visible_phages),
            bacteria_clusters=dict(self.assignments.assignments),
            cluster_bacteria_order={k: list(v) for k, v in self.assignments.leaf_order.items()},
            cluster_children_order={k: list(v) for k, v in self.assignments.child_order.items()},
        )
        self.dirty = False
        return snapshot.to_dict()

    def import_session(self, data: Mapping[str, Any]) -> SessionSnapshot:
        """Replace the stores with a session's contents; the dataset is kept.

        Loaded bacteria the session does not assign go to Root.
        """
        snapshot = data if isinstance(data, SessionSnapshot) else SessionSnapshot.from_dict(data)
        self.hierarchy = ClusterHierarchy.from_list(snapshot.all_clusters, root_name=self.root_name)
        self.assignments = AssignmentStore(
            assignments=snapshot.bacteria_clusters,
            leaf_order=snapshot.cluster_bacteria_order,
            child_order=snapshot.cluster_children_order or {},
        )
        if self.dataset is not None:
            missing = [name for name in self.dataset.leaf_names if name not in self.assignments.assignments]
            for name in missing:
                self.assignments.assign_leaf(name, self.root_name)
            if missing:
                logger.warning(
                    "Session left %d bacteria unassigned; placed them in %s",
                    len(missing), self.root_name,
                )
        self.visible_clusters = list(snapshot.visible_clusters)
        self.visible_phages = list(snapshot.visible_phages)
        self.dirty = False
        logger.info(
            "Imported session: %d clusters, %d assignments",
            len(self.hierarchy), len(self.assignments.assignments),
        )
        return snapshot
