"""Hierarchy package for the bacteria cluster tree."""
from phagemap.hierarchy.models import (
    Cluster,
    Contributor,
    Dataset,
    Leaf,
    NodePosition,
    SelectionResult,
    TreeLayout,
    TreeNode,
)
from phagemap.hierarchy.clusters import ClusterHierarchy
from phagemap.hierarchy.assignments import AssignmentStore, move_item
from phagemap.hierarchy.builder import (
    TOP_NODE_NAME,
    build_full_tree,
    build_render_tree,
)
from phagemap.hierarchy.layout import (
    assign_positions,
    compute_height,
    compute_layout,
    feature_columns,
)
from phagemap.hierarchy.aggregation import (
    CLUSTER_MODE,
    PHAGE_MODE,
    all_phages,
    compute_cluster_feature_map,
    dedupe_contributors,
    query_by_clusters,
    query_by_features,
    query_selection,
)
