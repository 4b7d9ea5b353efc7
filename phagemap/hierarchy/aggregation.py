"""Phage/cluster aggregation over a render tree.

``compute_cluster_feature_map`` answers "which phages are present in each
cluster and which bacteria contribute them". The two query functions
intersect those maps across a user selection of clusters or phages.
"""
from __future__ import annotations

import logging
from functools import reduce
from typing import Dict, Iterable, List, Optional, Sequence

from phagemap.hierarchy.models import Contributor, SelectionResult, TreeNode

logger = logging.getLogger(__name__)

FeatureMap = Dict[str, List[Contributor]]
ClusterFeatureMap = Dict[str, FeatureMap]

CLUSTER_MODE = "cluster"
PHAGE_MODE = "phage"
_MODE_ALIASES = {
    "cluster": CLUSTER_MODE,
    "clusters": CLUSTER_MODE,
    "phage": PHAGE_MODE,
    "phages": PHAGE_MODE,
    "feature": PHAGE_MODE,
    "features": PHAGE_MODE,
}


def compute_cluster_feature_map(tree: Optional[TreeNode], headers: Sequence[str]) -> ClusterFeatureMap:
    """Map every branch to phage -> contributors, merging children upward.

    Contributors name the bacterium's immediate cluster. Ancestors receive
    the concatenation of their children's lists; nothing is de-duplicated
    at this stage.
    """
    result: ClusterFeatureMap = {}
    if tree is None or tree.is_leaf:
        return result

    def visit(node: TreeNode) -> FeatureMap:
        merged: FeatureMap = {}
        has_leaves = False
        for child in node.children:
            if child.is_leaf:
                has_leaves = True
                for index, phage in enumerate(headers):
                    value = child.values[index] if index < len(child.values) else 0
                    if value:
                        merged.setdefault(phage, []).append(Contributor(child.name, node.name))
            else:
                for phage, contributors in visit(child).items():
                    merged.setdefault(phage, []).extend(contributors)
        if has_leaves or merged:
            result[node.name] = {phage: list(contributors) for phage, contributors in merged.items()}
        return merged

    visit(tree)
    logger.debug("Aggregated phage presence for %d cluster(s)", len(result))
    return result


def dedupe_contributors(contributors: Iterable[Contributor]) -> List[Contributor]:
    """Drop repeated (name, cluster) pairs, keeping first-seen order."""
    return list(dict.fromkeys(contributors))


def query_by_clusters(feature_map: ClusterFeatureMap, selected: Sequence[str]) -> List[SelectionResult]:
    """Phages present in every selected cluster, with their contributors."""
    if not selected:
        return []
    per_cluster = [set(feature_map.get(name, {})) for name in selected]
    common = reduce(lambda acc, phages: acc & phages, per_cluster[1:], per_cluster[0])

    # Keep the first selected cluster's phage order for a stable listing
    first_order = list(feature_map.get(selected[0], {}))
    results = []
    for phage in (p for p in first_order if p in common):
        contributors: List[Contributor] = []
        for name in selected:
            contributors.extend(feature_map.get(name, {}).get(phage, []))
        results.append(SelectionResult(label=phage, contributors=dedupe_contributors(contributors)))
    return results


def query_by_features(feature_map: ClusterFeatureMap, selected: Sequence[str]) -> List[SelectionResult]:
    """Clusters containing every selected phage, with their contributors."""
    if not selected:
        return []
    per_phage = [
        {cluster for cluster, phages in feature_map.items() if phages.get(phage)}
        for phage in selected
    ]
    common = reduce(lambda acc, clusters: acc & clusters, per_phage[1:], per_phage[0])

    results = []
    for cluster in (c for c in feature_map if c in common):
        contributors: List[Contributor] = []
        for phage in selected:
            contributors.extend(feature_map[cluster].get(phage, []))
        results.append(SelectionResult(label=cluster, contributors=dedupe_contributors(contributors)))
    return results


def query_selection(feature_map: ClusterFeatureMap, selected: Sequence[str], mode: str = CLUSTER_MODE) -> List[SelectionResult]:
    """Dispatch a selection query by mode ("cluster" or "phage")."""
    resolved = _MODE_ALIASES.get(mode.lower()) if isinstance(mode, str) else None
    if resolved is None:
        raise ValueError(f"Unknown selection mode {mode!r}; expected 'cluster' or 'phage'")
    if resolved == CLUSTER_MODE:
        return query_by_clusters(feature_map, selected)
    return query_by_features(feature_map, selected)


def all_phages(feature_map: ClusterFeatureMap) -> List[str]:
    """Every phage present anywhere, in first-seen order."""
    seen: Dict[str, None] = {}
    for phages in feature_map.values():
        for phage in phages:
            seen.setdefault(phage, None)
    return list(seen)
