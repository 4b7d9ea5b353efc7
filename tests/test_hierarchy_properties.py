"""Property-based tests for the cluster workspace using Hypothesis.

Random sequences of cluster operations must keep the hierarchy acyclic,
keep Root in place, and never lose a bacterium from the full tree.

To run: pytest tests/test_hierarchy_properties.py -v
"""
from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from phagemap.config import LayoutSettings
from phagemap.errors import PhageMapError
from phagemap.hierarchy.models import Dataset, Leaf
from phagemap.workspace import Workspace


# ==============================================================================
# Hypothesis Strategies
# ==============================================================================

LEAF_NAMES = [f"b{i}" for i in range(6)]
CLUSTER_NAMES = ["Root", "A", "B", "C", "D", "E"]

cluster_names = st.sampled_from(CLUSTER_NAMES)
leaf_names = st.sampled_from(LEAF_NAMES)

operations = st.lists(
    st.one_of(
        st.tuples(st.just("add"), cluster_names, st.one_of(st.none(), cluster_names)),
        st.tuples(st.just("delete"), cluster_names),
        st.tuples(st.just("move"), cluster_names, st.one_of(st.none(), cluster_names)),
        st.tuples(st.just("assign"), leaf_names, cluster_names),
        st.tuples(st.just("toggle"), cluster_names),
        st.tuples(st.just("reorder"), cluster_names, cluster_names, st.sampled_from(["up", "down"])),
    ),
    max_size=40,
)


def fresh_workspace() -> Workspace:
    dataset = Dataset(
        headers=["P1", "P2"],
        leaves=[Leaf(name, (i % 2, 1)) for i, name in enumerate(LEAF_NAMES)],
    )
    ws = Workspace(root_name="Root", settings=LayoutSettings())
    ws.load_dataset(dataset)
    return ws


def apply(ws: Workspace, op) -> None:
    kind = op[0]
    try:
        if kind == "add":
            ws.add_cluster(op[1], op[2])
        elif kind == "delete":
            ws.delete_cluster(op[1])
        elif kind == "move":
            ws.update_parent(op[1], op[2])
        elif kind == "assign":
            if op[2] in ws.hierarchy:
                ws.assign_leaf(op[1], op[2])
        elif kind == "toggle":
            if op[1] in ws.hierarchy:
                ws.toggle_cluster(op[1])
        elif kind == "reorder":
            if op[1] in ws.hierarchy:
                ws.reorder_child_cluster(op[1], op[2], op[3])
    except PhageMapError:
        pass


# ==============================================================================
# Structural Properties
# ==============================================================================

@pytest.mark.property
@settings(max_examples=200, deadline=None)
@given(ops=operations)
def test_hierarchy_stays_acyclic(ops):
    """Property: No cluster is ever its own ancestor."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)

    parents = ws.hierarchy.parents
    for name in parents:
        chain = [name]
        current = parents[name]
        while current is not None and current in parents:
            assert current not in chain, f"cycle through {chain + [current]}"
            chain.append(current)
            current = parents[current]


@pytest.mark.property
@settings(max_examples=200, deadline=None)
@given(ops=operations)
def test_root_survives_at_top(ops):
    """Property: Root always exists with no parent."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)

    assert "Root" in ws.hierarchy
    assert ws.hierarchy.parent_of("Root") is None


@pytest.mark.property
@settings(max_examples=200, deadline=None)
@given(ops=operations)
def test_full_tree_never_drops_a_leaf(ops):
    """Property: Every bacterium appears exactly once in the unfiltered tree."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)

    tree = ws.build_tree(include_hidden=True)
    rendered = [leaf.name for leaf in tree.iter_leaves()]
    assert sorted(rendered) == sorted(LEAF_NAMES)


@pytest.mark.property
@settings(max_examples=200, deadline=None)
@given(ops=operations)
def test_assignments_point_at_live_clusters(ops):
    """Property: After any delete cascade, no bacterium names a missing cluster."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)

    for leaf_name, cluster in ws.assignments.assignments.items():
        assert cluster in ws.hierarchy, f"{leaf_name} assigned to deleted {cluster}"
        assert leaf_name in ws.assignments.leaf_order[cluster]
    assert set(ws.visible_clusters) <= set(ws.hierarchy.names)


@pytest.mark.property
@settings(max_examples=100, deadline=None)
@given(ops=operations, target=cluster_names, new_parent=cluster_names)
def test_move_under_descendant_always_rejected(ops, target, new_parent):
    """Property: update_parent succeeds only when the result stays acyclic."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)
    if target not in ws.hierarchy or new_parent not in ws.hierarchy or target == "Root":
        return

    # Rejected when the chain from new_parent meets target or runs into a missing cluster
    parents = ws.hierarchy.parents
    invalid = False
    current = new_parent
    while current is not None:
        if current == target or current not in parents:
            invalid = True
            break
        current = parents[current]
    try:
        ws.update_parent(target, new_parent)
        accepted = True
    except PhageMapError:
        accepted = False
    assert accepted is not invalid


# ==============================================================================
# Session Round Trip
# ==============================================================================

@pytest.mark.property
@settings(max_examples=100, deadline=None)
@given(ops=operations)
def test_session_round_trip_preserves_render(ops):
    """Property: export then import reproduces the same tree and aggregation."""
    ws = fresh_workspace()
    for op in ops:
        apply(ws, op)
    payload = ws.export_session()
    before = ws.render()

    restored = fresh_workspace()
    restored.import_session(payload)
    after = restored.render()

    assert restored.export_session() == payload
    assert after.tree == before.tree
    assert after.feature_map == before.feature_map
