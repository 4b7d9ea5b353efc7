"""Render a bacteria cluster tree from a spreadsheet and optional session."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from phagemap.data import load_dataset
from phagemap.errors import PhageMapError
from phagemap.hierarchy.aggregation import CLUSTER_MODE, PHAGE_MODE
from phagemap.hierarchy.models import TreeLayout, TreeNode
from phagemap.logging_utils import setup_logging
from phagemap.palette import cluster_colors_for_tree
from phagemap.session import SessionSnapshot, load_session, save_session
from phagemap.workspace import RenderResult, Workspace

logger = logging.getLogger("render_tree")


def outline_lines(tree: TreeNode, layout: TreeLayout, colors: dict) -> list[str]:
    """Indented outline of the tree with each node's coordinates."""
    lines = []

    def walk(node: TreeNode, depth: int) -> None:
        pos = layout.position_of(node.name, is_leaf=node.is_leaf)
        coords = f"({pos.x:.0f}, {pos.y:.0f})" if pos else "(?, ?)"
        if node.is_leaf:
            hits = sum(node.values)
            lines.append(f"{'  ' * depth}- {node.name} {coords} [{hits} phage(s)]")
            return
        color = colors.get(node.name, "")
        lines.append(f"{'  ' * depth}+ {node.name} {coords} {color}".rstrip())
        for child in node.children:
            walk(child, depth + 1)

    walk(tree, 0)
    return lines


def selection_lines(result: RenderResult, selected: list[str], mode: str) -> list[str]:
    rows = result.query(selected, mode)
    kind = "phages shared by" if mode == CLUSTER_MODE else "clusters containing"
    lines = [f"{len(rows)} {kind} {', '.join(selected)}:"]
    for row in rows:
        contributors = ", ".join(f"{c.name} ({c.cluster})" for c in row.contributors)
        lines.append(f"  {row.label}: {contributors}")
    return lines


def main() -> None:
    parser = argparse.ArgumentParser(description="Render a bacteria cluster tree and query selections.")
    parser.add_argument("--dataset", type=Path, required=True, help="Spreadsheet (.xlsx/.xls/.csv/.tsv)")
    parser.add_argument("--session", type=Path, help="Session JSON to apply on top of the dataset")
    parser.add_argument("--select", action="append", default=[], help="Cluster or phage to select (repeatable)")
    parser.add_argument("--mode", choices=[CLUSTER_MODE, PHAGE_MODE], default=CLUSTER_MODE)
    parser.add_argument("--export", type=Path, help="Write the resulting session to this path")
    parser.add_argument("--quiet", action="store_true", help="Suppress console logging")
    args = parser.parse_args()

    setup_logging(quiet=args.quiet)

    workspace = Workspace()
    try:
        workspace.load_dataset(load_dataset(args.dataset))
        if args.session:
            workspace.import_session(load_session(args.session))
    except PhageMapError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    start = time.time()
    result = workspace.render()
    logger.info("Rendered in %.3fs", time.time() - start)

    colors = cluster_colors_for_tree(result.tree)
    print("\nTree:")
    for line in outline_lines(result.tree, result.layout, colors):
        print(line)
    print(f"\nCanvas extent: {result.layout.width:.0f} x {result.layout.height:.0f}")
    print(f"Visible phage columns: {', '.join(name for _, name in result.columns) or '(none)'}")

    if args.select:
        try:
            lines = selection_lines(result, args.select, args.mode)
        except ValueError as exc:
            logger.error("%s", exc)
            sys.exit(1)
        print()
        for line in lines:
            print(line)

    if args.export:
        snapshot = SessionSnapshot.from_dict(workspace.export_session())
        path = save_session(snapshot, args.export)
        print(f"\nSession written to {path}")


if __name__ == "__main__":
    main()
