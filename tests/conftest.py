"""Shared pytest configuration and fixtures for the test suite.

This module centralizes:
- Path setup (eliminates sys.path hacks in individual test files)
- Pytest markers for test categorization (unit, property, integration)
- Small datasets and workspaces used across hierarchy tests
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


# ==============================================================================
# Path Setup - Ensures phagemap/ is importable
# ==============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from phagemap.config import LayoutSettings  # noqa: E402
from phagemap.hierarchy.models import Dataset, Leaf  # noqa: E402
from phagemap.workspace import Workspace  # noqa: E402


# ==============================================================================
# Pytest Configuration
# ==============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Fast tests with no I/O",
    )
    config.addinivalue_line(
        "markers",
        "property: Hypothesis property-based tests",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests touching the file system",
    )


# ==============================================================================
# Dataset Fixtures
# ==============================================================================

@pytest.fixture
def two_leaf_dataset() -> Dataset:
    """A hits F1 only, B hits F2 only."""
    return Dataset(
        headers=["F1", "F2"],
        leaves=[Leaf("A", (1, 0)), Leaf("B", (0, 1))],
        source_name="two.xlsx",
    )


@pytest.fixture
def sample_dataset() -> Dataset:
    """Five bacteria over three phages with overlapping hits."""
    return Dataset(
        headers=["P1", "P2", "P3"],
        leaves=[
            Leaf("b1", (1, 1, 0)),
            Leaf("b2", (1, 0, 0)),
            Leaf("b3", (0, 1, 1)),
            Leaf("b4", (1, 1, 1)),
            Leaf("b5", (0, 0, 0)),
        ],
        source_name="sample.csv",
    )


@pytest.fixture
def layout_settings() -> LayoutSettings:
    return LayoutSettings(leaf_spacing=30.0, cluster_gap=15.0, level_width=100.0)


# ==============================================================================
# Workspace Fixtures
# ==============================================================================

@pytest.fixture
def workspace(two_leaf_dataset, layout_settings) -> Workspace:
    """Workspace loaded with the two-leaf dataset; only Root exists."""
    ws = Workspace(root_name="Root", settings=layout_settings)
    ws.load_dataset(two_leaf_dataset)
    return ws


@pytest.fixture
def sample_workspace(sample_dataset, layout_settings) -> Workspace:
    """Workspace with Root > {X > Y, Z}; b1,b2 in X, b3 in Y, b4 in Z, b5 in Root."""
    ws = Workspace(root_name="Root", settings=layout_settings)
    ws.load_dataset(sample_dataset)
    ws.add_cluster("X", "Root")
    ws.add_cluster("Y", "X")
    ws.add_cluster("Z", "Root")
    ws.assign_leaf("b1", "X")
    ws.assign_leaf("b2", "X")
    ws.assign_leaf("b3", "Y")
    ws.assign_leaf("b4", "Z")
    return ws
