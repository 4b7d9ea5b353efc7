"""Configuration helpers for the phage map explorer."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_PATH = PROJECT_ROOT / ".env"

# Load environment variables early so downstream modules can rely on them.
load_dotenv(ENV_PATH, override=False)

LEAF_SPACING_ENV = "PHAGEMAP_LEAF_SPACING"
CLUSTER_GAP_ENV = "PHAGEMAP_CLUSTER_GAP"
LEVEL_WIDTH_ENV = "PHAGEMAP_LEVEL_WIDTH"
ROOT_CLUSTER_ENV = "PHAGEMAP_ROOT_CLUSTER"
SESSION_DIR_ENV = "PHAGEMAP_SESSION_DIR"

DEFAULT_LEAF_SPACING = 30.0
DEFAULT_CLUSTER_GAP = 15.0
DEFAULT_LEVEL_WIDTH = 100.0
DEFAULT_ROOT_CLUSTER = "Root"
DEFAULT_SESSION_DIR = PROJECT_ROOT / "data" / "sessions"


@dataclass(frozen=True)
class LayoutSettings:
    """Spacing constants for the tree layout passes."""

    leaf_spacing: float = DEFAULT_LEAF_SPACING  # Vertical slot per bacterium
    cluster_gap: float = DEFAULT_CLUSTER_GAP  # Gap between sibling groups
    level_width: float = DEFAULT_LEVEL_WIDTH  # Horizontal step per depth level


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_float(name: str, default: float, allow_zero: bool = False) -> float:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number; received '{raw}'.") from exc
    if allow_zero and value < 0:
        raise RuntimeError(f"{name} must not be negative; received '{raw}'.")
    if not allow_zero and value <= 0:
        raise RuntimeError(f"{name} must be positive; received '{raw}'.")
    return value


def get_layout_settings() -> LayoutSettings:
    """Resolve layout spacing from environment with the UI defaults."""

    return LayoutSettings(
        leaf_spacing=_get_float(LEAF_SPACING_ENV, DEFAULT_LEAF_SPACING),
        cluster_gap=_get_float(CLUSTER_GAP_ENV, DEFAULT_CLUSTER_GAP, allow_zero=True),
        level_width=_get_float(LEVEL_WIDTH_ENV, DEFAULT_LEVEL_WIDTH),
    )


def get_root_cluster_name() -> str:
    name = _get_env(ROOT_CLUSTER_ENV, DEFAULT_ROOT_CLUSTER).strip()
    if not name:
        raise RuntimeError(f"{ROOT_CLUSTER_ENV} must not be blank.")
    return name


def get_session_dir() -> Path:
    """Resolve the directory where session snapshots are written by default."""

    raw_path = _get_env(SESSION_DIR_ENV, str(DEFAULT_SESSION_DIR))
    return Path(raw_path).expanduser().resolve()
