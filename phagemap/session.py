"""Session snapshot schema and JSON persistence.

A session captures everything the user customised on top of a loaded
spreadsheet: the cluster tree, visibility, assignments and display orders.
It never contains the spreadsheet itself.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from phagemap.config import get_session_dir
from phagemap.errors import InvalidSessionError

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    "allClusters",
    "visibleClusters",
    "visiblePhages",
    "bacteriaClusters",
    "clusterBacteriaOrder",
)
OPTIONAL_KEYS = ("clusterChildrenOrder",)


@dataclass
class SessionSnapshot:
    """Serializable copy of the user-editable stores."""

    all_clusters: List[Dict[str, Optional[str]]]
    visible_clusters: List[str]
    visible_phages: List[str]
    bacteria_clusters: Dict[str, str]
    cluster_bacteria_order: Dict[str, List[str]]
    cluster_children_order: Optional[Dict[str, List[str]]] = field(default=None)

    @classmethod
    def from_dict(cls, data: Any) -> SessionSnapshot:
        """Load a snapshot, rejecting payloads without the required keys."""
        if not isinstance(data, Mapping):
            raise InvalidSessionError("Invalid session file format: expected a JSON object.")
        missing = [key for key in REQUIRED_KEYS if data.get(key) is None]
        if missing:
            raise InvalidSessionError(
                "Invalid session file format: missing required field(s) " + ", ".join(missing)
            )
        if not all(isinstance(row, Mapping) for row in data["allClusters"]):
            raise InvalidSessionError("Invalid session file format: allClusters entries must be objects.")
        children_order = data.get("clusterChildrenOrder")
        return cls(
            all_clusters=[
                {"name": row.get("name"), "parent": row.get("parent")}
                for row in data["allClusters"]
            ],
            visible_clusters=list(data["visibleClusters"]),
            visible_phages=list(data["visiblePhages"]),
            bacteria_clusters=dict(data["bacteriaClusters"]),
            cluster_bacteria_order={k: list(v) for k, v in data["clusterBacteriaOrder"].items()},
            cluster_children_order=(
                {k: list(v) for k, v in children_order.items()} if children_order is not None else None
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape used by session files."""
        payload: Dict[str, Any] = {
            "allClusters": [dict(row) for row in self.all_clusters],
            "visibleClusters": list(self.visible_clusters),
            "visiblePhages": list(self.visible_phages),
            "bacteriaClusters": dict(self.bacteria_clusters),
            "clusterBacteriaOrder": {k: list(v) for k, v in self.cluster_bacteria_order.items()},
        }
        if self.cluster_children_order is not None:
            payload["clusterChildrenOrder"] = {k: list(v) for k, v in self.cluster_children_order.items()}
        return payload


def session_filename(source_name: Optional[str] = None) -> str:
    """Default file name for an exported session."""
    if not source_name:
        return "session.json"
    return f"{Path(source_name).stem}-session.json"


def save_session(snapshot: SessionSnapshot, path: Optional[Path] = None, source_name: Optional[str] = None) -> Path:
    """Write ``snapshot`` as indented JSON; defaults to the session directory."""
    if path is None:
        path = get_session_dir() / session_filename(source_name)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot.to_dict(), indent=2))
    logger.info("Saved session to %s (%d clusters)", path, len(snapshot.all_clusters))
    return path


def load_session(path: Path) -> SessionSnapshot:
    """Read and validate a session file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise InvalidSessionError(f"Invalid session file format: {path.name} is not valid JSON ({exc.msg}).") from exc
    snapshot = SessionSnapshot.from_dict(data)
    logger.info("Loaded session from %s (%d clusters)", path, len(snapshot.all_clusters))
    return snapshot
