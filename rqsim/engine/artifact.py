from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List
import json
import os

@dataclass
class RunArtifact:
    run_id: str
    name: str
    created_ts: float
    metrics: Dict[str, Any]
    config_snapshot: Dict[str, Any]
    results: List[Dict[str, Any]] = field(default_factory=list)
    timed_out: bool = False

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "name": self.name,
            "created_ts": self.created_ts,
            "timed_out": self.timed_out,
            "metrics": self.metrics,
            "config_snapshot": self.config_snapshot,
            "results": self.results,
        }

    def save(self, path: str) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> "RunArtifact":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(
            run_id=data["run_id"],
            name=data["name"],
            created_ts=data["created_ts"],
            metrics=data.get("metrics", {}),
            config_snapshot=data.get("config_snapshot", {}),
            results=data.get("results", []),
            timed_out=data.get("timed_out", False),
        )
