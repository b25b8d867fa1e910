"""Provenance metadata for enrichment runs."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProvenanceStep:
    """One recorded stage of a run (e.g. gene resolution, GO enrichment)."""

    step_name: str
    timestamp: str = field(default_factory=_now)
    details: dict[str, Any] = field(default_factory=dict)


class ProvenanceTracker:
    """
    Collects what produced a set of results.

    Holds the package version, the config hash, the statistical settings in
    effect and an ordered list of steps, and writes them as a JSON file next
    to the exported results.
    """

    def __init__(self, version: str, config: "AppConfig"):
        self.version = version
        self.config_hash = config.config_hash()
        self.settings = {
            "enrichment": config.enrichment.model_dump(),
            "clustering": config.clustering.model_dump(),
        }
        self.steps: list[ProvenanceStep] = []
        self.started_at = _now()

    def record_step(self, step_name: str, details: Optional[dict] = None) -> ProvenanceStep:
        step = ProvenanceStep(step_name=step_name, details=dict(details or {}))
        self.steps.append(step)
        return step

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "config_hash": self.config_hash,
            "started_at": self.started_at,
            "settings": self.settings,
            "steps": [asdict(step) for step in self.steps],
        }

    @staticmethod
    def sidecar_path(result_path: Path) -> Path:
        """``results/go.csv`` -> ``results/go.provenance.json``."""
        result_path = Path(result_path)
        return result_path.with_name(f"{result_path.stem}.provenance.json")

    def save_sidecar(self, result_path: Path) -> Path:
        """
        Write provenance JSON beside ``result_path`` and return its path.

        The result file itself does not need to exist.
        """
        path = self.sidecar_path(result_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, default=str), encoding="utf-8")
        return path

    @staticmethod
    def load_sidecar(path: Path) -> dict:
        return json.loads(Path(path).read_text(encoding="utf-8"))

    @classmethod
    def from_config(cls, config: "AppConfig", version: Optional[str] = None) -> "ProvenanceTracker":
        """Tracker for ``config``; version defaults to the installed generelate version."""
        if version is None:
            from generelate import __version__ as version
        return cls(version, config)
