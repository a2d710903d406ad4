"""Helpers for computing the workspace directory structure."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


@dataclass(slots=True)
class WorkspacePaths:
    """The infrastructure checkout; sibling repositories are resolved against it."""

    root: Path

    @property
    def config(self) -> Path:
        return self.root / "config"

    @property
    def logs(self) -> Path:
        return self.root / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs / "devlife-infra.log"

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path; relative paths are taken from the workspace root."""

        candidate = path.expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        return candidate.resolve()


@dataclass(slots=True)
class RunContext:
    paths: WorkspacePaths
    run_id: str

    @classmethod
    def create(cls, paths: WorkspacePaths, run_id: str | None = None) -> "RunContext":
        resolved_run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        return cls(paths=paths, run_id=resolved_run_id)

    @property
    def run_dir(self) -> Path:
        return self.paths.logs / self.run_id

    @property
    def stage_log_path(self) -> Path:
        return self.run_dir / "stages.jsonl"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"
