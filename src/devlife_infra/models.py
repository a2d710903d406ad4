"""Result models produced by the bootstrap stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Sequence


class Stage(str, Enum):
    """Bootstrap stages in execution order."""

    PREFLIGHT = "preflight"
    ENVIRONMENT = "environment"
    CONTAINERS = "containers"
    READINESS = "readiness"
    SEEDING = "seeding"
    VERIFICATION = "verification"


class StageStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    FAILED = "failed"


class EnvFileOutcome(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    SKIPPED = "skipped"
    FAILED = "failed"


class SeedOutcome(str, Enum):
    SKIPPED = "skipped"
    SEEDED = "seeded"
    FALLBACK = "fallback"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class StageResult:
    """Outcome of a single stage as seen by the orchestrator."""

    stage: Stage
    status: StageStatus
    message: str
    details: Mapping[str, object] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return self.status is not StageStatus.OK


@dataclass(frozen=True)
class PreflightReport:
    """Everything the preflight checker found missing."""

    missing_commands: Sequence[str] = field(default_factory=tuple)
    missing_directories: Sequence[Path] = field(default_factory=tuple)
    daemon_running: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return not self.failures()

    def failures(self) -> list[str]:
        failures = [f"Missing required command: {name}" for name in self.missing_commands]
        if self.daemon_running is False:
            failures.append("Docker daemon is not running")
        failures.extend(f"Missing repository: {path.name} ({path})" for path in self.missing_directories)
        return failures


@dataclass(frozen=True)
class EnvFileResult:
    path: Path
    outcome: EnvFileOutcome
    reason: str = ""


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of polling one service for readiness."""

    service: str
    ready: bool
    attempts: int
    elapsed_s: float = 0.0


@dataclass(frozen=True)
class SeedResult:
    service: str
    outcome: SeedOutcome
    scripts: Sequence[str] = field(default_factory=tuple)
    errors: Sequence[str] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return self.outcome in {SeedOutcome.FALLBACK, SeedOutcome.FAILED, SeedOutcome.UNAVAILABLE}


@dataclass(frozen=True)
class ServiceVerification:
    """Verifier view of one service: reachability plus object counts."""

    service: str
    kind: str
    reachable: bool
    total: int = 0
    counts: Mapping[str, int] = field(default_factory=dict)
    errors: Sequence[str] = field(default_factory=tuple)

    @property
    def healthy(self) -> bool:
        return self.reachable and not self.errors


@dataclass(frozen=True)
class BootstrapReport:
    """Aggregated results for a full bootstrap run."""

    run_id: str
    stages: Sequence[StageResult] = field(default_factory=tuple)
    env_files: Sequence[EnvFileResult] = field(default_factory=tuple)
    readiness: Sequence[ProbeOutcome] = field(default_factory=tuple)
    seeds: Sequence[SeedResult] = field(default_factory=tuple)
    verification: Sequence[ServiceVerification] = field(default_factory=tuple)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def degraded(self) -> bool:
        return any(stage.degraded for stage in self.stages) or any(not item.healthy for item in self.verification)

    def exit_code(self, *, strict: bool) -> int:
        return 1 if strict and self.degraded else 0

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "generated_at": self.generated_at.isoformat(),
            "degraded": self.degraded,
            "stages": [
                {"stage": s.stage.value, "status": s.status.value, "message": s.message, "details": dict(s.details)}
                for s in self.stages
            ],
            "env_files": [
                {"path": str(item.path), "outcome": item.outcome.value, "reason": item.reason}
                for item in self.env_files
            ],
            "readiness": [
                {"service": p.service, "ready": p.ready, "attempts": p.attempts, "elapsed_s": round(p.elapsed_s, 3)}
                for p in self.readiness
            ],
            "seeds": [
                {"service": s.service, "outcome": s.outcome.value, "scripts": list(s.scripts), "errors": list(s.errors)}
                for s in self.seeds
            ],
            "verification": [
                {
                    "service": v.service,
                    "kind": v.kind,
                    "reachable": v.reachable,
                    "total": v.total,
                    "counts": dict(v.counts),
                    "errors": list(v.errors),
                }
                for v in self.verification
            ],
        }
