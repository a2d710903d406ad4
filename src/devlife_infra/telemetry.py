"""Run record helpers."""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .models import BootstrapReport, StageResult
from .paths import RunContext
from .utils import write_json


def append_stage_log(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")


def record_stage(context: RunContext, result: StageResult) -> None:
    append_stage_log(
        context.stage_log_path,
        {
            "recorded_at": datetime.now(timezone.utc).isoformat(),
            "stage": result.stage.value,
            "status": result.status.value,
            "message": result.message,
            "details": dict(result.details),
        },
    )


def record_run_summary(context: RunContext, report: BootstrapReport) -> None:
    enriched = {
        "recorded_at": datetime.now(timezone.utc).isoformat(),
        "pid": os.getpid(),
        "root": str(context.paths.root),
        **report.to_dict(),
    }
    write_json(context.summary_path, enriched)
