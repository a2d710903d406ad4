"""Host prerequisite validation."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from .config import PreflightConfig
from .docker import DockerClient
from .exceptions import PreflightError
from .models import PreflightReport
from .paths import WorkspacePaths
from .utils import which as default_which

logger = logging.getLogger(__name__)


def check_prerequisites(
    config: PreflightConfig,
    paths: WorkspacePaths,
    docker: DockerClient,
    *,
    which: Callable[[str], Optional[str]] = default_which,
) -> PreflightReport:
    """Collect every missing prerequisite without mutating anything."""

    missing_commands: List[str] = []
    for name in config.commands:
        if which(name) is None:
            missing_commands.append(name)

    daemon_running: Optional[bool] = None
    if config.check_daemon and "docker" not in missing_commands:
        daemon_running = docker.info().ok

    missing_directories: List[Path] = []
    for repository in config.repositories:
        resolved = paths.resolve(repository)
        if not resolved.is_dir():
            missing_directories.append(resolved)

    report = PreflightReport(
        missing_commands=tuple(missing_commands),
        missing_directories=tuple(missing_directories),
        daemon_running=daemon_running,
    )
    logger.info(
        "Preflight checked",
        extra={
            "missing_commands": missing_commands,
            "missing_directories": [str(path) for path in missing_directories],
            "daemon_running": daemon_running,
        },
    )
    return report


def validate_prerequisites(
    config: PreflightConfig,
    paths: WorkspacePaths,
    docker: DockerClient,
    *,
    which: Callable[[str], Optional[str]] = default_which,
) -> PreflightReport:
    report = check_prerequisites(config, paths, docker, which=which)
    if not report.ok:
        raise PreflightError("; ".join(report.failures()))
    return report
