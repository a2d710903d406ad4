"""Thin wrapper over the docker and compose command line tools."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .utils import CommandResult, CommandRunner, run_command

logger = logging.getLogger(__name__)


class DockerClient:
    """Builds and runs docker/compose commands through an injectable runner."""

    def __init__(
        self,
        *,
        compose_command: Sequence[str] = ("docker-compose",),
        compose_file: Optional[Path] = None,
        project_name: Optional[str] = None,
        runner: CommandRunner = run_command,
    ) -> None:
        self.compose_command = list(compose_command)
        self.compose_file = compose_file
        self.project_name = project_name
        self._runner = runner

    def _run(
        self,
        command: List[str],
        *,
        input_text: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        logger.debug("Running command", extra={"command": command[:6]})
        result = self._runner(command, input_text=input_text, timeout=timeout)
        if not result.ok:
            logger.debug(
                "Command failed",
                extra={"command": command[:6], "returncode": result.returncode, "stderr": result.stderr[-2000:]},
            )
        return result

    def info(self) -> CommandResult:
        return self._run(["docker", "info"], timeout=30)

    def container_names(self) -> List[str]:
        result = self._run(["docker", "ps", "-a", "--format", "{{.Names}}"], timeout=30)
        if not result.ok:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def remove_container(self, name: str) -> CommandResult:
        return self._run(["docker", "rm", "-f", name], timeout=60)

    def exec(
        self,
        container: str,
        args: Sequence[str],
        *,
        input_text: str | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        command = ["docker", "exec"]
        if input_text is not None:
            command.append("-i")
        command.append(container)
        command.extend(args)
        return self._run(command, input_text=input_text, timeout=timeout)

    def copy_into(self, source: Path, container: str, destination: str) -> CommandResult:
        return self._run(["docker", "cp", str(source), f"{container}:{destination}"], timeout=120)

    def _compose_base(self) -> List[str]:
        command = list(self.compose_command)
        if self.compose_file is not None:
            command.extend(["-f", str(self.compose_file)])
        if self.project_name:
            command.extend(["-p", self.project_name])
        return command

    def compose_up(self, services: Sequence[str]) -> CommandResult:
        command = self._compose_base() + ["up", "-d", *services]
        logger.info("Starting services via compose: %s", " ".join(command))
        return self._run(command)

    def compose_down(self, *, volumes: bool = False) -> CommandResult:
        command = self._compose_base() + ["down"]
        if volumes:
            command.append("-v")
        logger.info("Stopping services via compose: %s", " ".join(command))
        return self._run(command)
