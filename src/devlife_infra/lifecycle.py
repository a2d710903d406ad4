"""Container cleanup, start and teardown."""
from __future__ import annotations

import logging
from typing import List, Sequence

from .docker import DockerClient
from .exceptions import LaunchError, TeardownError

logger = logging.getLogger(__name__)


class ContainerLifecycle:
    def __init__(self, docker: DockerClient) -> None:
        self.docker = docker

    def cleanup(self, names: Sequence[str]) -> List[str]:
        """Force-remove every listed container that exists; removal errors are ignored."""

        existing = set(self.docker.container_names())
        removed: List[str] = []
        for name in names:
            if name not in existing:
                continue
            result = self.docker.remove_container(name)
            if result.ok:
                removed.append(name)
            else:
                logger.warning("Container removal failed; continuing", extra={"container": name})
        return removed

    def start(self, services: Sequence[str]) -> None:
        result = self.docker.compose_up(services)
        if not result.ok:
            raise LaunchError(f"Docker compose failed: {result.stderr.strip() or result.stdout.strip()}")

    def stop(self, *, volumes: bool = False) -> None:
        result = self.docker.compose_down(volumes=volumes)
        if not result.ok:
            raise TeardownError(f"Docker compose down failed: {result.stderr.strip() or result.stdout.strip()}")
