"""Seed script execution with an already-seeded check and a single fallback."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Collection, List, Mapping, Optional, Sequence

from .config import SeedConfig
from .datastores import DatastoreClient
from .exceptions import DatastoreError, SeedError
from .models import SeedOutcome, SeedResult

logger = logging.getLogger(__name__)


class SeedExecutor:
    """Runs seed scripts against ready datastores.

    Per entry: skip when the marker already holds data, otherwise run every
    script in order. If that tier fails and a fallback literal is configured,
    the fallback is attempted exactly once. No failure escapes ``run``.
    """

    def __init__(self, clients: Mapping[str, DatastoreClient], scripts_root: Path) -> None:
        self._clients = clients
        self._scripts_root = scripts_root

    def run(self, seeds: Sequence[SeedConfig], ready: Optional[Collection[str]] = None) -> List[SeedResult]:
        results: List[SeedResult] = []
        for seed in seeds:
            if ready is not None and seed.service not in ready:
                logger.warning("Skipping seed for unavailable service", extra={"service": seed.service})
                results.append(
                    SeedResult(service=seed.service, outcome=SeedOutcome.UNAVAILABLE, errors=("service not ready",))
                )
                continue
            results.append(self.seed(seed))
        return results

    def is_seeded(self, client: DatastoreClient, marker: str) -> bool:
        try:
            return client.count(marker) > 0
        except DatastoreError as exc:
            # The marker table usually does not exist yet on a fresh volume.
            logger.debug("Seed marker query failed", extra={"marker": marker, "error": str(exc)})
            return False

    def seed(self, seed: SeedConfig) -> SeedResult:
        client = self._clients[seed.service]
        if self.is_seeded(client, seed.marker):
            logger.info("Seed data already present", extra={"service": seed.service, "marker": seed.marker})
            return SeedResult(service=seed.service, outcome=SeedOutcome.SKIPPED)

        executed: List[str] = []
        errors: List[str] = []
        try:
            self._run_scripts(client, seed, executed)
            return SeedResult(service=seed.service, outcome=SeedOutcome.SEEDED, scripts=tuple(executed))
        except SeedError as exc:
            logger.error("Seed scripts failed", extra={"service": seed.service, "error": str(exc)})
            errors.append(str(exc))

        if not seed.fallback:
            return SeedResult(service=seed.service, outcome=SeedOutcome.FAILED, scripts=tuple(executed), errors=tuple(errors))

        logger.info("Applying embedded fallback seed", extra={"service": seed.service})
        try:
            client.evaluate(seed.fallback)
        except DatastoreError as exc:
            logger.error("Fallback seed failed", extra={"service": seed.service, "error": str(exc)})
            errors.append(f"fallback: {exc}")
            return SeedResult(service=seed.service, outcome=SeedOutcome.FAILED, scripts=tuple(executed), errors=tuple(errors))
        return SeedResult(service=seed.service, outcome=SeedOutcome.FALLBACK, scripts=tuple(executed), errors=tuple(errors))

    def _run_scripts(self, client: DatastoreClient, seed: SeedConfig, executed: List[str]) -> None:
        if not seed.scripts:
            raise SeedError(f"No seed scripts configured for {seed.service}")
        for script in seed.scripts:
            host_path = script if script.is_absolute() else self._scripts_root / script
            try:
                client.run_script(host_path, seed.container_script_dir)
            except DatastoreError as exc:
                raise SeedError(f"{script}: {exc}") from exc
            executed.append(str(script))
            logger.info("Seed script executed", extra={"service": seed.service, "script": str(script)})
