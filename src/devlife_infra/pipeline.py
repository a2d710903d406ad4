"""Bootstrap orchestration: runs the stages and applies the failure policy."""
from __future__ import annotations

import logging
import time
from typing import Callable, Collection, Dict, List, Optional

from .config import BootstrapConfig
from .datastores import DatastoreClient, build_client
from .docker import DockerClient
from .environment import materialize_env_files
from .exceptions import LaunchError, PreflightError
from .lifecycle import ContainerLifecycle
from .logging_utils import progress_spinner
from .models import (
    BootstrapReport,
    EnvFileOutcome,
    EnvFileResult,
    ProbeOutcome,
    SeedOutcome,
    SeedResult,
    ServiceVerification,
    Stage,
    StageResult,
    StageStatus,
)
from .paths import RunContext, WorkspacePaths
from .preflight import check_prerequisites
from .readiness import ReadinessPoller
from .reporting import Reporter
from .seeding import SeedExecutor
from .telemetry import record_run_summary, record_stage
from .utils import which as default_which
from .verification import Verifier

logger = logging.getLogger(__name__)


def build_docker_client(config: BootstrapConfig, paths: WorkspacePaths, **kwargs) -> DockerClient:
    compose_file = paths.resolve(config.compose.file) if config.compose.file else None
    return DockerClient(
        compose_command=config.compose.command,
        compose_file=compose_file,
        project_name=config.compose.project_name,
        **kwargs,
    )


class BootstrapPipeline:
    """Runs Preflight, Environment, Containers, Readiness, Seeding and Verification in order.

    Preflight and container start failures raise (``PreflightError`` /
    ``LaunchError``). Every later failure is recorded as a degraded
    ``StageResult`` and the run carries on to verification.
    """

    def __init__(
        self,
        config: BootstrapConfig,
        paths: WorkspacePaths,
        *,
        docker: Optional[DockerClient] = None,
        reporter: Optional[Reporter] = None,
        which: Callable[[str], Optional[str]] = default_which,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.paths = paths
        self.docker = docker or build_docker_client(config, paths)
        self.reporter = reporter or Reporter()
        self._which = which
        self._sleep = sleep
        self._poller = ReadinessPoller(sleep=sleep, clock=clock)
        self.clients: Dict[str, DatastoreClient] = {
            service.name: build_client(service, self.docker) for service in config.services
        }

    def run(self, *, run_id: Optional[str] = None) -> BootstrapReport:
        context = RunContext.create(self.paths, run_id)
        logger.info("Bootstrap run started", extra={"run_id": context.run_id, "root": str(self.paths.root)})
        stages: List[StageResult] = []

        def record(result: StageResult) -> None:
            stages.append(result)
            record_stage(context, result)

        record(self.preflight())

        env_files = self.materialize()
        record(self._environment_stage(env_files))

        try:
            record(self.start_containers())
        except LaunchError as exc:
            record(StageResult(Stage.CONTAINERS, StageStatus.FAILED, str(exc)))
            record_run_summary(
                context,
                BootstrapReport(run_id=context.run_id, stages=tuple(stages), env_files=tuple(env_files)),
            )
            logger.error("Bootstrap run aborted", extra={"run_id": context.run_id, "error": str(exc)})
            raise

        readiness = self.wait_for_services()
        record(self._readiness_stage(readiness))

        ready = {outcome.service for outcome in readiness if outcome.ready}
        seeds = self.seed(ready)
        record(self._seeding_stage(seeds))
        if self.config.settle_seconds:
            self._sleep(self.config.settle_seconds)

        verification = self.verify()
        record(self._verification_stage(verification))

        report = BootstrapReport(
            run_id=context.run_id,
            stages=tuple(stages),
            env_files=tuple(env_files),
            readiness=tuple(readiness),
            seeds=tuple(seeds),
            verification=tuple(verification),
        )
        record_run_summary(context, report)
        logger.info(
            "Bootstrap run finished",
            extra={"run_id": context.run_id, "degraded": report.degraded, "summary": str(context.summary_path)},
        )
        self.reporter.summary(report, self.config)
        self.reporter.next_steps(self.config)
        return report

    # -- hard-fail stages ---------------------------------------------------

    def preflight(self) -> StageResult:
        self.reporter.step("Checking Docker installation and repository structure...")
        report = check_prerequisites(self.config.preflight, self.paths, self.docker, which=self._which)
        if not report.ok:
            for failure in report.failures():
                self.reporter.error(failure)
            if report.missing_directories:
                self.reporter.echo("Expected sibling repositories next to this checkout:")
                for repository in self.config.preflight.repositories:
                    self.reporter.echo(f"  {repository}")
            raise PreflightError("; ".join(report.failures()))
        self.reporter.info("Docker is installed and running; all required repositories found")
        return StageResult(Stage.PREFLIGHT, StageStatus.OK, "prerequisites satisfied")

    def start_containers(self) -> StageResult:
        lifecycle = ContainerLifecycle(self.docker)
        self.reporter.step("Cleaning up existing containers...")
        for name in lifecycle.cleanup(self.config.compose.cleanup_containers):
            self.reporter.info(f"Removed existing container: {name}")
        services = self.config.compose.services
        self.reporter.step(f"Starting services: {', '.join(services)}")
        try:
            lifecycle.start(services)
        except LaunchError as exc:
            self.reporter.error(str(exc))
            raise
        return StageResult(Stage.CONTAINERS, StageStatus.OK, "services started", {"services": list(services)})

    # -- soft-fail stages ---------------------------------------------------

    def materialize(self) -> List[EnvFileResult]:
        self.reporter.step("Creating environment files...")
        results = materialize_env_files(self.config, self.paths)
        for result in results:
            if result.outcome is EnvFileOutcome.CREATED:
                self.reporter.info(f"Created {result.path}")
            elif result.outcome is EnvFileOutcome.FAILED:
                self.reporter.error(f"Could not write {result.path}: {result.reason}")
            else:
                self.reporter.warning(f"{result.path}: {result.reason}")
        return results

    def wait_for_services(self) -> List[ProbeOutcome]:
        self.reporter.step("Waiting for services to become ready...")
        outcomes: List[ProbeOutcome] = []
        for service in self.config.services:
            client = self.clients[service.name]
            policy = service.readiness
            label = f"Waiting for {service.label}..."
            with progress_spinner(label, self.reporter.console) as progress:

                def tick(attempt: int) -> None:
                    progress.update(progress.task_ids[0], description=f"{label} attempt {attempt}/{policy.attempts}")

                outcome = self._poller.wait(service.name, client.ping, policy, on_attempt=tick)
            if outcome.ready:
                self.reporter.success(f"{service.label} is ready!")
            else:
                self.reporter.error(
                    f"{service.label} did not become ready after {outcome.attempts} attempts; continuing"
                )
            outcomes.append(outcome)
        for service in self.config.services:
            self.reporter.echo(f"  - {service.label}: localhost:{service.host_port}")
        return outcomes

    def seed(self, ready: Optional[Collection[str]] = None) -> List[SeedResult]:
        self.reporter.step("Executing database scripts...")
        executor = SeedExecutor(self.clients, self.paths.resolve(self.config.scripts_repository))
        results = executor.run(self.config.seeds, ready)
        for result in results:
            label = self.config.service(result.service).label
            if result.outcome is SeedOutcome.SKIPPED:
                self.reporter.info(f"{label}: seed data already present, skipping")
            elif result.outcome is SeedOutcome.SEEDED:
                self.reporter.success(f"{label}: executed {len(result.scripts)} seed script(s)")
            elif result.outcome is SeedOutcome.FALLBACK:
                self.reporter.warning(f"{label}: seed scripts failed; inserted embedded fallback data")
            else:
                self.reporter.error(f"{label}: seeding {result.outcome.value}: {'; '.join(result.errors)}")
        return results

    def verify(self) -> List[ServiceVerification]:
        self.reporter.step("Testing database connections and verifying data...")
        results = Verifier(self.clients).verify(self.config.services)
        self.reporter.verification(results, self.config)
        return results

    # -- stage summaries ----------------------------------------------------

    @staticmethod
    def _environment_stage(results: List[EnvFileResult]) -> StageResult:
        failed = [str(result.path) for result in results if result.outcome is EnvFileOutcome.FAILED]
        created = [str(result.path) for result in results if result.outcome is EnvFileOutcome.CREATED]
        if failed:
            return StageResult(Stage.ENVIRONMENT, StageStatus.WARNING, f"could not write {', '.join(failed)}")
        return StageResult(Stage.ENVIRONMENT, StageStatus.OK, f"{len(created)} file(s) created", {"created": created})

    @staticmethod
    def _readiness_stage(outcomes: List[ProbeOutcome]) -> StageResult:
        timed_out = [outcome.service for outcome in outcomes if not outcome.ready]
        details = {outcome.service: outcome.attempts for outcome in outcomes}
        if timed_out:
            return StageResult(Stage.READINESS, StageStatus.WARNING, f"not ready: {', '.join(timed_out)}", details)
        return StageResult(Stage.READINESS, StageStatus.OK, "all services ready", details)

    @staticmethod
    def _seeding_stage(results: List[SeedResult]) -> StageResult:
        details = {result.service: result.outcome.value for result in results}
        degraded = [result.service for result in results if result.degraded]
        if degraded:
            return StageResult(Stage.SEEDING, StageStatus.WARNING, f"seeding degraded: {', '.join(degraded)}", details)
        return StageResult(Stage.SEEDING, StageStatus.OK, "seed data in place", details)

    @staticmethod
    def _verification_stage(results: List[ServiceVerification]) -> StageResult:
        details = {result.service: result.total for result in results}
        unhealthy = [result.service for result in results if not result.healthy]
        if unhealthy:
            return StageResult(
                Stage.VERIFICATION, StageStatus.WARNING, f"verification failed: {', '.join(unhealthy)}", details
            )
        return StageResult(Stage.VERIFICATION, StageStatus.OK, "all services verified", details)


def run_verification(
    config: BootstrapConfig,
    paths: WorkspacePaths,
    *,
    docker: Optional[DockerClient] = None,
    reporter: Optional[Reporter] = None,
) -> List[ServiceVerification]:
    pipeline = BootstrapPipeline(config, paths, docker=docker, reporter=reporter)
    return pipeline.verify()


def teardown(
    config: BootstrapConfig,
    paths: WorkspacePaths,
    *,
    volumes: bool = False,
    docker: Optional[DockerClient] = None,
) -> None:
    ContainerLifecycle(docker or build_docker_client(config, paths)).stop(volumes=volumes)
