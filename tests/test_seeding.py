from __future__ import annotations

from pathlib import Path

import pytest

from devlife_infra.config import BootstrapConfig
from devlife_infra.datastores import build_client
from devlife_infra.docker import DockerClient
from devlife_infra.models import SeedOutcome
from devlife_infra.paths import WorkspacePaths
from devlife_infra.seeding import SeedExecutor
from devlife_infra.templates import MONGO_FALLBACK_SEED

from fakes import FakeRunner, fail, ok


@pytest.fixture
def executor(config: BootstrapConfig, docker: DockerClient, workspace: WorkspacePaths) -> SeedExecutor:
    clients = {service.name: build_client(service, docker) for service in config.services}
    return SeedExecutor(clients, workspace.resolve(config.scripts_repository))


def test_already_seeded_stores_run_no_seed_commands(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("countDocuments", ok("5\n"))
    runner.on("SELECT COUNT(*) FROM users", ok("3\n"))

    results = executor.run(config.seeds)

    assert [result.outcome for result in results] == [SeedOutcome.SKIPPED, SeedOutcome.SKIPPED]
    assert runner.count("--file") == 0
    assert runner.count("insertMany") == 0
    assert runner.count("docker cp") == 0
    assert all(text is None for text in runner.inputs)


def test_fresh_stores_run_every_script_in_order(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("countDocuments", ok("0\n"))
    runner.on("SELECT COUNT(*) FROM users", fail('relation "users" does not exist'))

    results = executor.run(config.seeds)

    mongo, postgres = results
    assert mongo.outcome is SeedOutcome.SEEDED
    assert mongo.scripts == ("mongo-init/01-init-collections.js",)
    assert postgres.outcome is SeedOutcome.SEEDED
    assert postgres.scripts == ("init/01-init-database.sql", "init/02-sample-data.sql")
    assert [text for text in runner.inputs if text] == [
        "CREATE TABLE users (id serial);\n",
        "INSERT INTO users DEFAULT VALUES;\n",
    ]


def test_failed_mongo_script_falls_back_exactly_once(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("countDocuments", ok("0\n"))
    runner.on("--file", fail("SyntaxError: unexpected token"))

    result = executor.seed(config.seeds[0])

    assert result.outcome is SeedOutcome.FALLBACK
    assert result.degraded
    assert "SyntaxError" in result.errors[0]
    fallback_calls = [call for call in runner.calls if call[-1] == MONGO_FALLBACK_SEED]
    assert len(fallback_calls) == 1


def test_failed_fallback_is_reported_not_retried(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("countDocuments", ok("0\n"))
    runner.on("--file", fail("script failed"))
    runner.on("insertMany", fail("not authorized"))

    result = executor.seed(config.seeds[0])

    assert result.outcome is SeedOutcome.FAILED
    assert result.errors[-1].startswith("fallback:")
    assert runner.count("insertMany") == 1


def test_failed_postgres_script_without_fallback_stops_at_first_failure(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("SELECT COUNT(*) FROM users", ok("0\n"))
    runner.on("exec -i devlife-postgres", fail("ERROR: syntax error"))

    result = executor.seed(config.seeds[1])

    assert result.outcome is SeedOutcome.FAILED
    assert result.scripts == ()
    assert runner.count("exec -i devlife-postgres") == 1
    assert "init/01-init-database.sql" in result.errors[0]


def test_missing_host_script_is_a_seed_failure(
    config: BootstrapConfig, docker: DockerClient, runner: FakeRunner, tmp_path: Path
) -> None:
    clients = {service.name: build_client(service, docker) for service in config.services}
    executor = SeedExecutor(clients, tmp_path / "nowhere")
    runner.on("SELECT COUNT(*) FROM users", ok("0\n"))

    result = executor.seed(config.seeds[1])

    assert result.outcome is SeedOutcome.FAILED
    assert "Script not found" in result.errors[0]
    assert runner.count("exec -i") == 0


def test_services_that_never_became_ready_are_not_seeded(
    executor: SeedExecutor, config: BootstrapConfig, runner: FakeRunner
) -> None:
    runner.on("countDocuments", ok("4\n"))

    results = executor.run(config.seeds, ready={"mongodb"})

    assert [result.outcome for result in results] == [SeedOutcome.SKIPPED, SeedOutcome.UNAVAILABLE]
    assert runner.count("devlife-postgres") == 0
