from __future__ import annotations

from pathlib import Path

import pytest

from devlife_infra.config import BootstrapConfig
from devlife_infra.datastores import MongoClient, PostgresClient, RedisClient, build_client
from devlife_infra.docker import DockerClient
from devlife_infra.exceptions import DatastoreError

from fakes import FakeRunner, fail, ok


@pytest.fixture
def services() -> BootstrapConfig:
    return BootstrapConfig()


def test_build_client_by_kind(services: BootstrapConfig, docker: DockerClient) -> None:
    assert isinstance(build_client(services.service("postgres"), docker), PostgresClient)
    assert isinstance(build_client(services.service("mongodb"), docker), MongoClient)
    assert isinstance(build_client(services.service("redis"), docker), RedisClient)


def test_postgres_probe_and_count(services: BootstrapConfig, docker: DockerClient, runner: FakeRunner) -> None:
    client = PostgresClient(services.service("postgres"), docker)
    runner.on("SELECT COUNT(*) FROM users", ok("7\n"))

    assert client.ping()
    assert client.count("users") == 7
    assert runner.calls[0] == ["docker", "exec", "devlife-postgres", "pg_isready", "-U", "devlife_user", "-d", "devlife"]


def test_postgres_script_is_streamed_on_stdin(
    services: BootstrapConfig, docker: DockerClient, runner: FakeRunner, tmp_path: Path
) -> None:
    script = tmp_path / "01.sql"
    script.write_text("CREATE TABLE t();\n", encoding="utf-8")

    PostgresClient(services.service("postgres"), docker).run_script(script)

    assert runner.calls == [["docker", "exec", "-i", "devlife-postgres", "psql", "-U", "devlife_user", "-d", "devlife"]]
    assert runner.inputs == ["CREATE TABLE t();\n"]


def test_postgres_rejects_unsafe_identifier(services: BootstrapConfig, docker: DockerClient) -> None:
    with pytest.raises(DatastoreError):
        PostgresClient(services.service("postgres"), docker).count("users; DROP TABLE users")


def test_count_failure_raises(services: BootstrapConfig, docker: DockerClient, runner: FakeRunner) -> None:
    runner.on("countDocuments", fail("Authentication failed"))

    with pytest.raises(DatastoreError, match="Authentication failed"):
        MongoClient(services.service("mongodb"), docker).count("horoscopes")


def test_mongo_uses_mounted_script_when_present(
    services: BootstrapConfig, docker: DockerClient, runner: FakeRunner, tmp_path: Path
) -> None:
    client = MongoClient(services.service("mongodb"), docker)

    client.run_script(tmp_path / "01-init-collections.js", Path("/docker-entrypoint-initdb.d"))

    assert runner.count("--file /docker-entrypoint-initdb.d/01-init-collections.js") == 1
    assert runner.count("docker cp") == 0


def test_mongo_copies_script_when_not_mounted(
    services: BootstrapConfig, docker: DockerClient, runner: FakeRunner, tmp_path: Path
) -> None:
    script = tmp_path / "01-init-collections.js"
    script.write_text("db.createCollection('x');\n", encoding="utf-8")
    runner.on("test -f", fail())

    MongoClient(services.service("mongodb"), docker).run_script(script, Path("/docker-entrypoint-initdb.d"))

    assert runner.matching("docker cp") == [["docker", "cp", str(script), "devlife-mongodb:/tmp/01-init-collections.js"]]
    assert runner.count("--file /tmp/01-init-collections.js") == 1
    assert runner.matching("rm -f")[-1][-1] == "/tmp/01-init-collections.js"


def test_mongo_missing_script_raises(services: BootstrapConfig, docker: DockerClient, runner: FakeRunner, tmp_path: Path) -> None:
    runner.on("test -f", fail())

    with pytest.raises(DatastoreError, match="Script not found"):
        MongoClient(services.service("mongodb"), docker).run_script(tmp_path / "missing.js", Path("/init"))


def test_redis_requires_pong(services: BootstrapConfig, docker: DockerClient, runner: FakeRunner) -> None:
    client = RedisClient(services.service("redis"), docker)
    assert not client.ping()

    runner.on("ping", ok("PONG\n"))
    assert client.ping()
    assert runner.calls[-1] == [
        "docker", "exec", "devlife-redis", "redis-cli", "-a", "devlife_password", "--no-auth-warning", "ping",
    ]


def test_redis_does_not_run_scripts(services: BootstrapConfig, docker: DockerClient, tmp_path: Path) -> None:
    with pytest.raises(DatastoreError):
        RedisClient(services.service("redis"), docker).run_script(tmp_path / "seed.txt")


def test_unreadable_script_is_a_datastore_error(
    services: BootstrapConfig,
    docker: DockerClient,
    runner: FakeRunner,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    script = tmp_path / "01.sql"
    script.write_text("SELECT 1;\n", encoding="utf-8")

    def unreadable(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_text", unreadable)

    with pytest.raises(DatastoreError, match="Cannot read script"):
        PostgresClient(services.service("postgres"), docker).run_script(script)

    assert runner.calls == []
