"""Datastore CLI adapters executed inside the service containers."""
from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Type

from .config import ServiceConfig, ServiceKind
from .docker import DockerClient
from .exceptions import DatastoreError
from .utils import CommandResult, parse_count

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.$-]*$")


def _checked_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise DatastoreError(f"Refusing to query unsafe identifier: {name!r}")
    return name


class DatastoreClient:
    """Common surface used by the poller, seed executor and verifier."""

    def __init__(self, service: ServiceConfig, docker: DockerClient) -> None:
        self.service = service
        self.docker = docker

    @property
    def container(self) -> str:
        return self.service.container

    @property
    def timeout(self) -> float:
        return self.service.readiness.probe_timeout_s

    def probe_args(self) -> List[str]:
        raise NotImplementedError

    def ping(self) -> bool:
        result = self.docker.exec(self.container, self.probe_args(), timeout=self.timeout)
        return result.ok

    def count(self, target: str) -> int:
        """Rows/documents in ``target``."""
        raise NotImplementedError

    def total(self) -> int:
        """Number of tables/collections/keys in the store."""
        raise NotImplementedError

    def run_script(self, host_path: Path, container_dir: Optional[Path] = None) -> None:
        raise DatastoreError(f"{self.service.label} does not support seed scripts")

    def evaluate(self, literal: str) -> CommandResult:
        raise DatastoreError(f"{self.service.label} does not support literal commands")

    def _checked(self, result: CommandResult) -> CommandResult:
        if not result.ok:
            raise DatastoreError(result.describe_failure())
        return result

    def _count_from(self, result: CommandResult) -> int:
        self._checked(result)
        try:
            return parse_count(result.stdout)
        except ValueError as exc:
            raise DatastoreError(f"Unexpected count output from {self.container}: {result.output[-200:]!r}") from exc


class PostgresClient(DatastoreClient):
    def _psql(self) -> List[str]:
        creds = self.service.credentials
        args = ["psql"]
        if creds.username:
            args += ["-U", creds.username]
        if creds.database:
            args += ["-d", creds.database]
        return args

    def probe_args(self) -> List[str]:
        creds = self.service.credentials
        args = ["pg_isready"]
        if creds.username:
            args += ["-U", creds.username]
        if creds.database:
            args += ["-d", creds.database]
        return args

    def query(self, sql: str) -> CommandResult:
        return self.docker.exec(self.container, self._psql() + ["-t", "-A", "-c", sql], timeout=self.timeout)

    def count(self, target: str) -> int:
        return self._count_from(self.query(f"SELECT COUNT(*) FROM {_checked_identifier(target)};"))

    def total(self) -> int:
        return self._count_from(
            self.query("SELECT COUNT(*) FROM information_schema.tables WHERE table_schema = 'public';")
        )

    def run_script(self, host_path: Path, container_dir: Optional[Path] = None) -> None:
        if not host_path.is_file():
            raise DatastoreError(f"Script not found: {host_path}")
        try:
            # surrogateescape keeps non-UTF-8 bytes intact on their way to psql's stdin.
            sql = host_path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise DatastoreError(f"Cannot read script {host_path}: {exc}") from exc
        self._checked(self.docker.exec(self.container, self._psql(), input_text=sql))

    def evaluate(self, literal: str) -> CommandResult:
        return self._checked(self.query(literal))


class MongoClient(DatastoreClient):
    def _mongosh(self) -> List[str]:
        creds = self.service.credentials
        args = ["mongosh"]
        if creds.database:
            args.append(creds.database)
        if creds.auth_database:
            args += ["--authenticationDatabase", creds.auth_database]
        if creds.username:
            args += ["-u", creds.username]
        if creds.password:
            args += ["-p", creds.password]
        return args + ["--quiet"]

    def probe_args(self) -> List[str]:
        return ["mongosh", "--quiet", "--eval", "db.runCommand('ping')"]

    def query(self, script: str) -> CommandResult:
        return self.docker.exec(self.container, self._mongosh() + ["--eval", script], timeout=self.timeout)

    def count(self, target: str) -> int:
        return self._count_from(self.query(f"db.getCollection('{_checked_identifier(target)}').countDocuments()"))

    def total(self) -> int:
        return self._count_from(self.query("db.getCollectionNames().length"))

    def run_script(self, host_path: Path, container_dir: Optional[Path] = None) -> None:
        if container_dir is not None:
            mounted = str(PurePosixPath(container_dir.as_posix()) / host_path.name)
            if self.docker.exec(self.container, ["test", "-f", mounted], timeout=self.timeout).ok:
                logger.info("Executing mounted script %s in %s", mounted, self.container)
                self._checked(self.docker.exec(self.container, self._mongosh() + ["--file", mounted]))
                return

        if not host_path.is_file():
            raise DatastoreError(f"Script not found: {host_path}")
        staged = f"/tmp/{host_path.name}"
        logger.info("Copying %s into %s:%s", host_path, self.container, staged)
        self._checked(self.docker.copy_into(host_path, self.container, staged))
        try:
            self._checked(self.docker.exec(self.container, self._mongosh() + ["--file", staged]))
        finally:
            self.docker.exec(self.container, ["rm", "-f", staged], timeout=self.timeout)

    def evaluate(self, literal: str) -> CommandResult:
        return self._checked(self.docker.exec(self.container, self._mongosh() + ["--eval", literal]))


class RedisClient(DatastoreClient):
    def _cli(self) -> List[str]:
        args = ["redis-cli"]
        if self.service.credentials.password:
            args += ["-a", self.service.credentials.password, "--no-auth-warning"]
        return args

    def probe_args(self) -> List[str]:
        return self._cli() + ["ping"]

    def ping(self) -> bool:
        result = self.docker.exec(self.container, self.probe_args(), timeout=self.timeout)
        return result.ok and "PONG" in result.stdout

    def count(self, target: str) -> int:
        return self._count_from(
            self.docker.exec(self.container, self._cli() + ["exists", target], timeout=self.timeout)
        )

    def total(self) -> int:
        return self._count_from(self.docker.exec(self.container, self._cli() + ["dbsize"], timeout=self.timeout))


CLIENTS: Dict[ServiceKind, Type[DatastoreClient]] = {
    ServiceKind.POSTGRES: PostgresClient,
    ServiceKind.MONGODB: MongoClient,
    ServiceKind.REDIS: RedisClient,
}


def build_client(service: ServiceConfig, docker: DockerClient) -> DatastoreClient:
    return CLIENTS[service.kind](service, docker)
