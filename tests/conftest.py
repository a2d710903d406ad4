from __future__ import annotations

import io
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from rich.console import Console  # noqa: E402

from devlife_infra.config import BootstrapConfig, ReadinessConfig  # noqa: E402
from devlife_infra.docker import DockerClient  # noqa: E402
from devlife_infra.paths import WorkspacePaths  # noqa: E402
from devlife_infra.reporting import Reporter  # noqa: E402

from fakes import FakeRunner  # noqa: E402


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspacePaths:
    """An infrastructure checkout with the three sibling repositories next to it."""

    root = tmp_path / "devlife-infrastructure"
    root.mkdir()
    (tmp_path / "devlife-backend").mkdir()
    (tmp_path / "devlife-frontend" / "src").mkdir(parents=True)
    scripts = tmp_path / "devlife-db-scripts"
    (scripts / "init").mkdir(parents=True)
    (scripts / "mongo-init").mkdir()
    (scripts / "init" / "01-init-database.sql").write_text("CREATE TABLE users (id serial);\n", encoding="utf-8")
    (scripts / "init" / "02-sample-data.sql").write_text("INSERT INTO users DEFAULT VALUES;\n", encoding="utf-8")
    (scripts / "mongo-init" / "01-init-collections.js").write_text(
        "db.createCollection('code_snippets');\n", encoding="utf-8"
    )
    return WorkspacePaths(root)


@pytest.fixture
def config() -> BootstrapConfig:
    cfg = BootstrapConfig(settle_seconds=0)
    for service in cfg.services:
        service.readiness = ReadinessConfig(attempts=3, interval_s=0.5)
    return cfg


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def docker(runner: FakeRunner) -> DockerClient:
    return DockerClient(compose_command=["docker-compose"], runner=runner)


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(console_buffer: io.StringIO) -> Reporter:
    return Reporter(Console(file=console_buffer, width=200, color_system=None, highlight=False))
