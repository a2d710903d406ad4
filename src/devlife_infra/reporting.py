"""Operator-facing console output."""
from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape

from .config import BootstrapConfig, ServiceConfig, ServiceKind
from .models import BootstrapReport, ServiceVerification

_LEVELS = {
    "info": ("INFO", "green"),
    "warning": ("WARNING", "yellow"),
    "error": ("ERROR", "red"),
    "step": ("STEP", "blue"),
    "success": ("SUCCESS", "cyan"),
}


class Reporter:
    """Prints leveled status lines: ``[INFO] message``."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def _line(self, level: str, message: str) -> None:
        label, style = _LEVELS[level]
        self.console.print(f"[{style}]\\[{label}][/{style}] {escape(message)}")

    def info(self, message: str) -> None:
        self._line("info", message)

    def warning(self, message: str) -> None:
        self._line("warning", message)

    def error(self, message: str) -> None:
        self._line("error", message)

    def step(self, message: str) -> None:
        self._line("step", message)

    def success(self, message: str) -> None:
        self._line("success", message)

    def echo(self, message: str = "") -> None:
        self.console.print(escape(message))

    def verification(self, results: Sequence[ServiceVerification], config: BootstrapConfig) -> None:
        for result in results:
            service = config.service(result.service)
            if not result.reachable:
                self.error(f"{service.label}: connection failed")
                continue
            self.success(f"{service.label}: connected")
            if service.kind is ServiceKind.POSTGRES:
                noun = "tables"
            elif service.kind is ServiceKind.MONGODB:
                noun = "collections"
            else:
                noun = "keys"
            if result.total or service.kind is ServiceKind.REDIS:
                self.success(f"{service.label} data: {result.total} {noun}")
            if result.counts:
                counts = ", ".join(f"{count} {name}" for name, count in result.counts.items())
                self.success(f"{service.label} records: {counts}")
            for error in result.errors:
                self.error(f"{service.label}: {error}")

    def summary(self, report: BootstrapReport, config: BootstrapConfig) -> None:
        self.echo()
        if report.degraded:
            problems = [f"{stage.stage.value}: {stage.message}" for stage in report.stages if stage.degraded]
            self.warning(f"{config.project_name} infrastructure setup completed with warnings:")
            for problem in problems:
                self.echo(f"  - {problem}")
        else:
            self.success(f"{config.project_name} infrastructure setup completed!")

    def next_steps(self, config: BootstrapConfig) -> None:
        self.echo()
        for line in render_next_steps(config):
            self.echo(line)


def _access_command(service: ServiceConfig) -> str:
    creds = service.credentials
    if service.kind is ServiceKind.POSTGRES:
        return f"docker exec -it {service.container} psql -U {creds.username} -d {creds.database}"
    if service.kind is ServiceKind.MONGODB:
        return (
            f"docker exec -it {service.container} mongosh {creds.database} "
            f"-u {creds.username} -p {creds.password}"
        )
    return f"docker exec -it {service.container} redis-cli -a {creds.password}"


def render_next_steps(config: BootstrapConfig) -> list[str]:
    compose = " ".join(config.compose.command)
    lines = [
        "Next Steps:",
        "  1. Backend (.NET 9):   cd ../devlife-backend && dotnet run",
        "  2. Frontend (Angular): cd ../devlife-frontend && ng serve --port 4200",
        f"  3. Full Docker environment: {compose} up --build",
        "",
        "Service URLs:",
        f"  - Frontend: {config.frontend_url}",
        f"  - Backend: {config.backend_url}",
    ]
    lines.extend(f"  - {service.label}: localhost:{service.host_port}" for service in config.services)
    lines += ["", "Database Access:"]
    lines.extend(f"  - {service.label}: {_access_command(service)}" for service in config.services)
    lines += [
        "",
        "Useful Commands:",
        f"  - View logs: {compose} logs -f [service_name]",
        "  - Stop all: devlife-infra teardown",
        "  - Reset everything: devlife-infra teardown --volumes && devlife-infra",
    ]
    return lines
