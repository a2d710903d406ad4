"""Write-once generation of the sibling repositories' configuration files."""
from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .config import BootstrapConfig, EnvFileConfig, ServiceConfig, ServiceKind
from .models import EnvFileOutcome, EnvFileResult
from .paths import WorkspacePaths
from .templates import missing_values, render_template

logger = logging.getLogger(__name__)

_SCHEMES = {
    ServiceKind.POSTGRES: "postgresql",
    ServiceKind.MONGODB: "mongodb",
    ServiceKind.REDIS: "redis",
}


def connection_url(service: ServiceConfig, *, local: bool) -> str:
    """Connection string for a service, on the compose network or via the published host port."""

    creds = service.credentials
    host, port = ("localhost", service.host_port) if local else (service.name, service.container_port)
    auth = ""
    if creds.password:
        auth = f"{creds.username or ''}:{creds.password}@"
    elif creds.username:
        auth = f"{creds.username}@"
    path = f"/{creds.database}" if creds.database else ""
    return f"{_SCHEMES[service.kind]}://{auth}{host}:{port}{path}"


def template_values(config: BootstrapConfig) -> Dict[str, str]:
    values: Dict[str, str] = {
        "project_name": config.project_name,
        "backend_url": config.backend_url,
        "backend_ws_url": config.backend_url.replace("http", "ws", 1),
        "frontend_url": config.frontend_url,
    }
    # Placeholders follow the service kind so renamed compose services still resolve.
    for service in config.services:
        values.setdefault(f"{service.kind.value}_url", connection_url(service, local=False))
        values.setdefault(f"{service.kind.value}_local_url", connection_url(service, local=True))
    return values


def materialize_env_file(spec: EnvFileConfig, paths: WorkspacePaths, values: Dict[str, str]) -> EnvFileResult:
    target = paths.resolve(spec.path)
    if target.exists():
        logger.info("Environment file already exists", extra={"path": str(target)})
        return EnvFileResult(path=target, outcome=EnvFileOutcome.EXISTS, reason="already exists")
    if spec.requires is not None and not paths.resolve(spec.requires).is_dir():
        reason = f"required directory not found: {paths.resolve(spec.requires)}"
        logger.info("Environment file skipped", extra={"path": str(target), "reason": reason})
        return EnvFileResult(path=target, outcome=EnvFileOutcome.SKIPPED, reason=reason)

    unresolved = missing_values(spec.template, values)
    if unresolved:
        reason = f"no value for template placeholders: {', '.join(unresolved)}"
        logger.error("Environment file not written", extra={"path": str(target), "reason": reason})
        return EnvFileResult(path=target, outcome=EnvFileOutcome.FAILED, reason=reason)

    content = render_template(spec.template, values)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        # Exclusive create: never clobber a file that appeared after the exists() check.
        with target.open("x", encoding="utf-8") as handle:
            handle.write(content)
    except FileExistsError:
        return EnvFileResult(path=target, outcome=EnvFileOutcome.EXISTS, reason="already exists")
    except OSError as exc:
        logger.error("Environment file could not be written", extra={"path": str(target), "error": str(exc)})
        return EnvFileResult(path=target, outcome=EnvFileOutcome.FAILED, reason=str(exc))
    logger.info("Environment file created", extra={"path": str(target), "template": spec.template})
    return EnvFileResult(path=target, outcome=EnvFileOutcome.CREATED)


def materialize_env_files(
    config: BootstrapConfig,
    paths: WorkspacePaths,
    specs: Sequence[EnvFileConfig] | None = None,
) -> List[EnvFileResult]:
    values = template_values(config)
    return [materialize_env_file(spec, paths, values) for spec in (specs if specs is not None else config.env_files)]
