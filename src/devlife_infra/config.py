"""Configuration models for the devlife-infra bootstrap."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigError
from .templates import MONGO_FALLBACK_SEED, TEMPLATES

DEFAULT_CONFIG_PATH = Path("config/bootstrap.yaml")


class ServiceKind(str, Enum):
    POSTGRES = "postgres"
    MONGODB = "mongodb"
    REDIS = "redis"


class CredentialConfig(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    auth_database: Optional[str] = None


class ReadinessConfig(BaseModel):
    attempts: int = Field(default=60, ge=1)
    interval_s: float = Field(default=2.0, ge=0)
    probe_timeout_s: float = Field(default=10.0, gt=0)


class ServiceConfig(BaseModel):
    name: str = Field(..., description="Compose service name")
    kind: ServiceKind
    container: str
    host_port: int = Field(..., ge=1, le=65535)
    container_port: int = Field(..., ge=1, le=65535)
    credentials: CredentialConfig = Field(default_factory=CredentialConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    verify: List[str] = Field(default_factory=list, description="Tables/collections counted by the verifier")

    @property
    def label(self) -> str:
        return {
            ServiceKind.POSTGRES: "PostgreSQL",
            ServiceKind.MONGODB: "MongoDB",
            ServiceKind.REDIS: "Redis",
        }[self.kind]


class SeedConfig(BaseModel):
    service: str
    marker: str = Field(..., description="Table or collection whose rows signal an already-seeded store")
    scripts: List[Path] = Field(default_factory=list)
    container_script_dir: Optional[Path] = None
    fallback: Optional[str] = Field(default=None, description="Embedded literal run once if the scripts fail")


class EnvFileConfig(BaseModel):
    path: Path
    template: str
    requires: Optional[Path] = None

    @field_validator("template")
    @classmethod
    def validate_template(cls, value: str) -> str:
        if value not in TEMPLATES:
            raise ValueError(f"template must be one of {sorted(TEMPLATES)}")
        return value


class ComposeConfig(BaseModel):
    command: List[str] = Field(default_factory=lambda: ["docker-compose"])
    file: Optional[Path] = Path("docker-compose.yml")
    project_name: Optional[str] = None
    services: List[str] = Field(default_factory=lambda: ["postgres", "mongodb", "redis"])
    cleanup_containers: List[str] = Field(
        default_factory=lambda: [
            "devlife-postgres",
            "devlife-mongodb",
            "devlife-redis",
            "devlife-backend",
            "devlife-frontend",
        ]
    )

    @field_validator("command")
    @classmethod
    def validate_command(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("compose.command must not be empty")
        return value


class PreflightConfig(BaseModel):
    commands: List[str] = Field(default_factory=lambda: ["docker", "docker-compose"])
    check_daemon: bool = True
    repositories: List[Path] = Field(
        default_factory=lambda: [
            Path("../devlife-backend"),
            Path("../devlife-frontend"),
            Path("../devlife-db-scripts"),
        ]
    )


def _default_credentials() -> CredentialConfig:
    return CredentialConfig(username="devlife_user", password="devlife_password", database="devlife")


def _default_services() -> List[ServiceConfig]:
    return [
        ServiceConfig(
            name="postgres",
            kind=ServiceKind.POSTGRES,
            container="devlife-postgres",
            host_port=6100,
            container_port=5432,
            credentials=_default_credentials(),
            readiness=ReadinessConfig(attempts=60, interval_s=2.0),
            verify=["users"],
        ),
        ServiceConfig(
            name="mongodb",
            kind=ServiceKind.MONGODB,
            container="devlife-mongodb",
            host_port=27017,
            container_port=27017,
            credentials=CredentialConfig(
                username="devlife_user",
                password="devlife_password",
                database="devlife",
                auth_database="admin",
            ),
            readiness=ReadinessConfig(attempts=60, interval_s=2.0),
            verify=["code_snippets", "dating_profiles", "meeting_excuses", "horoscopes"],
        ),
        ServiceConfig(
            name="redis",
            kind=ServiceKind.REDIS,
            container="devlife-redis",
            host_port=6200,
            container_port=6379,
            credentials=CredentialConfig(username="devlife_user", password="devlife_password"),
            readiness=ReadinessConfig(attempts=30, interval_s=1.0),
        ),
    ]


def _default_seeds() -> List[SeedConfig]:
    return [
        SeedConfig(
            service="mongodb",
            marker="code_snippets",
            scripts=[Path("mongo-init/01-init-collections.js")],
            container_script_dir=Path("/docker-entrypoint-initdb.d"),
            fallback=MONGO_FALLBACK_SEED,
        ),
        SeedConfig(
            service="postgres",
            marker="users",
            scripts=[Path("init/01-init-database.sql"), Path("init/02-sample-data.sql")],
        ),
    ]


def _default_env_files() -> List[EnvFileConfig]:
    return [
        EnvFileConfig(path=Path("../devlife-backend/.env"), template="backend_env"),
        EnvFileConfig(
            path=Path("../devlife-frontend/src/environments/environment.ts"),
            template="angular_environment",
            requires=Path("../devlife-frontend/src"),
        ),
    ]


class BootstrapConfig(BaseModel):
    project_name: str = "DevLife Portal"
    backend_url: str = "http://localhost:5000"
    frontend_url: str = "http://localhost:4200"
    scripts_repository: Path = Path("../devlife-db-scripts")
    preflight: PreflightConfig = Field(default_factory=PreflightConfig)
    compose: ComposeConfig = Field(default_factory=ComposeConfig)
    services: List[ServiceConfig] = Field(default_factory=_default_services)
    seeds: List[SeedConfig] = Field(default_factory=_default_seeds)
    env_files: List[EnvFileConfig] = Field(default_factory=_default_env_files)
    settle_seconds: float = Field(default=3.0, ge=0)
    strict: bool = False

    @model_validator(mode="after")
    def validate_references(self) -> "BootstrapConfig":
        names = [service.name for service in self.services]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate service names: {duplicates}")
        for seed in self.seeds:
            if seed.service not in names:
                raise ValueError(f"seed entry references unknown service '{seed.service}'")
        return self

    def service(self, name: str) -> ServiceConfig:
        for service in self.services:
            if service.name == name:
                return service
        raise KeyError(name)

    def service_of_kind(self, kind: ServiceKind) -> Optional[ServiceConfig]:
        return next((service for service in self.services if service.kind is kind), None)


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_bootstrap_config(path: Optional[Path] = None) -> BootstrapConfig:
    """Load the bootstrap config from YAML, or the built-in defaults when ``path`` is None."""

    if path is None:
        return BootstrapConfig()
    try:
        data = load_yaml(path)
        return BootstrapConfig.model_validate(data)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(f"Invalid bootstrap config {path}:\n{exc}") from exc


def resolve_config_path(root: Path, explicit: Optional[Path]) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.is_absolute() else root / explicit
    candidate = root / DEFAULT_CONFIG_PATH
    return candidate if candidate.exists() else None
