"""Bootstrap tooling for the DevLife Portal development infrastructure."""

from .config import BootstrapConfig, ServiceConfig, ServiceKind, load_bootstrap_config
from .exceptions import BootstrapError, ConfigError, LaunchError, PreflightError, TeardownError
from .models import BootstrapReport, StageStatus
from .pipeline import BootstrapPipeline

__version__ = "0.1.0"

__all__ = [
    "BootstrapConfig",
    "BootstrapError",
    "BootstrapPipeline",
    "BootstrapReport",
    "ConfigError",
    "LaunchError",
    "PreflightError",
    "ServiceConfig",
    "ServiceKind",
    "StageStatus",
    "TeardownError",
    "load_bootstrap_config",
]
