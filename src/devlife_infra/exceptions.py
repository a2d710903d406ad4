"""Custom exception types for the bootstrap workflow."""


class BootstrapError(RuntimeError):
    """Base class for bootstrap-related failures."""


class ConfigError(BootstrapError):
    """Raised when the bootstrap configuration cannot be loaded or validated."""


class PreflightError(BootstrapError):
    """Raised when host prerequisites are not met."""


class LaunchError(BootstrapError):
    """Raised when the container orchestrator fails to start services."""


class DatastoreError(BootstrapError):
    """Raised when a datastore CLI call inside a container fails."""


class SeedError(BootstrapError):
    """Raised when a seed tier cannot be applied."""


class TeardownError(BootstrapError):
    """Raised when the container orchestrator fails to stop services."""
