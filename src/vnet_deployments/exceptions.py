"""Custom exception classes for vnet-deployments library."""


class TrackingError(Exception):
    """Base exception for infrastructure and deployment tracking errors."""

    pass


class LogReadError(TrackingError, OSError):
    """Raised when the logs directory or a log file cannot be read."""

    pass


class ArtifactWriteError(TrackingError, OSError):
    """Raised when the deployment report cannot be written."""

    pass


class PersistenceError(TrackingError, OSError):
    """Raised when the infrastructure snapshot store cannot be read or written."""

    pass


class MissingSnapshotError(TrackingError, LookupError):
    """Raised when deployments are correlated without an infrastructure snapshot."""

    pass


class ProvisioningError(TrackingError, RuntimeError):
    """Raised when the Tenderly API rejects or fails a request."""

    pass


class ConfigError(TrackingError, ValueError):
    """Raised when required configuration is missing from the environment."""

    pass
