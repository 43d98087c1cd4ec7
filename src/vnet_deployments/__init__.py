"""
vnet-deployments: Track smart contract deployments on Tenderly Virtual TestNets in CI/CD
"""

from importlib.metadata import PackageNotFoundError, version

from .cleanup import CleanupResult, run_cleanup
from .config import github_context_from_env, tenderly_client_from_env
from .deployments import correlate, load_report, persist_report, track_deployments
from .exceptions import (
    ArtifactWriteError,
    ConfigError,
    LogReadError,
    MissingSnapshotError,
    PersistenceError,
    ProvisioningError,
    TrackingError,
)
from .infra import key_for_run, read_snapshot, write_snapshot
from .parsers import scan_logs
from .provisioning import TenderlyClient, pause_networks, provision_networks
from .types import (
    ContractRecord,
    DeploymentGroup,
    GithubContext,
    InfrastructureSnapshot,
    NetworkEnvironment,
    ParsedDeploymentReport,
    WorkflowInfo,
)

try:
    __version__ = version("vnet-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "key_for_run",
    "read_snapshot",
    "write_snapshot",
    "scan_logs",
    "correlate",
    "persist_report",
    "load_report",
    "track_deployments",
    "run_cleanup",
    "CleanupResult",
    "TenderlyClient",
    "provision_networks",
    "pause_networks",
    "github_context_from_env",
    "tenderly_client_from_env",
    "ContractRecord",
    "DeploymentGroup",
    "GithubContext",
    "InfrastructureSnapshot",
    "NetworkEnvironment",
    "ParsedDeploymentReport",
    "WorkflowInfo",
    "TrackingError",
    "LogReadError",
    "ArtifactWriteError",
    "PersistenceError",
    "MissingSnapshotError",
    "ProvisioningError",
    "ConfigError",
]
