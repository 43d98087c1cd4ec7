"""Path management utilities for vnet-deployments library."""

import os
from pathlib import Path
from typing import Optional, Union

from .constants import (
    DEPLOYMENTS_SUFFIX,
    INFRA_DIR_NAME,
    LOGS_DIR_NAME,
    OUTPUT_DIR_NAME,
    STATE_DIR_NAME,
)


def get_workspace_dir() -> Path:
    """
    Get the workspace root.

    Returns:
        $GITHUB_WORKSPACE if set, otherwise the current directory
    """
    workspace = os.environ.get("GITHUB_WORKSPACE")
    if workspace:
        return Path(workspace).absolute()
    return Path.cwd()


def _resolve_root(root: Optional[Union[Path, str]]) -> Path:
    if root is None:
        return get_workspace_dir()
    return Path(root).absolute()


def get_infra_dir(root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the directory holding infrastructure snapshots.

    Args:
        root: Custom workspace root (defaults to get_workspace_dir())

    Returns:
        Path to <root>/.tenderly/infra
    """
    return _resolve_root(root) / STATE_DIR_NAME / INFRA_DIR_NAME


def get_infra_path(key: str, root: Optional[Union[Path, str]] = None) -> Path:
    """Get the snapshot file for a run key."""
    return get_infra_dir(root) / f"{key}.json"


def get_logs_dir(root: Optional[Union[Path, str]] = None) -> Path:
    """Get the scratch directory build tools write verification logs to."""
    return _resolve_root(root) / STATE_DIR_NAME / LOGS_DIR_NAME


def get_output_dir(root: Optional[Union[Path, str]] = None) -> Path:
    """Get the directory deployment reports are written to."""
    return _resolve_root(root) / OUTPUT_DIR_NAME


def get_deployments_path(out_dir: Union[Path, str], base_name: str) -> Path:
    """
    Get the deployment report path.

    Args:
        out_dir: Output directory
        base_name: Run-scoped base filename

    Returns:
        Path to <out_dir>/<base_name>-deployments.json
    """
    return Path(out_dir) / f"{base_name}{DEPLOYMENTS_SUFFIX}"
