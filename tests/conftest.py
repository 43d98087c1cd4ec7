"""Shared pytest fixtures for vnet-deployments tests."""

import json
import shutil
from pathlib import Path
from typing import Any, Dict

import pytest

from vnet_deployments.infra import key_for_run
from vnet_deployments.paths import get_infra_path
from vnet_deployments.types import GithubContext, InfrastructureSnapshot


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_infra_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample infrastructure snapshot fixture."""
    with open(fixtures_dir / "sample_infra.json") as f:
        return json.load(f)


@pytest.fixture
def sample_snapshot(sample_infra_json: Dict[str, Any]) -> InfrastructureSnapshot:
    """Return the sample snapshot as an InfrastructureSnapshot."""
    return InfrastructureSnapshot.from_dict(sample_infra_json)


@pytest.fixture
def github_context() -> GithubContext:
    """Run identity matching the sample snapshot."""
    return GithubContext(
        workflow="Deploy Contracts",
        run_id="9876543210",
        run_number="42",
        job="deploy",
    )


@pytest.fixture
def run_key(github_context: GithubContext) -> str:
    """Storage key of the sample run."""
    return key_for_run(github_context.workflow, github_context.run_number, github_context.job)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an empty workspace root."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def stored_snapshot(workspace: Path, run_key: str, sample_infra_json: Dict[str, Any]) -> Path:
    """Write the sample snapshot into the workspace's infra store."""
    path = get_infra_path(run_key, workspace)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(sample_infra_json, f, indent=2)
    return path


@pytest.fixture
def logs_dir(workspace: Path, fixtures_dir: Path) -> Path:
    """Copy the sample verification logs into the workspace's logs directory."""
    target = workspace / ".tenderly" / "logs"
    shutil.copytree(fixtures_dir / "logs", target)
    return target
