"""Deployment correlation and report persistence for vnet-deployments library."""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .exceptions import ArtifactWriteError, MissingSnapshotError
from .infra import key_for_run, read_snapshot
from .parsers import scan_logs
from .paths import get_deployments_path, get_logs_dir, get_output_dir
from .types import (
    ContractRecord,
    DeploymentGroup,
    GithubContext,
    InfrastructureSnapshot,
    ParsedDeploymentReport,
    WorkflowInfo,
)

logger = logging.getLogger(__name__)


def correlate(
    records: Sequence[ContractRecord],
    snapshot: Optional[InfrastructureSnapshot],
) -> List[DeploymentGroup]:
    """
    Group contract records under the Virtual TestNet they were deployed to.

    Records are matched on the decimal form of each environment's chain id.
    Environments without any matching record are left out.

    Note:
        If two environments share a chain id, both get the same records.

    Args:
        records: Records extracted from the build logs
        snapshot: Infrastructure provisioned for this run

    Returns:
        Groups in the snapshot's network order

    Raises:
        MissingSnapshotError: If snapshot is None
    """
    if snapshot is None:
        raise MissingSnapshotError(
            "No infrastructure info available; was the provisioning step run for this job?"
        )

    groups: List[DeploymentGroup] = []
    for env in snapshot.networks.values():
        chain = str(env.chain_id)
        matching = [r for r in records if r.chain == chain]
        if matching:
            groups.append(DeploymentGroup(virtual_testnet=env, contracts=matching))

    return groups


def persist_report(
    report: ParsedDeploymentReport, destination: Union[Path, str]
) -> Optional[Path]:
    """
    Write the deployment report, replacing any previous file atomically.

    Reports without deployments are not written.

    Returns:
        Path written, or None if the report was empty

    Raises:
        ArtifactWriteError: If the report cannot be written
    """
    destination = Path(destination)
    if not report.deployments:
        logger.info("No deployments found, skipping %s", destination)
        return None

    payload = json.dumps(report.to_dict(), indent=2)
    tmp_name = None
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp"
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        # mkstemp creates the file owner-only
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, destination)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ArtifactWriteError(f"Failed to write deployments to {destination}: {e}") from e

    contract_count = sum(len(g.contracts) for g in report.deployments)
    logger.info(
        "Wrote %d contract(s) on %d network(s) to %s",
        contract_count,
        len(report.deployments),
        destination,
    )
    return destination


def load_report(path: Union[Path, str]) -> ParsedDeploymentReport:
    """
    Read a deployment report written by persist_report().

    Raises:
        FileNotFoundError: If the report doesn't exist
        json.JSONDecodeError: If the file is not valid JSON
        KeyError: If required fields are missing
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return ParsedDeploymentReport.from_dict(data)


def remove_scratch_dir(path: Union[Path, str]) -> bool:
    """
    Delete the scratch logs directory.

    Returns:
        True if the directory is gone, False if deletion failed
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
        return False
    return True


def build_report(
    context: GithubContext,
    records: Sequence[ContractRecord],
    snapshot: Optional[InfrastructureSnapshot],
) -> ParsedDeploymentReport:
    """Assemble the report for a run from parsed records and its snapshot."""
    return ParsedDeploymentReport(
        workflow=WorkflowInfo.from_context(context),
        deployments=correlate(records, snapshot),
    )


def track_deployments(
    context: GithubContext,
    logs_dir: Optional[Union[Path, str]] = None,
    out_dir: Optional[Union[Path, str]] = None,
    root: Optional[Union[Path, str]] = None,
) -> Optional[Path]:
    """
    Parse this run's verification logs and write its deployment report.

    Args:
        context: Identity of the current run
        logs_dir: Directory with build tool logs (defaults to <root>/.tenderly/logs)
        out_dir: Report directory (defaults to <root>/ci-cd-out)
        root: Workspace root (defaults to $GITHUB_WORKSPACE)

    Returns:
        Path of the written report, or None if nothing was deployed

    Raises:
        LogReadError: If the logs can't be read
        ConfigError: If the run id or run number isn't numeric
        MissingSnapshotError: If no infrastructure was stored for this run
        ArtifactWriteError: If the report can't be written
    """
    key = key_for_run(context.workflow, context.run_number, context.job)
    snapshot = read_snapshot(key, root)

    logs_path = Path(logs_dir) if logs_dir is not None else get_logs_dir(root)
    out_path = Path(out_dir) if out_dir is not None else get_output_dir(root)

    records = scan_logs(logs_path)
    logger.info("Parsed %d verified contract(s) from %s", len(records), logs_path)

    report = build_report(context, records, snapshot)
    written = persist_report(report, get_deployments_path(out_path, key))

    remove_scratch_dir(logs_path)
    return written
