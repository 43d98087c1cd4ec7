"""Post-run cleanup for vnet-deployments library."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .deployments import track_deployments
from .exceptions import TrackingError
from .infra import key_for_run, read_snapshot
from .provisioning import TenderlyClient, pause_networks
from .types import GithubContext

logger = logging.getLogger(__name__)

MODE_CI = "CI"
MODE_CD = "CD"


@dataclass
class CleanupResult:
    """Summary of a post-run cleanup."""

    paused: List[str] = field(default_factory=list)  # vnet ids
    failed: List[str] = field(default_factory=list)  # vnet ids
    report_path: Optional[Path] = None
    tracking_error: Optional[str] = None


def run_cleanup(
    mode: str,
    client: TenderlyClient,
    context: GithubContext,
    logs_dir: Optional[Union[Path, str]] = None,
    out_dir: Optional[Union[Path, str]] = None,
    root: Optional[Union[Path, str]] = None,
) -> CleanupResult:
    """
    Finish a run: pause its Virtual TestNets (CI) or record deployments (CD).

    CD runs keep their Virtual TestNets alive so the deployed contracts stay
    reachable. Nothing here raises; every failure is logged and reported in
    the result.

    Args:
        mode: "CI" or "CD" (case-insensitive)
        client: Tenderly API client
        context: Identity of the current run
        logs_dir: Verification logs directory (see track_deployments())
        out_dir: Report directory (see track_deployments())
        root: Workspace root
    """
    result = CleanupResult()
    key = key_for_run(context.workflow, context.run_number, context.job)
    snapshot = read_snapshot(key, root)
    if snapshot is None:
        logger.info("No Virtual TestNets recorded for %s, nothing to clean up", key)
        return result

    if mode.upper() == MODE_CD:
        try:
            result.report_path = track_deployments(context, logs_dir, out_dir, root)
        except TrackingError as e:
            logger.error("Failed to track deployments for %s: %s", key, e)
            result.tracking_error = str(e)
        return result

    for outcome in pause_networks(client, snapshot):
        if outcome.ok:
            result.paused.append(outcome.vnet_id)
        else:
            result.failed.append(outcome.vnet_id)

    if result.failed:
        logger.warning("%d Virtual TestNet(s) could not be paused", len(result.failed))
    return result
