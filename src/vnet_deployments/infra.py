"""Infrastructure snapshot store for vnet-deployments library.

Snapshots are written once by the provisioning step and read back by later
steps of the same run (deployment tracking, post-run cleanup). Each step runs
in a fresh process, so the file is the only shared state.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from .exceptions import PersistenceError
from .paths import get_infra_path
from .types import InfrastructureSnapshot

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s/\\]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-{2,}")


def key_for_run(workflow: str, run_number: Union[str, int], job: str) -> str:
    """
    Build the storage key for a pipeline run.

    The key only contains lowercase alphanumerics and hyphens so it is safe
    to use as a filename.

    Args:
        workflow: Workflow name (e.g. "CI / Deploy")
        run_number: Run number of the workflow
        job: Job name

    Returns:
        Sanitized key, e.g. "ci-deploy-42-build"
    """
    raw = f"{workflow}-{run_number}-{job}".lower()
    key = _SEPARATORS.sub("-", raw)
    key = _DISALLOWED.sub("", key)
    key = _REPEATED_HYPHENS.sub("-", key)
    return key.strip("-")


def write_snapshot(
    key: str,
    snapshot: InfrastructureSnapshot,
    root: Optional[Union[Path, str]] = None,
) -> None:
    """
    Persist a snapshot, overwriting any previous one for the key.

    Failures are logged and swallowed: losing the tracking record must not
    fail a provisioning step that already succeeded.
    """
    try:
        save_snapshot_strict(key, snapshot, root)
    except PersistenceError as e:
        logger.warning("Could not persist infrastructure info for %s: %s", key, e)


def save_snapshot_strict(
    key: str,
    snapshot: InfrastructureSnapshot,
    root: Optional[Union[Path, str]] = None,
) -> Path:
    """
    Persist a snapshot, raising on failure.

    Returns:
        Path of the written snapshot file

    Raises:
        PersistenceError: If the snapshot cannot be written
    """
    path = get_infra_path(key, root)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, indent=2)
    except OSError as e:
        raise PersistenceError(f"Failed to write snapshot to {path}: {e}") from e

    logger.info("Stored infrastructure info for %d network(s) at %s", len(snapshot.networks), path)
    return path


def load_snapshot_strict(
    key: str, root: Optional[Union[Path, str]] = None
) -> Optional[InfrastructureSnapshot]:
    """
    Read the snapshot for a key.

    Returns:
        The snapshot, or None if none was stored or its content is unreadable

    Raises:
        PersistenceError: On I/O faults other than a missing file
    """
    path = get_infra_path(key, root)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.info("No infrastructure info stored for %s", key)
        return None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.debug("Ignoring undecodable snapshot %s: %s", path, e)
        return None
    except OSError as e:
        raise PersistenceError(f"Failed to read snapshot from {path}: {e}") from e

    try:
        return InfrastructureSnapshot.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug("Ignoring malformed snapshot %s: %r", path, e)
        return None


def read_snapshot(
    key: str, root: Optional[Union[Path, str]] = None
) -> Optional[InfrastructureSnapshot]:
    """
    Read the snapshot for a key, best-effort.

    A run that never provisioned anything has no snapshot; that is not an
    error. I/O faults are logged and reported as absent as well.
    """
    try:
        return load_snapshot_strict(key, root)
    except PersistenceError as e:
        logger.warning("Could not read infrastructure info for %s: %s", key, e)
        return None
