"""Environment configuration for vnet-deployments library."""

import os
from typing import Mapping, Optional

from .exceptions import ConfigError
from .provisioning import TenderlyClient
from .types import GithubContext


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if value is None or not value.strip():
        raise ConfigError(f"Missing required environment variable ${name}")
    return value


def github_context_from_env(environ: Optional[Mapping[str, str]] = None) -> GithubContext:
    """
    Read the run identity set by the GitHub Actions runner.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: If GITHUB_WORKFLOW, GITHUB_RUN_ID, GITHUB_RUN_NUMBER
            or GITHUB_JOB is not set
    """
    if environ is None:
        environ = os.environ

    return GithubContext(
        workflow=_require(environ, "GITHUB_WORKFLOW"),
        run_id=_require(environ, "GITHUB_RUN_ID"),
        run_number=_require(environ, "GITHUB_RUN_NUMBER"),
        job=_require(environ, "GITHUB_JOB"),
    )


def tenderly_client_from_env(
    access_key: Optional[str] = None,
    account_name: Optional[str] = None,
    project_name: Optional[str] = None,
) -> TenderlyClient:
    """
    Create a Tenderly client.

    Args:
        access_key: API access key (defaults to $TENDERLY_ACCESS_KEY)
        account_name: Account slug (defaults to $TENDERLY_ACCOUNT_NAME)
        project_name: Project slug (defaults to $TENDERLY_PROJECT_NAME)

    Raises:
        ConfigError: If a value is neither passed nor set in the environment
    """
    if access_key is None:
        access_key = os.environ.get("TENDERLY_ACCESS_KEY")
    if account_name is None:
        account_name = os.environ.get("TENDERLY_ACCOUNT_NAME")
    if project_name is None:
        project_name = os.environ.get("TENDERLY_PROJECT_NAME")

    if not access_key or not account_name or not project_name:
        raise ConfigError(
            "Tenderly credentials required: set $TENDERLY_ACCESS_KEY, "
            "$TENDERLY_ACCOUNT_NAME and $TENDERLY_PROJECT_NAME, "
            "or pass access_key, account_name and project_name"
        )

    return TenderlyClient(access_key, account_name, project_name)
