"""Tenderly Virtual TestNet provisioning for vnet-deployments library."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests

from .constants import (
    DEFAULT_CHAIN_ID_PREFIX,
    RPC_ADMIN_NAME,
    RPC_PUBLIC_NAME,
    TENDERLY_API_BASE_URL,
    TENDERLY_DASHBOARD_URL,
)
from .exceptions import ProvisioningError
from .infra import key_for_run, write_snapshot
from .types import GithubContext, InfrastructureSnapshot, NetworkEnvironment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PauseResult:
    """Outcome of pausing one Virtual TestNet."""

    network_id: str
    vnet_id: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_chain_id(
    network_id: Union[str, int],
    chain_id: Optional[Union[str, int]] = None,
    prefix: str = DEFAULT_CHAIN_ID_PREFIX,
) -> int:
    """
    Determine the chain id of a Virtual TestNet.

    Args:
        network_id: Forked network id
        chain_id: Explicit chain id, used as-is when given
        prefix: Prepended to network_id otherwise

    Returns:
        Chain id, e.g. 73571 for network 1 with the default prefix
    """
    if chain_id is not None and str(chain_id).strip():
        return int(chain_id)
    return int(f"{prefix}{network_id}")


def parse_block_number(block_number: Union[str, int]) -> Union[str, int]:
    """Convert a hex block number to int; "latest" passes through."""
    if isinstance(block_number, int):
        return block_number
    value = block_number.strip()
    if value.lower() == "latest":
        return "latest"
    return int(value, 16) if value.lower().startswith("0x") else int(value)


def make_slug(*parts: Any) -> str:
    """Build a Tenderly slug (lowercase alphanumerics and hyphens)."""
    raw = "-".join(str(p) for p in parts).lower()
    slug = re.sub(r"[^a-z0-9]+", "-", raw)
    return slug.strip("-")


class TenderlyClient:
    """Minimal client for the Virtual TestNet endpoints of the Tenderly API."""

    def __init__(
        self,
        access_key: str,
        account_name: str,
        project_name: str,
        base_url: str = TENDERLY_API_BASE_URL,
        timeout: int = 30,
    ):
        self.access_key = access_key
        self.account_name = account_name
        self.project_name = project_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def vnets_url(self) -> str:
        return f"{self.base_url}/account/{self.account_name}/project/{self.project_name}/vnets"

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Access-Key": self.access_key,
        }

    def _request(self, method: str, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ProvisioningError(f"Network error calling Tenderly API: {e}") from e

        if response.status_code >= 400:
            raise ProvisioningError(
                f"Tenderly API request failed with status {response.status_code}: {response.text}"
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProvisioningError(f"Invalid JSON from Tenderly API: {e}") from e

    def create_virtual_testnet(
        self,
        slug: str,
        display_name: str,
        network_id: Union[str, int],
        chain_id: int,
        block_number: Union[str, int] = "latest",
        state_sync: bool = False,
        public_explorer: bool = False,
        verification_visibility: str = "bytecode",
    ) -> NetworkEnvironment:
        """
        Create a Virtual TestNet forked from a network.

        Returns:
            The provisioned environment

        Raises:
            ProvisioningError: If the API call fails or the response lacks RPC URLs
        """
        payload = {
            "slug": slug,
            "display_name": display_name,
            "fork_config": {
                "network_id": int(network_id),
                "block_number": parse_block_number(block_number),
            },
            "virtual_network_config": {"chain_config": {"chain_id": chain_id}},
            "sync_state_config": {"enabled": state_sync},
            "explorer_page_config": {
                "enabled": public_explorer,
                "verification_visibility": verification_visibility,
            },
        }
        data = self._request("POST", self.vnets_url, payload)

        rpcs = {rpc.get("name"): rpc.get("url") for rpc in data.get("rpcs", [])}
        admin_rpc = rpcs.get(RPC_ADMIN_NAME)
        public_rpc = rpcs.get(RPC_PUBLIC_NAME)
        if "id" not in data or not admin_rpc or not public_rpc:
            raise ProvisioningError(f"Incomplete Virtual TestNet response for {slug}")

        explorer_url = None
        if public_explorer:
            # The explorer is addressed by the public RPC's trailing id
            public_id = public_rpc.rstrip("/").rsplit("/", 1)[-1]
            explorer_url = f"{TENDERLY_DASHBOARD_URL}/explorer/vnet/{public_id}"

        logger.info("Created Virtual TestNet %s (network %s, chain %d)", slug, network_id, chain_id)
        return NetworkEnvironment(
            id=data["id"],
            admin_rpc_url=admin_rpc,
            public_rpc_url=public_rpc,
            network_id=str(network_id),
            chain_id=chain_id,
            testnet_slug=slug,
            explorer_url=explorer_url,
        )

    def pause_virtual_testnet(self, vnet_id: str) -> None:
        """
        Stop a Virtual TestNet.

        Raises:
            ProvisioningError: If the API call fails
        """
        self._request("PATCH", f"{self.vnets_url}/{vnet_id}", {"status": "stopped"})
        logger.info("Paused Virtual TestNet %s", vnet_id)


def provision_networks(
    client: TenderlyClient,
    context: GithubContext,
    network_ids: Sequence[Union[str, int]],
    testnet_name: str = "CI Virtual TestNet",
    chain_id: Optional[Union[str, int]] = None,
    chain_id_prefix: str = DEFAULT_CHAIN_ID_PREFIX,
    block_number: Union[str, int] = "latest",
    state_sync: bool = False,
    public_explorer: bool = False,
    verification_visibility: str = "bytecode",
    root: Optional[Union[Path, str]] = None,
) -> InfrastructureSnapshot:
    """
    Create one Virtual TestNet per network id and store the snapshot.

    An explicit chain_id only applies when a single network is forked;
    otherwise every chain id is derived from chain_id_prefix.

    Raises:
        ProvisioningError: If any Virtual TestNet can't be created
    """
    now = datetime.now(timezone.utc)
    networks: Dict[str, NetworkEnvironment] = {}

    for network_id in network_ids:
        network_key = str(network_id).strip()
        explicit = chain_id if len(network_ids) == 1 else None
        env = client.create_virtual_testnet(
            slug=make_slug(testnet_name, network_key, int(now.timestamp())),
            display_name=f"{testnet_name} {network_key}",
            network_id=network_key,
            chain_id=resolve_chain_id(network_key, explicit, chain_id_prefix),
            block_number=block_number,
            state_sync=state_sync,
            public_explorer=public_explorer,
            verification_visibility=verification_visibility,
        )
        networks[network_key] = env

    snapshot = InfrastructureSnapshot(
        networks=networks,
        timestamp=now.isoformat(),
        github_context=context,
    )
    write_snapshot(key_for_run(context.workflow, context.run_number, context.job), snapshot, root)
    return snapshot


def pause_networks(
    client: TenderlyClient, snapshot: InfrastructureSnapshot
) -> List[PauseResult]:
    """
    Pause every environment of a snapshot in parallel.

    A failure doesn't cancel the other pauses; every outcome is returned.
    """

    def pause(network_id: str, env: NetworkEnvironment) -> PauseResult:
        try:
            client.pause_virtual_testnet(env.id)
        except ProvisioningError as e:
            logger.warning("Failed to pause Virtual TestNet %s: %s", env.testnet_slug, e)
            return PauseResult(network_id=network_id, vnet_id=env.id, error=str(e))
        return PauseResult(network_id=network_id, vnet_id=env.id)

    if not snapshot.networks:
        return []

    with ThreadPoolExecutor(max_workers=len(snapshot.networks)) as executor:
        futures = [
            executor.submit(pause, network_id, env)
            for network_id, env in snapshot.networks.items()
        ]
        return [f.result() for f in futures]
