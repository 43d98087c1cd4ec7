"""Data types and dataclasses for vnet-deployments library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError


@dataclass(frozen=True)
class GithubContext:
    """Identity of the pipeline run, as exposed by the GitHub runner."""

    workflow: str
    run_id: str
    run_number: str
    job: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "workflow": self.workflow,
            "runId": self.run_id,
            "runNumber": self.run_number,
            "job": self.job,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GithubContext":
        return cls(
            workflow=str(data["workflow"]),
            run_id=str(data["runId"]),
            run_number=str(data["runNumber"]),
            job=str(data["job"]),
        )


@dataclass(frozen=True)
class NetworkEnvironment:
    """A provisioned Virtual TestNet."""

    id: str
    admin_rpc_url: str  # Sensitive, never logged
    public_rpc_url: str
    network_id: str  # Forked network, e.g. "1" for Ethereum Mainnet
    chain_id: int
    testnet_slug: str
    explorer_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.id,
            "adminRpcUrl": self.admin_rpc_url,
            "publicRpcUrl": self.public_rpc_url,
            "networkId": self.network_id,
            "chainId": self.chain_id,
            "testnetSlug": self.testnet_slug,
        }
        if self.explorer_url is not None:
            result["explorerUrl"] = self.explorer_url
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkEnvironment":
        return cls(
            id=data["id"],
            admin_rpc_url=data["adminRpcUrl"],
            public_rpc_url=data["publicRpcUrl"],
            network_id=str(data["networkId"]),
            chain_id=int(data["chainId"]),
            testnet_slug=data["testnetSlug"],
            explorer_url=data.get("explorerUrl"),
        )


@dataclass
class InfrastructureSnapshot:
    """All environments provisioned for one pipeline run."""

    networks: Dict[str, NetworkEnvironment]  # network id -> environment, in creation order
    timestamp: str  # ISO-8601
    github_context: GithubContext

    def to_dict(self) -> Dict[str, Any]:
        return {
            "networks": {
                network_id: env.to_dict() for network_id, env in self.networks.items()
            },
            "timestamp": self.timestamp,
            "githubContext": self.github_context.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InfrastructureSnapshot":
        return cls(
            networks={
                str(network_id): NetworkEnvironment.from_dict(env)
                for network_id, env in data["networks"].items()
            },
            timestamp=data["timestamp"],
            github_context=GithubContext.from_dict(data["githubContext"]),
        )


@dataclass
class ContractRecord:
    """A contract deployment and verification event extracted from a build log."""

    address: Optional[str] = None
    chain: Optional[str] = None  # Chain id as it appears in the log
    verification_status: Optional[str] = None
    compiler: Optional[str] = None
    optimizations: Optional[int] = None
    contract_path: Optional[str] = None
    contract_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "chain": self.chain,
            "verificationStatus": self.verification_status,
            "compiler": self.compiler,
            "optimizations": self.optimizations,
            "contractPath": self.contract_path,
            "contractName": self.contract_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractRecord":
        return cls(
            address=data.get("address"),
            chain=data.get("chain"),
            verification_status=data.get("verificationStatus"),
            compiler=data.get("compiler"),
            optimizations=data.get("optimizations"),
            contract_path=data.get("contractPath"),
            contract_name=data.get("contractName"),
        )


@dataclass
class DeploymentGroup:
    """Contracts deployed to a single Virtual TestNet."""

    virtual_testnet: NetworkEnvironment
    contracts: List[ContractRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "virtualTestNet": self.virtual_testnet.to_dict(),
            "contracts": [c.to_dict() for c in self.contracts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentGroup":
        return cls(
            virtual_testnet=NetworkEnvironment.from_dict(data["virtualTestNet"]),
            contracts=[ContractRecord.from_dict(c) for c in data["contracts"]],
        )


@dataclass(frozen=True)
class WorkflowInfo:
    """Run identity as written into the deployment report."""

    run_number: int
    workflow: str
    job: str
    run_id: int

    @classmethod
    def from_context(cls, context: GithubContext) -> "WorkflowInfo":
        try:
            run_number = int(context.run_number)
            run_id = int(context.run_id)
        except ValueError as e:
            raise ConfigError(
                f"Run number and run id must be numeric, got "
                f"{context.run_number!r} and {context.run_id!r}"
            ) from e

        return cls(
            run_number=run_number,
            workflow=context.workflow,
            job=context.job,
            run_id=run_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "runNumber": self.run_number,
            "workflow": self.workflow,
            "job": self.job,
            "runId": self.run_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowInfo":
        return cls(
            run_number=int(data["runNumber"]),
            workflow=data["workflow"],
            job=data["job"],
            run_id=int(data["runId"]),
        )


@dataclass
class ParsedDeploymentReport:
    """The deployment artifact produced for one pipeline run."""

    workflow: WorkflowInfo
    deployments: List[DeploymentGroup] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow": self.workflow.to_dict(),
            "deployments": [d.to_dict() for d in self.deployments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedDeploymentReport":
        return cls(
            workflow=WorkflowInfo.from_dict(data["workflow"]),
            deployments=[DeploymentGroup.from_dict(d) for d in data["deployments"]],
        )
