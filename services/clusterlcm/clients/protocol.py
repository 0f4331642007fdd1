"""Upstream capability interfaces.

The lifecycle service works against these protocols, not the concrete HTTP
clients, so tests can hand it substitutes for any upstream.
"""

from dataclasses import dataclass
from typing import Protocol

from clusterlcm.models import (
    AppGroup,
    AppGroupSpec,
    AppGroupStatus,
    Cluster,
    ClusterConf,
    ClusterStatus,
    Contract,
    CspInfo,
)


class ContractService(Protocol):
    async def get_contract(self, contract_id: str) -> Contract:
        """Fetch a contract. Raises NotFoundError if missing."""
        ...

    async def get_default_contract(self) -> Contract:
        """Fetch the caller's default contract. Raises NotFoundError if none."""
        ...


class InfoService(Protocol):
    async def get_csp_info(self, csp_id: str) -> CspInfo: ...

    async def get_csp_ids_by_contract(self, contract_id: str) -> list[str]: ...

    async def get_cluster(self, cluster_id: str) -> Cluster: ...

    async def get_clusters_by_contract(self, contract_id: str) -> list[Cluster]: ...

    async def add_cluster(
        self, contract_id: str, csp_id: str, name: str, conf: ClusterConf
    ) -> str:
        """Register a cluster record and return its id."""
        ...

    async def update_cluster_status(
        self, cluster_id: str, status: ClusterStatus, workflow_id: str = ""
    ) -> None: ...

    async def get_app_group(self, app_group_id: str) -> AppGroup: ...

    async def get_app_groups_by_cluster(self, cluster_id: str) -> list[AppGroup]: ...

    async def create_app_group(self, cluster_id: str, app_group: AppGroupSpec) -> str:
        """Register an app group record and return its id."""
        ...

    async def update_app_group_status(
        self, app_group_id: str, status: AppGroupStatus, workflow_id: str = ""
    ) -> None: ...


class WorkflowEngine(Protocol):
    async def submit_from_template(
        self, template_name: str, namespace: str, parameters: list[str]
    ) -> str:
        """Submit a workflow and return its name."""
        ...

    async def is_running_workflow_by_correlation_id(
        self, namespace: str, key: str, value: str
    ) -> bool: ...


@dataclass
class Upstreams:
    """Upstream handles, built once at startup and injected into handlers."""

    contract: ContractService
    info: InfoService
    workflow: WorkflowEngine
