"""Info service client.

The info service is the record of truth for clusters, app groups and cloud
accounts (CSP). This service only registers new records and moves their
status; everything else about them is owned upstream.
"""

from clusterlcm.clients.http import ServiceClient
from clusterlcm.errors import NotFoundError, UpstreamError
from clusterlcm.models import (
    AppGroup,
    AppGroupSpec,
    AppGroupStatus,
    Cluster,
    ClusterConf,
    ClusterStatus,
    CspInfo,
)


class InfoClient(ServiceClient):
    service_name = "info-service"

    # --- CSP info ---

    async def get_csp_info(self, csp_id: str) -> CspInfo:
        body = await self.call("GET", f"/api/v1/csp-infos/{csp_id}")
        if not body.get("cspInfo"):
            raise NotFoundError(f"CSP {csp_id} not found")
        return self.parse(CspInfo, body["cspInfo"])

    async def get_csp_ids_by_contract(self, contract_id: str) -> list[str]:
        body = await self.call("GET", f"/api/v1/contracts/{contract_id}/csp-ids")
        return list(body.get("ids") or [])

    # --- Clusters ---

    async def get_cluster(self, cluster_id: str) -> Cluster:
        body = await self.call("GET", f"/api/v1/clusters/{cluster_id}")
        if not body.get("cluster"):
            raise NotFoundError(f"cluster {cluster_id} not found")
        return self.parse(Cluster, body["cluster"])

    async def get_clusters_by_contract(self, contract_id: str) -> list[Cluster]:
        body = await self.call("GET", f"/api/v1/contracts/{contract_id}/clusters")
        return [self.parse(Cluster, c) for c in body.get("clusters") or []]

    async def add_cluster(
        self, contract_id: str, csp_id: str, name: str, conf: ClusterConf
    ) -> str:
        body = await self.call(
            "POST",
            "/api/v1/clusters",
            json={
                "contractId": contract_id,
                "cspId": csp_id,
                "name": name,
                "conf": conf.model_dump(by_alias=True),
            },
        )
        if not body.get("id"):
            raise UpstreamError("info service registered a cluster without returning its id")
        return body["id"]

    async def update_cluster_status(
        self, cluster_id: str, status: ClusterStatus, workflow_id: str = ""
    ) -> None:
        await self.call(
            "PATCH",
            f"/api/v1/clusters/{cluster_id}/status",
            json={"status": status.value, "workflowId": workflow_id},
        )

    # --- App groups ---

    async def get_app_group(self, app_group_id: str) -> AppGroup:
        body = await self.call("GET", f"/api/v1/app-groups/{app_group_id}")
        if not body.get("appGroup"):
            raise NotFoundError(f"app group {app_group_id} not found")
        return self.parse(AppGroup, body["appGroup"])

    async def get_app_groups_by_cluster(self, cluster_id: str) -> list[AppGroup]:
        body = await self.call("GET", f"/api/v1/clusters/{cluster_id}/app-groups")
        return [self.parse(AppGroup, a) for a in body.get("appGroups") or []]

    async def create_app_group(self, cluster_id: str, app_group: AppGroupSpec) -> str:
        body = await self.call(
            "POST",
            f"/api/v1/clusters/{cluster_id}/app-groups",
            json={"appGroup": app_group.model_dump(by_alias=True)},
        )
        if not body.get("id"):
            raise UpstreamError("info service registered an app group without returning its id")
        return body["id"]

    async def update_app_group_status(
        self, app_group_id: str, status: AppGroupStatus, workflow_id: str = ""
    ) -> None:
        await self.call(
            "PATCH",
            f"/api/v1/app-groups/{app_group_id}/status",
            json={"status": status.value, "workflowId": workflow_id},
        )
