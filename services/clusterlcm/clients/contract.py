"""Contract service client (tenant scope records)."""

from clusterlcm.clients.http import ServiceClient
from clusterlcm.errors import NotFoundError
from clusterlcm.models import Contract


class ContractClient(ServiceClient):
    service_name = "contract-service"

    async def get_contract(self, contract_id: str) -> Contract:
        body = await self.call("GET", f"/api/v1/contracts/{contract_id}")
        if not body.get("contract"):
            raise NotFoundError(f"contract {contract_id} not found")
        return self.parse(Contract, body["contract"])

    async def get_default_contract(self) -> Contract:
        body = await self.call("GET", "/api/v1/contracts/default")
        if not body.get("contract"):
            raise NotFoundError("no default contract registered")
        return self.parse(Contract, body["contract"])
