"""Shared JSON-over-HTTP plumbing for the contract and info service clients.

Both services answer with a body of the form::

    {"code": "OK", "error": {"msg": "..."}, ...payload}

A NOT_FOUND code (or HTTP 404) becomes NotFoundError, any other failure
becomes UpstreamError carrying the upstream message.
"""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from clusterlcm.errors import NotFoundError, UpstreamError
from clusterlcm.logging_config import get_logger
from clusterlcm.models import ResultCode

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class ServiceClient:
    """Thin async JSON client bound to one upstream service."""

    service_name = "upstream"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def health(self) -> bool:
        """Best-effort reachability check for the readiness probe."""
        try:
            resp = await self._client.get("/health")
            return resp.status_code < 500
        except httpx.HTTPError as e:
            logger.warning("Upstream health check failed", service=self.service_name, error=str(e))
            return False

    async def call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Issue a request and return the decoded body of a successful reply."""
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "Upstream request failed",
                service=self.service_name,
                method=method,
                path=path,
                error=str(e),
            )
            raise UpstreamError(f"{self.service_name} request failed: {e}") from e

        try:
            body: dict[str, Any] = resp.json() if resp.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = body.get("code") or (ResultCode.OK if resp.is_success else None)
        msg = (body.get("error") or {}).get("msg", "")

        if resp.status_code == 404 or code == ResultCode.NOT_FOUND:
            raise NotFoundError(msg or f"{self.service_name}: {path} not found")

        if not resp.is_success or code != ResultCode.OK:
            logger.error(
                "Upstream returned an error",
                service=self.service_name,
                method=method,
                path=path,
                status_code=resp.status_code,
                code=code,
                msg=msg,
            )
            raise UpstreamError(
                msg or f"{self.service_name} returned {resp.status_code} for {method} {path}"
            )

        return body

    def parse(self, model: type[M], data: Any) -> M:
        """Validate an upstream payload, reporting malformed data as UpstreamError."""
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.error("Malformed upstream payload", service=self.service_name, model=model.__name__)
            raise UpstreamError(f"{self.service_name} returned a malformed {model.__name__}") from e
