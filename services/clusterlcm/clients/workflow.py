"""Argo Workflows server client.

Submits workflows from WorkflowTemplates and lists workflows/templates over
the server's JSON REST API. Every non-200 response or transport failure is
raised as UpstreamError; nothing is retried here.
"""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from clusterlcm.errors import UpstreamError
from clusterlcm.logging_config import get_logger

logger = get_logger(__name__)

RUNNING_PHASE = "Running"

M = TypeVar("M", bound=BaseModel)


class _ArgoModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WorkflowParameter(_ArgoModel):
    name: str
    value: str = ""


class WorkflowArguments(_ArgoModel):
    parameters: list[WorkflowParameter] = Field(default_factory=list)

    @field_validator("parameters", mode="before")
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        return value or []


class WorkflowMetadata(_ArgoModel):
    name: str = ""
    namespace: str = ""


class WorkflowSpec(_ArgoModel):
    arguments: WorkflowArguments = Field(default_factory=WorkflowArguments)


class WorkflowStatus(_ArgoModel):
    phase: str = ""
    message: str = ""


class Workflow(_ArgoModel):
    metadata: WorkflowMetadata = Field(default_factory=WorkflowMetadata)
    spec: WorkflowSpec = Field(default_factory=WorkflowSpec)
    status: WorkflowStatus = Field(default_factory=WorkflowStatus)

    def parameter(self, name: str) -> str | None:
        for param in self.spec.arguments.parameters:
            if param.name == name:
                return param.value
        return None


class WorkflowTemplate(_ArgoModel):
    metadata: WorkflowMetadata = Field(default_factory=WorkflowMetadata)
    spec: WorkflowSpec = Field(default_factory=WorkflowSpec)


class _ItemList(_ArgoModel):
    @field_validator("items", mode="before", check_fields=False)
    @classmethod
    def _null_is_empty(cls, value: object) -> object:
        # The server returns "items": null for an empty namespace
        return value or []


class WorkflowList(_ItemList):
    items: list[Workflow] = Field(default_factory=list)


class WorkflowTemplateList(_ItemList):
    items: list[WorkflowTemplate] = Field(default_factory=list)


class SubmitOptions(_ArgoModel):
    """Optional fields of a submit request."""

    dry_run: bool = Field(default=False, alias="dryRun")
    entry_point: str = Field(default="", alias="entryPoint")
    generate_name: str = Field(default="", alias="generateName")
    labels: str = Field(default="")
    name: str = Field(default="")


class WorkflowClient:
    """Async client for the Argo Workflows server."""

    def __init__(
        self,
        host: str,
        port: int,
        ssl: bool = False,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if ssl and not token:
            raise ValueError("argo ssl enabled but token is empty")
        scheme = "https" if ssl else "http"
        self.base_url = f"{scheme}://{host}:{port}"
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            limits=httpx.Limits(max_keepalive_connections=10),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Workflow engine request failed", method=method, path=path, error=str(e))
            raise UpstreamError(f"workflow engine request failed: {e}") from e

        if resp.status_code != 200:
            logger.error(
                "Workflow engine returned an error",
                method=method,
                path=path,
                status_code=resp.status_code,
            )
            raise UpstreamError(
                f"workflow engine returned {resp.status_code} for {method} {path}"
            )

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(f"workflow engine returned invalid JSON for {path}") from e

    def _parse(self, model: type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.error("Malformed workflow engine reply", model=model.__name__)
            raise UpstreamError(f"workflow engine returned a malformed {model.__name__}") from e

    async def list_workflow_templates(self, namespace: str) -> list[WorkflowTemplate]:
        data = await self._request("GET", f"/api/v1/workflow-templates/{namespace}")
        return self._parse(WorkflowTemplateList, data).items

    async def list_workflows(self, namespace: str) -> list[Workflow]:
        data = await self._request("GET", f"/api/v1/workflows/{namespace}")
        return self._parse(WorkflowList, data).items

    async def submit_from_template(
        self,
        template_name: str,
        namespace: str,
        parameters: list[str],
        options: SubmitOptions | None = None,
    ) -> str:
        """Submit a workflow from a WorkflowTemplate.

        ``parameters`` are ``name=value`` strings. Returns the name of the
        created workflow, which callers keep as the correlation token.
        """
        submit_options = (options or SubmitOptions()).model_dump(
            by_alias=True, exclude_defaults=True
        )
        # Argo reads parameters from submitOptions, not the top level of the body
        submit_options["parameters"] = list(parameters)
        body = {
            "namespace": namespace,
            "resourceKind": "WorkflowTemplate",
            "resourceName": template_name,
            "submitOptions": submit_options,
        }
        logger.debug(
            "Submitting workflow",
            template=template_name,
            namespace=namespace,
            parameters=parameters,
        )

        data = await self._request("POST", f"/api/v1/workflows/{namespace}/submit", json=body)
        workflow = self._parse(Workflow, data)
        if not workflow.metadata.name:
            raise UpstreamError(f"workflow engine returned no name for template {template_name}")

        logger.info(
            "Workflow submitted",
            template=template_name,
            namespace=namespace,
            workflow=workflow.metadata.name,
        )
        return workflow.metadata.name

    async def is_running_workflow_by_correlation_id(
        self, namespace: str, key: str, value: str
    ) -> bool:
        """Return True if a Running workflow declares parameter ``key=value``."""
        for workflow in await self.list_workflows(namespace):
            if workflow.parameter(key) != value:
                continue
            logger.debug(
                "Found workflow with matching correlation parameter",
                workflow=workflow.metadata.name,
                phase=workflow.status.phase,
                key=key,
            )
            if workflow.status.phase == RUNNING_PHASE:
                return True
        return False
