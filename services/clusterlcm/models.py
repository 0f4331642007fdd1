"""
Domain and wire models for the cluster lifecycle orchestrator.

All models serialize with camelCase aliases, matching the JSON shape used by
the contract service, the info (record-of-truth) service and this service's
own API. Python code uses the snake_case field names.
"""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for all models exchanged over HTTP."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# --- Enumerations ---


class ResultCode(StrEnum):
    """Result code carried by every response of this service."""

    OK = "OK"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INTERNAL = "INTERNAL"
    UNIMPLEMENTED = "UNIMPLEMENTED"


class ClusterStatus(StrEnum):
    UNSPECIFIED = "UNSPECIFIED"
    INSTALLING = "INSTALLING"
    RUNNING = "RUNNING"
    ERROR = "ERROR"
    DELETING = "DELETING"
    DELETED = "DELETED"


class AppGroupStatus(StrEnum):
    UNSPECIFIED = "UNSPECIFIED"
    INSTALLING = "INSTALLING"
    RUNNING = "RUNNING"
    DELETING = "DELETING"
    DELETED = "DELETED"


class AppGroupType(StrEnum):
    UNSPECIFIED = "UNSPECIFIED"
    LMA = "LMA"
    LMA_EFK = "LMA_EFK"
    SERVICE_MESH = "SERVICE_MESH"


# Statuses from which a cluster may be deleted
DELETABLE_CLUSTER_STATUSES = frozenset({ClusterStatus.RUNNING, ClusterStatus.ERROR})


# --- Cluster configuration ---


class ClusterRawConf(WireModel):
    """Sparse user-supplied configuration. Zero values mean "use the default"."""

    region: str = ""
    num_of_az: int = Field(default=0, ge=0)
    ssh_key_name: str = ""
    machine_type: str = ""
    machine_replicas: int = Field(default=0, ge=0)


class ClusterConf(WireModel):
    """Derived, bounds-checked infrastructure configuration."""

    region: str
    num_of_az: int
    ssh_key_name: str
    machine_type: str
    machine_replicas: int = 0
    min_size_per_az: int
    max_size_per_az: int


# --- Records owned by upstream services ---


class Contract(WireModel):
    contract_id: str
    name: str = ""


class CspInfo(WireModel):
    csp_id: str = Field(default="", alias="id")
    contract_id: str = ""
    name: str = ""


class Cluster(WireModel):
    id: str
    contract_id: str = ""
    csp_id: str = ""
    name: str = ""
    conf: ClusterConf | None = None
    status: ClusterStatus = ClusterStatus.UNSPECIFIED
    workflow_id: str = ""


class AppGroupSpec(WireModel):
    """App group as requested by a caller of InstallAppGroups."""

    cluster_id: str = ""
    app_group_name: str = ""
    type: AppGroupType = AppGroupType.UNSPECIFIED
    external_label: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type_is_unspecified(cls, value: object) -> object:
        # Unknown types are rejected per entry by the orchestrator, not at parse time
        if isinstance(value, str) and value not in AppGroupType.__members__:
            return AppGroupType.UNSPECIFIED
        return value


class AppGroup(AppGroupSpec):
    """App group record held by the info service."""

    app_group_id: str
    status: AppGroupStatus = AppGroupStatus.UNSPECIFIED
    workflow_id: str = ""

    def identity(self) -> tuple[str, str, AppGroupType, str]:
        """Tuple used to detect an already-registered app group."""
        return (self.cluster_id, self.app_group_name, self.type, self.external_label)


# --- Requests ---


class CreateClusterRequest(WireModel):
    contract_id: str = ""
    csp_id: str = ""
    name: str = ""
    conf: ClusterRawConf | None = None


class ScaleClusterRequest(WireModel):
    cluster_id: str = ""
    machine_replicas: int = 0


class InstallAppGroupsRequest(WireModel):
    app_groups: list[AppGroupSpec] = Field(default_factory=list)


class UninstallAppGroupsRequest(WireModel):
    app_group_ids: list[str] = Field(default_factory=list)


# --- Responses ---


class Error(WireModel):
    msg: str = ""


class SimpleResponse(WireModel):
    code: ResultCode = ResultCode.OK
    error: Error | None = None

    @classmethod
    def failure(cls, code: ResultCode, msg: str) -> Self:
        return cls(code=code, error=Error(msg=msg))


class IDResponse(SimpleResponse):
    id: str = ""


class IDsResponse(SimpleResponse):
    ids: list[str] = Field(default_factory=list)
