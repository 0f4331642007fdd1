"""
Configuration management for the clusterlcm server.

Non-secret configuration loaded from YAML file, secrets from environment variables.
The region table (region -> maximum availability zones) is a separate YAML
file, loaded and validated once at startup.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = "/etc/clusterlcm/config.yaml"
REGIONS_PATH = "/etc/clusterlcm/regions.yaml"


def yaml_config_settings_source() -> dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path(CONFIG_PATH)
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


# --- Upstream service configuration ---


class ContractServiceConfig(BaseModel):
    """Contract service (tenant scope records)."""

    url: str = Field(default="http://localhost:9110", description="Base URL of the contract service")


class InfoServiceConfig(BaseModel):
    """Record-of-truth service for clusters, app groups and CSP accounts."""

    url: str = Field(default="http://localhost:9111", description="Base URL of the info service")
    workflow_host: str = Field(
        default="tks-info.tks.svc",
        description="Info service host handed to workflows so they can report status back",
    )


class ArgoConfig(BaseModel):
    """Workflow engine (Argo Workflows server) connection."""

    host: str = Field(default="localhost")
    port: int = Field(default=2746)
    ssl: bool = Field(default=False)
    token: str = Field(default="", description="Bearer token, required when ssl is enabled")
    namespace: str = Field(default="argo", description="Namespace workflows are submitted to")


class GitConfig(BaseModel):
    """Git parameters used to build manifest repository URLs."""

    account: str = Field(default="tks-management")
    revision: str = Field(default="main")
    token: str = Field(default="", description="Git token (TOKEN env var in deployment)")
    base_url: str = Field(default="https://github.com")


# --- Orchestration policy ---


class ConflictPolicy(StrEnum):
    """Result code reported when a duplicate in-flight workflow is found."""

    ALREADY_EXISTS = "ALREADY_EXISTS"
    INTERNAL = "INTERNAL"


class DedupConfig(BaseModel):
    """In-flight workflow check for CreateCluster."""

    enabled: bool = Field(default=True)
    conflict_code: ConflictPolicy = Field(default=ConflictPolicy.ALREADY_EXISTS)
    correlation_key: str = Field(default="contract_id")


class AuxiliaryPolicy(StrEnum):
    """What a failed auxiliary LMA workflow does to an InstallAppGroups call."""

    ABORT = "abort"
    SKIP = "skip"


class WorkflowTemplatesConfig(BaseModel):
    """Workflow template names per lifecycle operation."""

    create_cluster: str = Field(default="create-tks-usercluster")
    cluster_template_name: str = Field(default="template-std")
    remove_cluster: str = Field(default="tks-remove-usercluster")
    remove_cluster_app_group: str = Field(default="tks-cluster-aws")
    lma: str = Field(default="tks-lma-federation")
    service_mesh: str = Field(default="tks-service-mesh")
    remove_lma: str = Field(default="tks-remove-lma-federation")
    remove_service_mesh: str = Field(default="tks-remove-servicemesh")
    lma_auxiliary_templates: list[str] = Field(
        default_factory=list,
        description="Templates submitted in order after each LMA install "
        "(e.g. setup-sealed-secrets, install-ingress-nginx). Empty disables.",
    )
    lma_auxiliary_policy: AuxiliaryPolicy = Field(default=AuxiliaryPolicy.ABORT)


class ValidationConfig(BaseModel):
    require_contract_and_csp: bool = Field(
        default=False,
        description="Require contract and CSP ids on every CreateCluster request",
    )


class ClusterDefaults(BaseModel):
    """Values used when the raw cluster configuration leaves a field unset."""

    region: str = Field(default="ap-northeast-2")
    num_of_az: int = Field(default=3, ge=1)
    ssh_key_name: str = Field(default="tks-seoul")
    machine_type: str = Field(default="t3.large")
    min_size_per_az: int = Field(default=1, ge=0)
    max_size_per_az: int = Field(default=5, ge=1)
    size_multiplier: int = Field(default=5, ge=1)
    max_size_ceiling: int = Field(default=99, ge=1)


# --- Main Settings ---


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERLCM_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="clusterlcm")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True, description="JSON logging in production")
    port: int = Field(default=9112)
    api_prefix: str = Field(default="/api/v1")

    # Outbound HTTP
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)

    # Upstreams
    contract: ContractServiceConfig = Field(default_factory=ContractServiceConfig)
    info: InfoServiceConfig = Field(default_factory=InfoServiceConfig)
    argo: ArgoConfig = Field(default_factory=ArgoConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    # Policy
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    workflows: WorkflowTemplatesConfig = Field(default_factory=WorkflowTemplatesConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    cluster_defaults: ClusterDefaults = Field(default_factory=ClusterDefaults)

    regions_file: str = Field(default=REGIONS_PATH)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings sources: env vars override YAML config."""
        return (
            init_settings,
            env_settings,
            yaml_config_settings_source,
            dotenv_settings,
            file_secret_settings,
        )


# --- Region table ---

# Usable availability zones per region, used when no regions file is mounted.
DEFAULT_REGION_MAX_AZ: dict[str, int] = {
    "ap-northeast-1": 3,
    "ap-northeast-2": 4,
    "ap-northeast-3": 3,
    "ap-south-1": 3,
    "ap-southeast-1": 3,
    "ap-southeast-2": 3,
    "ca-central-1": 3,
    "eu-central-1": 3,
    "eu-north-1": 3,
    "eu-west-1": 3,
    "eu-west-2": 3,
    "eu-west-3": 3,
    "sa-east-1": 3,
    "us-east-1": 6,
    "us-east-2": 3,
    "us-west-1": 2,
    "us-west-2": 4,
}


class RegionTable(BaseModel):
    """Maximum availability zone count per region."""

    max_az: dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_REGION_MAX_AZ))

    @field_validator("max_az")
    @classmethod
    def _positive_counts(cls, value: dict[str, int]) -> dict[str, int]:
        if not value:
            raise ValueError("region table is empty")
        bad = sorted(region for region, count in value.items() if count < 1)
        if bad:
            raise ValueError(f"regions with a non-positive AZ count: {', '.join(bad)}")
        return value

    def max_az_for(self, region: str) -> int:
        """Maximum AZ count for a region; 0 when the region is not listed."""
        return self.max_az.get(region, 0)


def load_region_table(path: str = REGIONS_PATH) -> RegionTable:
    """Load the region table from YAML.

    The file is a flat mapping of region name to maximum AZ count. When the
    file is absent the built-in table is used.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        return RegionTable(max_az={str(k): int(v) for k, v in data.items()})
    return RegionTable()


def validate_startup_config(cfg: Settings, regions: RegionTable) -> None:
    """Reject configurations the service cannot run with.

    Raises ValueError describing the first problem found.
    """
    if cfg.cluster_defaults.region not in regions.max_az:
        raise ValueError(
            f"default region {cfg.cluster_defaults.region} is missing from the region table"
        )
    if cfg.cluster_defaults.num_of_az > regions.max_az_for(cfg.cluster_defaults.region):
        raise ValueError(
            f"default AZ count {cfg.cluster_defaults.num_of_az} exceeds the maximum "
            f"for region {cfg.cluster_defaults.region}"
        )
    if cfg.argo.ssl and not cfg.argo.token:
        raise ValueError("argo ssl is enabled but no token is configured")
    if not cfg.git.token and not cfg.debug:
        raise ValueError("git token is required (set CLUSTERLCM_GIT__TOKEN)")


# Global settings instance
settings = Settings()
