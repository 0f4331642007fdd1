"""Typed parameter sets for each workflow template kind.

Each parameter set is a frozen dataclass whose field names are the template's
parameter names, in the order they are submitted. ``to_parameters()`` renders
them as the ``name=value`` strings the workflow engine expects.
"""

from dataclasses import dataclass, fields

from clusterlcm.config import GitConfig
from clusterlcm.models import AppGroupType


def manifest_repo_url(git: GitConfig, cluster_id: str) -> str:
    """Repository holding the rendered manifests for a cluster."""
    return f"{git.base_url.rstrip('/')}/{git.account}/{cluster_id}-manifests"


@dataclass(frozen=True)
class WorkflowParams:
    def to_parameters(self) -> list[str]:
        return [f"{f.name}={getattr(self, f.name)}" for f in fields(self)]


@dataclass(frozen=True)
class CreateClusterParams(WorkflowParams):
    contract_id: str
    cluster_id: str
    site_name: str
    template_name: str
    git_account: str
    manifest_repo_url: str
    revision: str

    @classmethod
    def build(
        cls, contract_id: str, cluster_id: str, template_name: str, git: GitConfig
    ) -> "CreateClusterParams":
        return cls(
            contract_id=contract_id,
            cluster_id=cluster_id,
            site_name=cluster_id,
            template_name=template_name,
            git_account=git.account,
            manifest_repo_url=manifest_repo_url(git, cluster_id),
            revision=git.revision,
        )


@dataclass(frozen=True)
class RemoveClusterParams(WorkflowParams):
    app_group: str
    tks_info_host: str
    cluster_id: str


@dataclass(frozen=True)
class InstallAppGroupParams(WorkflowParams):
    site_name: str
    cluster_id: str
    github_account: str
    manifest_repo_url: str
    revision: str
    app_group_id: str
    tks_info_host: str

    @classmethod
    def build(
        cls, cluster_id: str, app_group_id: str, info_host: str, git: GitConfig
    ) -> "InstallAppGroupParams":
        return cls(
            site_name=cluster_id,
            cluster_id=cluster_id,
            github_account=git.account,
            manifest_repo_url=manifest_repo_url(git, cluster_id),
            revision=git.revision,
            app_group_id=app_group_id,
            tks_info_host=info_host,
        )


@dataclass(frozen=True)
class LmaInstallParams(InstallAppGroupParams):
    logging_component: str = "loki"


@dataclass(frozen=True)
class RemoveAppGroupParams(WorkflowParams):
    app_group: str
    github_account: str
    tks_info_host: str
    cluster_id: str
    app_group_id: str


# Logging stack per LMA flavour
LOGGING_COMPONENTS: dict[AppGroupType, str] = {
    AppGroupType.LMA: "loki",
    AppGroupType.LMA_EFK: "efk",
}

# Component name handed to removal templates
REMOVAL_COMPONENTS: dict[AppGroupType, str] = {
    AppGroupType.LMA: "lma",
    AppGroupType.LMA_EFK: "lma",
    AppGroupType.SERVICE_MESH: "service-mesh",
}
