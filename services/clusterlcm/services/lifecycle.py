"""Cluster and app-group lifecycle orchestration.

Each handler validates its request, cross-checks identifiers against the
contract and info services, submits workflow templates and records the
in-progress status.

Single-entity operations (create/delete cluster) fail fast: the first error
becomes the response. Batch operations (install/uninstall app groups) skip
entries that fail and report the ids that were queued, with OK.

Status updates after a successful submission are best-effort. Nothing is
rolled back: a cluster registered before a failed submission stays
registered, and that inconsistency shows up as a status that never leaves
UNSPECIFIED.
"""

from dataclasses import asdict

from clusterlcm.clients.protocol import Upstreams
from clusterlcm.config import AuxiliaryPolicy, RegionTable, Settings
from clusterlcm.errors import (
    LcmError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from clusterlcm.logging_config import get_logger
from clusterlcm.models import (
    DELETABLE_CLUSTER_STATUSES,
    AppGroup,
    AppGroupSpec,
    AppGroupStatus,
    AppGroupType,
    ClusterStatus,
    CreateClusterRequest,
    Error,
    IDResponse,
    IDsResponse,
    InstallAppGroupsRequest,
    ResultCode,
    ScaleClusterRequest,
    SimpleResponse,
    UninstallAppGroupsRequest,
)
from clusterlcm.services import dedup, status_updater, validators
from clusterlcm.services.config_deriver import derive_cluster_config
from clusterlcm.services.workflow_params import (
    LOGGING_COMPONENTS,
    REMOVAL_COMPONENTS,
    CreateClusterParams,
    InstallAppGroupParams,
    LmaInstallParams,
    RemoveAppGroupParams,
    RemoveClusterParams,
    WorkflowParams,
)

logger = get_logger(__name__)


class AuxiliaryWorkflowError(UpstreamError):
    """An auxiliary LMA workflow could not be submitted."""


class LifecycleService:
    """Request handlers for the lifecycle API.

    Built once at startup with the settings, the validated region table and
    the upstream handles.
    """

    def __init__(self, cfg: Settings, regions: RegionTable, upstreams: Upstreams) -> None:
        self.cfg = cfg
        self.regions = regions
        self.upstreams = upstreams

    @property
    def namespace(self) -> str:
        return self.cfg.argo.namespace

    async def _submit(self, template: str, params: WorkflowParams) -> str:
        try:
            return await self.upstreams.workflow.submit_from_template(
                template, self.namespace, params.to_parameters()
            )
        except LcmError as e:
            logger.error("Failed to submit workflow", template=template, error=e.message)
            raise UpstreamError(f"Failed to call workflow engine: {e.message}") from e

    # --- CreateCluster ---

    async def create_cluster(self, req: CreateClusterRequest) -> IDResponse:
        logger.info("Request CreateCluster", contract_id=req.contract_id, name=req.name)
        try:
            cluster_id = await self._create_cluster(req)
        except LcmError as e:
            logger.warning("CreateCluster rejected", code=e.code.value, error=e.message)
            return IDResponse.failure(e.code, e.message)
        return IDResponse(code=ResultCode.OK, id=cluster_id)

    async def _resolve_tenant_scope(self, contract_id: str, csp_id: str) -> tuple[str, str]:
        """Return (contract id, CSP id), filling both from the default contract if needed."""
        up = self.upstreams

        if not contract_id:
            try:
                contract = await up.contract.get_default_contract()
            except LcmError as e:
                raise NotFoundError(f"Failed to get default contract: {e.message}") from e
            contract_id = contract.contract_id

            try:
                csp_ids = await up.info.get_csp_ids_by_contract(contract_id)
            except LcmError as e:
                raise NotFoundError(
                    f"Failed to get CSP ids for contract {contract_id}: {e.message}"
                ) from e
            if not csp_ids:
                raise NotFoundError(f"No CSP registered for contract {contract_id}")
            return contract_id, csp_ids[0]

        try:
            await up.contract.get_contract(contract_id)
        except LcmError as e:
            raise NotFoundError(f"Invalid contract Id {contract_id}: {e.message}") from e

        try:
            csp_info = await up.info.get_csp_info(csp_id)
        except LcmError as e:
            raise NotFoundError(f"Invalid CSP Id {csp_id}: {e.message}") from e
        if csp_info.contract_id != contract_id:
            raise NotFoundError(
                f"ContractId and CSP Id do not match. expected contractId: {csp_info.contract_id}"
            )
        return contract_id, csp_id

    async def _create_cluster(self, req: CreateClusterRequest) -> str:
        cfg = self.cfg
        up = self.upstreams

        validators.validate_create_cluster_request(
            req, require_contract_and_csp=cfg.validation.require_contract_and_csp
        )
        contract_id, csp_id = await self._resolve_tenant_scope(req.contract_id, req.csp_id)

        if cfg.dedup.enabled:
            await dedup.ensure_no_running_workflow(
                up.workflow,
                self.namespace,
                cfg.dedup.correlation_key,
                contract_id,
                conflict_code=ResultCode(cfg.dedup.conflict_code.value),
            )

        conf = derive_cluster_config(req.conf, self.regions, cfg.cluster_defaults)

        try:
            cluster_id = await up.info.add_cluster(contract_id, csp_id, req.name, conf)
        except LcmError as e:
            raise UpstreamError(f"Failed to add cluster info: {e.message}") from e
        logger.info("Cluster registered", cluster_id=cluster_id, contract_id=contract_id)

        params = CreateClusterParams.build(
            contract_id=contract_id,
            cluster_id=cluster_id,
            template_name=cfg.workflows.cluster_template_name,
            git=cfg.git,
        )
        workflow_id = await self._submit(cfg.workflows.create_cluster, params)

        await status_updater.update_cluster_status(
            up.info, cluster_id, ClusterStatus.INSTALLING, workflow_id
        )
        logger.info("Cluster creation started", cluster_id=cluster_id, workflow=workflow_id)
        return cluster_id

    # --- ScaleCluster ---

    async def scale_cluster(self, req: ScaleClusterRequest) -> SimpleResponse:
        logger.warning("ScaleCluster is not implemented", cluster_id=req.cluster_id)
        return SimpleResponse(code=ResultCode.UNIMPLEMENTED)

    # --- DeleteCluster ---

    async def delete_cluster(self, cluster_id: str) -> SimpleResponse:
        logger.info("Request DeleteCluster", cluster_id=cluster_id)
        try:
            await self._delete_cluster(cluster_id)
        except LcmError as e:
            logger.warning(
                "DeleteCluster rejected", cluster_id=cluster_id, code=e.code.value, error=e.message
            )
            return SimpleResponse.failure(e.code, e.message)
        return SimpleResponse(code=ResultCode.OK)

    async def _delete_cluster(self, cluster_id: str) -> None:
        cfg = self.cfg
        up = self.upstreams

        validators.validate_cluster_id(cluster_id)

        try:
            cluster = await up.info.get_cluster(cluster_id)
        except LcmError as e:
            raise NotFoundError(f"Could not find cluster with ID {cluster_id}") from e

        if cluster.status == ClusterStatus.DELETING:
            raise ValidationError(f"The cluster is already being deleted. cluster id: {cluster_id}")
        if cluster.status == ClusterStatus.DELETED:
            raise ValidationError(f"The cluster is already deleted. cluster id: {cluster_id}")
        if cluster.status not in DELETABLE_CLUSTER_STATUSES:
            raise ValidationError(
                f"The cluster can not be deleted. cluster status: {cluster.status.value}"
            )

        try:
            app_groups = await up.info.get_app_groups_by_cluster(cluster_id)
        except NotFoundError:
            app_groups = []
        except LcmError as e:
            raise UpstreamError(
                f"Failed to get app groups of cluster {cluster_id}: {e.message}"
            ) from e
        for app_group in app_groups:
            if app_group.status != AppGroupStatus.DELETED:
                raise ValidationError(f"Undeleted services remain. {app_group.app_group_id}")

        params = RemoveClusterParams(
            app_group=cfg.workflows.remove_cluster_app_group,
            tks_info_host=cfg.info.workflow_host,
            cluster_id=cluster_id,
        )
        workflow_id = await self._submit(cfg.workflows.remove_cluster, params)

        await status_updater.update_cluster_status(
            up.info, cluster_id, ClusterStatus.DELETING, workflow_id
        )
        logger.info("Cluster deletion started", cluster_id=cluster_id, workflow=workflow_id)

    # --- InstallAppGroups ---

    def _install_template(self, app_group_type: AppGroupType) -> str | None:
        templates = self.cfg.workflows
        if app_group_type in LOGGING_COMPONENTS:
            return templates.lma
        if app_group_type == AppGroupType.SERVICE_MESH:
            return templates.service_mesh
        return None

    def _install_params(self, spec: AppGroupSpec, app_group_id: str) -> InstallAppGroupParams:
        common = InstallAppGroupParams.build(
            cluster_id=spec.cluster_id,
            app_group_id=app_group_id,
            info_host=self.cfg.info.workflow_host,
            git=self.cfg.git,
        )
        if spec.type in LOGGING_COMPONENTS:
            return LmaInstallParams(
                **asdict(common), logging_component=LOGGING_COMPONENTS[spec.type]
            )
        return common

    async def _register_app_group(self, spec: AppGroupSpec) -> str:
        existing = await dedup.find_registered_app_group(self.upstreams.info, spec)
        if existing is not None:
            logger.info(
                "Reusing registered app group",
                app_group_id=existing.app_group_id,
                cluster_id=spec.cluster_id,
            )
            return existing.app_group_id
        return await self.upstreams.info.create_app_group(spec.cluster_id, spec)

    async def _submit_auxiliary(self, spec: AppGroupSpec, app_group_id: str) -> None:
        """Submit the auxiliary LMA templates in order, stopping at the first failure."""
        params = InstallAppGroupParams.build(
            cluster_id=spec.cluster_id,
            app_group_id=app_group_id,
            info_host=self.cfg.info.workflow_host,
            git=self.cfg.git,
        )
        for template in self.cfg.workflows.lma_auxiliary_templates:
            try:
                await self._submit(template, params)
            except UpstreamError as e:
                raise AuxiliaryWorkflowError(
                    f"Failed to submit auxiliary workflow {template} "
                    f"for app group {app_group_id}: {e.message}"
                ) from e

    async def _install_app_group(self, spec: AppGroupSpec) -> str:
        """Install one app group and return its id. Raises LcmError on any failure."""
        up = self.upstreams

        template = self._install_template(spec.type)
        if template is None:
            raise ValidationError(f"invalid app group type {spec.type.value}")

        await up.info.get_cluster(spec.cluster_id)

        app_group_id = await self._register_app_group(spec)
        workflow_id = await self._submit(template, self._install_params(spec, app_group_id))

        await status_updater.update_app_group_status(
            up.info, app_group_id, AppGroupStatus.INSTALLING, workflow_id
        )

        if spec.type in LOGGING_COMPONENTS and self.cfg.workflows.lma_auxiliary_templates:
            await self._submit_auxiliary(spec, app_group_id)
        return app_group_id

    async def install_app_groups(self, req: InstallAppGroupsRequest) -> IDsResponse:
        logger.info("Request InstallAppGroups", count=len(req.app_groups))
        try:
            validators.validate_install_app_groups_request(req)
        except ValidationError as e:
            return IDsResponse.failure(e.code, e.message)

        abort_on_auxiliary = self.cfg.workflows.lma_auxiliary_policy == AuxiliaryPolicy.ABORT
        app_group_ids: list[str] = []
        for spec in req.app_groups:
            try:
                app_group_ids.append(await self._install_app_group(spec))
            except AuxiliaryWorkflowError as e:
                if abort_on_auxiliary:
                    logger.error("InstallAppGroups aborted", error=e.message, queued=app_group_ids)
                    return IDsResponse(
                        code=ResultCode.INTERNAL, error=Error(msg=e.message), ids=app_group_ids
                    )
                logger.error("Skipping app group", cluster_id=spec.cluster_id, error=e.message)
            except LcmError as e:
                logger.error(
                    "Skipping app group",
                    cluster_id=spec.cluster_id,
                    name=spec.app_group_name,
                    type=spec.type.value,
                    error=e.message,
                )

        logger.info("Installation workflows submitted", app_group_ids=app_group_ids)
        return IDsResponse(code=ResultCode.OK, ids=app_group_ids)

    # --- UninstallAppGroups ---

    def _removal_template(self, app_group_type: AppGroupType) -> str | None:
        templates = self.cfg.workflows
        if app_group_type in LOGGING_COMPONENTS:
            return templates.remove_lma
        if app_group_type == AppGroupType.SERVICE_MESH:
            return templates.remove_service_mesh
        return None

    async def _uninstall_app_group(self, app_group_id: str) -> None:
        up = self.upstreams

        app_group: AppGroup = await up.info.get_app_group(app_group_id)
        template = self._removal_template(app_group.type)
        if template is None:
            raise ValidationError(f"invalid app group type {app_group.type.value}")

        params = RemoveAppGroupParams(
            app_group=REMOVAL_COMPONENTS[app_group.type],
            github_account=self.cfg.git.account,
            tks_info_host=self.cfg.info.workflow_host,
            cluster_id=app_group.cluster_id,
            app_group_id=app_group_id,
        )
        workflow_id = await self._submit(template, params)

        await status_updater.update_app_group_status(
            up.info, app_group_id, AppGroupStatus.DELETING, workflow_id
        )

    async def uninstall_app_groups(self, req: UninstallAppGroupsRequest) -> IDsResponse:
        logger.info("Request UninstallAppGroups", count=len(req.app_group_ids))
        try:
            validators.validate_uninstall_app_groups_request(req)
        except ValidationError as e:
            return IDsResponse.failure(e.code, e.message)

        app_group_ids: list[str] = []
        for app_group_id in req.app_group_ids:
            try:
                await self._uninstall_app_group(app_group_id)
            except LcmError as e:
                logger.error("Skipping app group", app_group_id=app_group_id, error=e.message)
                continue
            app_group_ids.append(app_group_id)

        logger.info("Removal workflows submitted", app_group_ids=app_group_ids)
        return IDsResponse(code=ResultCode.OK, ids=app_group_ids)
