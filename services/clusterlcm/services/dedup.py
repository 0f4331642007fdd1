"""Duplicate-work detection.

Two checks: a Running workflow already correlated to the same tenant scope,
and an app group already registered with the same identity tuple.
"""

from clusterlcm.clients.protocol import InfoService, WorkflowEngine
from clusterlcm.errors import ConflictError, LcmError
from clusterlcm.logging_config import get_logger
from clusterlcm.models import AppGroup, AppGroupSpec, ResultCode

logger = get_logger(__name__)


async def ensure_no_running_workflow(
    workflow: WorkflowEngine,
    namespace: str,
    key: str,
    value: str,
    conflict_code: ResultCode = ResultCode.ALREADY_EXISTS,
) -> None:
    """Raise ConflictError if a Running workflow declares ``key=value``."""
    if await workflow.is_running_workflow_by_correlation_id(namespace, key, value):
        logger.warning("Running workflow already exists", key=key, value=value)
        raise ConflictError(
            f"a workflow for {key} {value} is already running", code=conflict_code
        )


def find_matching_app_group(
    existing: list[AppGroup], requested: AppGroupSpec
) -> AppGroup | None:
    """Return the registered app group with the same identity, if any."""
    wanted = (
        requested.cluster_id,
        requested.app_group_name,
        requested.type,
        requested.external_label,
    )
    for app_group in existing:
        if app_group.identity() == wanted:
            return app_group
    return None


async def find_registered_app_group(
    info: InfoService, requested: AppGroupSpec
) -> AppGroup | None:
    """Look up the cluster's app groups and match on identity.

    A failed lookup is treated as "no match", so the caller registers a new record.
    """
    try:
        existing = await info.get_app_groups_by_cluster(requested.cluster_id)
    except LcmError as e:
        logger.warning(
            "Could not list app groups for dedup check",
            cluster_id=requested.cluster_id,
            error=str(e),
        )
        return None
    return find_matching_app_group(existing, requested)
