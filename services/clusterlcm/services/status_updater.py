"""Best-effort status propagation to the info service.

Status updates follow a successful workflow submission, which has already
happened by the time they run, so failures are logged and never raised.
"""

from clusterlcm.clients.protocol import InfoService
from clusterlcm.logging_config import get_logger
from clusterlcm.models import AppGroupStatus, ClusterStatus

logger = get_logger(__name__)


async def update_cluster_status(
    info: InfoService, cluster_id: str, status: ClusterStatus, workflow_id: str = ""
) -> bool:
    """Move a cluster to ``status``. Returns False if the update failed."""
    try:
        await info.update_cluster_status(cluster_id, status, workflow_id)
    except Exception as e:
        logger.error(
            "Failed to update cluster status",
            cluster_id=cluster_id,
            status=status.value,
            workflow_id=workflow_id,
            error=str(e),
        )
        return False
    logger.debug("Cluster status updated", cluster_id=cluster_id, status=status.value)
    return True


async def update_app_group_status(
    info: InfoService, app_group_id: str, status: AppGroupStatus, workflow_id: str = ""
) -> bool:
    """Move an app group to ``status``. Returns False if the update failed."""
    try:
        await info.update_app_group_status(app_group_id, status, workflow_id)
    except Exception as e:
        logger.error(
            "Failed to update app group status",
            app_group_id=app_group_id,
            status=status.value,
            workflow_id=workflow_id,
            error=str(e),
        )
        return False
    logger.debug("App group status updated", app_group_id=app_group_id, status=status.value)
    return True
