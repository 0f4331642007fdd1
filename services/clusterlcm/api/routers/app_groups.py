"""App group lifecycle endpoints.

Endpoints:
    POST   /api/v1/app-groups/install      (install a batch of app groups)
    POST   /api/v1/app-groups/uninstall    (uninstall a batch of app groups)

Both return the ids that were queued; entries that failed are simply absent.
"""

from fastapi import APIRouter, Body, Depends, Response

from clusterlcm.api.dependencies import apply_result_status, get_lifecycle_service
from clusterlcm.models import IDsResponse, InstallAppGroupsRequest, UninstallAppGroupsRequest
from clusterlcm.services.lifecycle import LifecycleService

router = APIRouter(prefix="/app-groups", tags=["app-groups"])


@router.post("/install", response_model=IDsResponse)
async def install_app_groups(
    response: Response,
    body: InstallAppGroupsRequest = Body(...),
    service: LifecycleService = Depends(get_lifecycle_service),
) -> IDsResponse:
    result = await service.install_app_groups(body)
    apply_result_status(response, result)
    return result


@router.post("/uninstall", response_model=IDsResponse)
async def uninstall_app_groups(
    response: Response,
    body: UninstallAppGroupsRequest = Body(...),
    service: LifecycleService = Depends(get_lifecycle_service),
) -> IDsResponse:
    result = await service.uninstall_app_groups(body)
    apply_result_status(response, result)
    return result
