"""Cluster lifecycle endpoints.

Endpoints:
    POST   /api/v1/clusters                         (create cluster)
    POST   /api/v1/clusters/{cluster_id}/scale      (scale cluster, not implemented)
    DELETE /api/v1/clusters/{cluster_id}            (delete cluster)
"""

from fastapi import APIRouter, Body, Depends, Path, Response

from clusterlcm.api.dependencies import apply_result_status, get_lifecycle_service
from clusterlcm.models import (
    CreateClusterRequest,
    IDResponse,
    ScaleClusterRequest,
    SimpleResponse,
)
from clusterlcm.services.lifecycle import LifecycleService

router = APIRouter(prefix="/clusters", tags=["clusters"])


@router.post("", response_model=IDResponse)
async def create_cluster(
    response: Response,
    body: CreateClusterRequest = Body(...),
    service: LifecycleService = Depends(get_lifecycle_service),
) -> IDResponse:
    result = await service.create_cluster(body)
    apply_result_status(response, result)
    return result


@router.post("/{cluster_id}/scale", response_model=SimpleResponse)
async def scale_cluster(
    response: Response,
    cluster_id: str = Path(...),
    body: ScaleClusterRequest | None = Body(default=None),
    service: LifecycleService = Depends(get_lifecycle_service),
) -> SimpleResponse:
    req = body or ScaleClusterRequest()
    result = await service.scale_cluster(req.model_copy(update={"cluster_id": cluster_id}))
    apply_result_status(response, result)
    return result


@router.delete("/{cluster_id}", response_model=SimpleResponse)
async def delete_cluster(
    response: Response,
    cluster_id: str = Path(...),
    service: LifecycleService = Depends(get_lifecycle_service),
) -> SimpleResponse:
    result = await service.delete_cluster(cluster_id)
    apply_result_status(response, result)
    return result
