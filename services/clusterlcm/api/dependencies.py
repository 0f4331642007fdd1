"""FastAPI dependencies and response helpers shared by the routers."""

from fastapi import Request, Response

from clusterlcm.models import ResultCode, SimpleResponse
from clusterlcm.services.lifecycle import LifecycleService

HTTP_STATUS_BY_CODE: dict[ResultCode, int] = {
    ResultCode.OK: 200,
    ResultCode.INVALID_ARGUMENT: 400,
    ResultCode.NOT_FOUND: 404,
    ResultCode.ALREADY_EXISTS: 409,
    ResultCode.INTERNAL: 500,
    ResultCode.UNIMPLEMENTED: 501,
}


def get_lifecycle_service(request: Request) -> LifecycleService:
    """Return the LifecycleService built during startup."""
    service = getattr(request.app.state, "lifecycle", None)
    if service is None:
        raise RuntimeError("LifecycleService not initialized")
    return service


def apply_result_status(response: Response, result: SimpleResponse) -> None:
    """Mirror the result code onto the HTTP status of the reply."""
    response.status_code = HTTP_STATUS_BY_CODE.get(result.code, 500)
