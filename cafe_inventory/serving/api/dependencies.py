"""
API Dependencies

Service lookup and the mapping from service results to HTTP status codes.
"""

from fastapi import Request, Response

from cafe_inventory.services import InventoryService, ServiceResult, build_service

STATUS_BY_ERROR_TYPE = {
    "validation": 400,
    "precondition": 409,
    "transient": 503,
}


def get_service(request: Request) -> InventoryService:
    """Service attached to the app, built from settings on first use"""
    service = getattr(request.app.state, "service", None)
    if service is None:
        service = build_service()
        request.app.state.service = service
    return service


def status_for(result: ServiceResult) -> int:
    if result.ok:
        return 200
    return STATUS_BY_ERROR_TYPE.get(result.error_type or "", 500)


def respond(result: ServiceResult, response: Response) -> ServiceResult:
    """Set the response status from the result and pass it through"""
    response.status_code = status_for(result)
    return result
