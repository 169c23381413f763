from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..deps import get_api_logs
from ...models.api_log import ApiLogDetail, ApiLogSummary
from ...services.api_log_service import ApiResponseLogService

router = APIRouter(prefix="/api-logs", tags=["api-logs"])


@router.get("/recent", response_model=list[ApiLogSummary], response_model_by_alias=True)
async def list_recent(
    limit: int = Query(20, ge=1, le=500),
    api_logs: ApiResponseLogService = Depends(get_api_logs),
):
    """Most recent provider calls, newest first"""
    return [ApiLogSummary.from_log(log) for log in api_logs.list_recent(limit)]


@router.get("/provider/{provider}", response_model=list[ApiLogSummary], response_model_by_alias=True)
async def list_by_provider(
    provider: str,
    limit: int = Query(20, ge=1, le=500),
    api_logs: ApiResponseLogService = Depends(get_api_logs),
):
    return [ApiLogSummary.from_log(log) for log in api_logs.list_by_provider(provider, limit)]


@router.get("/{log_id}", response_model=ApiLogDetail, response_model_by_alias=True)
async def get_log(log_id: str, api_logs: ApiResponseLogService = Depends(get_api_logs)):
    """
    Full record with raw payloads, the stored image (base64) and the
    invoice re-derived from the raw response by the current extractors.
    """
    detail = api_logs.get_detail(log_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Log not found")
    return detail


@router.get("/{log_id}/image")
async def get_log_image(log_id: str, api_logs: ApiResponseLogService = Depends(get_api_logs)):
    image = api_logs.get_image(log_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    data, mime_type = image
    return Response(content=data, media_type=mime_type)


@router.delete("/{log_id}", status_code=204)
async def delete_log(log_id: str, api_logs: ApiResponseLogService = Depends(get_api_logs)):
    if not api_logs.delete(log_id):
        raise HTTPException(status_code=404, detail="Log not found")
    return Response(status_code=204)


@router.delete("")
async def delete_all_logs(api_logs: ApiResponseLogService = Depends(get_api_logs)):
    return {"deletedCount": api_logs.delete_all()}
