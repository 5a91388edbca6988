"""Admin dashboard endpoints (read-only)."""

from fastapi import APIRouter, Depends, Query

from feastflow.core.security import TokenIdentity
from feastflow.dependencies import (
    OWNER_OR_ADMIN,
    get_dashboard_service,
    require_admin,
    require_roles,
)
from feastflow.schemas import DataEnvelope, ErrorResponse
from feastflow.services.dashboard import DashboardService

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.get("/metrics", response_model=DataEnvelope, summary="Platform statistics")
async def metrics(
    identity: TokenIdentity = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service),
) -> DataEnvelope:
    return DataEnvelope(success=True, data=await service.get_metrics())


@router.get("/health", response_model=DataEnvelope, summary="Service health overview")
async def system_health(
    identity: TokenIdentity = Depends(require_roles(*OWNER_OR_ADMIN)),
    service: DashboardService = Depends(get_dashboard_service),
) -> DataEnvelope:
    return DataEnvelope(success=True, data=await service.get_system_health())


@router.get("/activity", response_model=DataEnvelope, summary="Recent audit log entries")
async def recent_activity(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    identity: TokenIdentity = Depends(require_admin),
    service: DashboardService = Depends(get_dashboard_service),
) -> DataEnvelope:
    return DataEnvelope(
        success=True,
        data=await service.get_recent_activity(limit=limit, offset=offset),
    )
