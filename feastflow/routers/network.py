"""Network diagnostics endpoints for cluster deployments."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.database import get_db
from feastflow.dependencies import get_network_diagnostics
from feastflow.services.network import NetworkDiagnostics

router = APIRouter(prefix="/api/network", tags=["Network"])


@router.get("/diagnostics", summary="Run DNS and connectivity checks")
async def diagnostics(
    db: AsyncSession = Depends(get_db),
    network: NetworkDiagnostics = Depends(get_network_diagnostics),
) -> dict[str, Any]:
    report = await network.run(db)
    return {
        "success": True,
        "message": "Kubernetes network diagnostics completed",
        "diagnostics": report.to_dict(),
    }


@router.get("/services", summary="Service discovery information")
async def services(
    network: NetworkDiagnostics = Depends(get_network_diagnostics),
) -> dict[str, Any]:
    return {"success": True, "serviceDiscovery": network.service_discovery_info()}
