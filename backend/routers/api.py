from fastapi import APIRouter, HTTPException, status
from typing import List, Optional
import psutil
import logging

from ..services.analysis_service import analysis_service
from ..services.broadcast import broadcast_status
from ..services.data_service import get_stats, fetch_recent_logs, format_timestamp
from core.models import (
    ProtectionToggle, ProtectionStatus, GenericResponse,
    SystemHealthResponse, CacheStatsResponse, LogEntry
)
from core.state import state

logger = logging.getLogger("domainguard.api")
router = APIRouter(tags=["System API"])


@router.get("/status", response_model=ProtectionStatus)
async def protection_status():
    return {"active": state.protection_active}

@router.post("/toggle-protection", response_model=ProtectionStatus)
async def toggle_protection(data: ProtectionToggle):
    state.protection_active = data.active
    logger.info(f"Protection {'started' if data.active else 'paused'}")
    await broadcast_status(state.protection_active)
    return {"active": state.protection_active}

@router.get("/system-health", response_model=SystemHealthResponse)
async def api_health():
    return {
        "status": "Operational",
        "cpu_usage": psutil.cpu_percent(),
        "ram_usage": psutil.virtual_memory().percent,
        "uptime_hours": round(state.uptime / 3600, 2)
    }

@router.get("/stats")
async def api_stats():
    return get_stats()

@router.get("/logs", response_model=List[LogEntry])
async def api_logs(limit: int = 100, action: Optional[str] = None):
    if limit < 1 or limit > 1000:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="limit must be between 1 and 1000")
    rows = fetch_recent_logs(limit=limit, action=action)
    return [{
        "time": format_timestamp(r.get("timestamp")),
        "domain": r["domain"],
        "risk_score": r.get("risk_score") or 0,
        "threat_level": r.get("threat_level") or "low",
        "action": r.get("action") or "ALLOW",
        "category": r.get("category") or "general",
        "source": r.get("source") or "unknown"
    } for r in rows]

@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats():
    return analysis_service.cache.stats()

@router.post("/cache/clear", response_model=GenericResponse)
async def cache_clear():
    count = analysis_service.cache.clear()
    return {"status": "success", "message": f"Cleared {count} cached verdicts"}

@router.post("/rules/reload", response_model=GenericResponse)
async def rules_reload():
    try:
        tables = analysis_service.reload_rules()
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.error(f"Rule reload failed: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Rule reload failed: {e}")
    return {"status": "success", "message": f"Rule tables v{tables.version} loaded"}
