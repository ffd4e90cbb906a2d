from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from typing import List
import logging

from core.models import AnalyzeRequest, DnsQueryRequest, BatchAnalyzeRequest, VerdictResponse, ActionResponse
from core.state import state
from ..services.analysis_service import analysis_service

logger = logging.getLogger("domainguard.analyze")
router = APIRouter(prefix="/api", tags=["Analysis"])


@router.post("/analyze", response_model=VerdictResponse)
async def analyze_target(req: AnalyzeRequest):
    if not req.domain or not req.domain.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Domain/URL required")

    verdict = await analysis_service.analyze(
        req.domain, deep_scan=req.deep_scan, is_background=req.is_background
    )
    analysis_service.publish(verdict, source=req.source or "manual")
    return verdict.to_dict()


@router.post("/analyze/batch", response_model=List[VerdictResponse])
async def analyze_batch(req: BatchAnalyzeRequest):
    """Static verdicts for a burst of gateway lookups."""
    logger.info(f"[BATCH] Analyzing {len(req.domains)} domains")
    results = []
    for domain in req.domains:
        if not domain or not domain.strip():
            continue
        verdict = analysis_service.lookup(domain)
        analysis_service.publish(verdict, source=req.source or "batch")
        results.append(verdict.to_dict())
    return results


@router.post("/dns-query", response_model=ActionResponse)
async def dns_query(req: DnsQueryRequest):
    # Gateway traffic always fails open
    if not req.domain or not req.domain.strip():
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"action": "ALLOW"})

    if not state.protection_active:
        return {"action": "ALLOW"}

    verdict = analysis_service.lookup(req.domain)
    analysis_service.publish(verdict, source="esp32", device_hash=req.device_hash)
    return {"action": verdict.action.value}
