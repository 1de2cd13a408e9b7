"""
URL safety endpoints.

POST /api/v1/safety/check   - heuristics plus reputation lookup
POST /api/v1/safety/report  - community report, 10 per reporter per day
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_owner, get_safety_service
from schemas.dto.requests.link import ReportRequest, SafetyCheckRequest
from schemas.models.safety import ReportResult, SafetyVerdict
from services.safety_service import SafetyService

router = APIRouter(prefix="/api/v1/safety", tags=["safety"])


@router.post("/check", response_model=SafetyVerdict)
async def check_url(
    body: SafetyCheckRequest,
    safety: SafetyService = Depends(get_safety_service),
) -> SafetyVerdict:
    return await safety.full_check(body.url)


@router.post("/report", response_model=ReportResult, status_code=201)
async def report_url(
    body: ReportRequest,
    reporter: str = Depends(get_owner),
    safety: SafetyService = Depends(get_safety_service),
) -> ReportResult:
    return await safety.report(body.url, reporter)
