from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_billing_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.billing import (
    BillingSummary,
    BillingTarget,
    BillingTargetRequest,
    BillingUpload,
    BillingUploadCreateRequest,
    ProcessBillingUploadRequest,
    ProcessBillingUploadResult,
)
from src.services.billing_service import BillingService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/process-upload")
def process_billing_upload(
    request: ProcessBillingUploadRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: BillingService = Depends(get_billing_service),
) -> ProcessBillingUploadResult:
    return service.process_upload(request, caller_id=caller.id)


@router.post("/uploads")
def create_billing_upload(
    request: BillingUploadCreateRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: BillingService = Depends(get_billing_service),
) -> ResponseEnvelope[BillingUpload]:
    data = service.create_upload(request, caller_id=caller.id)
    return ResponseEnvelope(data=data, meta=build_meta(source="billing_uploads"))


@router.get("/uploads")
def list_billing_uploads(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    _: CallerIdentity = Depends(require_manager),
    service: BillingService = Depends(get_billing_service),
) -> ResponseEnvelope[List[BillingUpload]]:
    selected_year = year or date.today().year
    data = service.list_uploads(selected_year)
    return ResponseEnvelope(data=data, meta=build_meta(source="billing_uploads", time_window=str(selected_year)))


@router.get("/summary")
def billing_summary(
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    _: CallerIdentity = Depends(require_manager),
    service: BillingService = Depends(get_billing_service),
) -> ResponseEnvelope[BillingSummary]:
    selected_year = year or date.today().year
    data = service.get_summary(selected_year, month)
    time_window = f"{selected_year}-{month:02d}" if month else str(selected_year)
    return ResponseEnvelope(data=data, meta=build_meta(source="billing_records", time_window=time_window))


@router.put("/targets/{year}")
def set_billing_target(
    year: int,
    request: BillingTargetRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: BillingService = Depends(get_billing_service),
) -> ResponseEnvelope[BillingTarget]:
    data = service.set_target(year, request.target_gp, caller.id)
    return ResponseEnvelope(data=data, meta=build_meta(source="billing_targets", time_window=str(year)))
