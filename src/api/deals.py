from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_caller, get_deals_service, require_manager
from src.models.profiles import CallerIdentity
from src.schemas.deals import Deal, DealCommentRequest, DealCreateRequest, DealVoidRequest
from src.services.deals_service import DealsService
from src.shared.response import ResponseEnvelope, build_meta


router = APIRouter(prefix="/deals", tags=["deals"])


def _envelope(data: Deal) -> ResponseEnvelope[Deal]:
    return ResponseEnvelope(data=data, meta=build_meta(source="deals"))


@router.post("")
def submit_deal(
    request: DealCreateRequest,
    caller: CallerIdentity = Depends(get_current_caller),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.submit_deal(request, caller))


@router.get("/drafts")
def list_drafts(
    caller: CallerIdentity = Depends(get_current_caller),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[List[Deal]]:
    return ResponseEnvelope(data=service.list_drafts(caller), meta=build_meta(source="deals"))


@router.get("/pending")
def list_pending(
    _: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[List[Deal]]:
    return ResponseEnvelope(data=service.list_pending(), meta=build_meta(source="deals"))


@router.get("/{deal_id}")
def get_deal(
    deal_id: str,
    _: CallerIdentity = Depends(get_current_caller),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.get_deal(deal_id))


@router.delete("/{deal_id}", status_code=204)
def delete_draft(
    deal_id: str,
    caller: CallerIdentity = Depends(get_current_caller),
    service: DealsService = Depends(get_deals_service),
) -> None:
    service.delete_draft(deal_id, caller)


@router.post("/{deal_id}/submit")
def submit_draft(
    deal_id: str,
    caller: CallerIdentity = Depends(get_current_caller),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.submit_draft(deal_id, caller))


@router.post("/{deal_id}/review")
def start_review(
    deal_id: str,
    caller: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.start_review(deal_id, caller))


@router.post("/{deal_id}/approve")
def approve_deal(
    deal_id: str,
    caller: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.approve(deal_id, caller))


@router.post("/{deal_id}/request-revision")
def request_revision(
    deal_id: str,
    request: DealCommentRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.request_revision(deal_id, request.comment, caller))


@router.post("/{deal_id}/reject")
def reject_deal(
    deal_id: str,
    request: DealCommentRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.reject(deal_id, request.comment, caller))


@router.post("/{deal_id}/void")
def void_deal(
    deal_id: str,
    request: DealVoidRequest,
    caller: CallerIdentity = Depends(require_manager),
    service: DealsService = Depends(get_deals_service),
) -> ResponseEnvelope[Deal]:
    return _envelope(service.void(deal_id, request.reason, caller))
