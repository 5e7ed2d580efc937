from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional

from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.models.deals import DealRecord
from src.models.profiles import CallerIdentity
from src.repositories.deals_repository import DealsRepository
from src.repositories.profiles_repository import ProfilesRepository
from src.schemas.deals import Deal, DealCreateRequest
from src.services.exchange_rate_service import ExchangeRateService
from src.shared.time import utc_now_iso

logger = logging.getLogger(__name__)

EDITABLE_STATUSES: FrozenSet[str] = frozenset({"Draft", "Revision Required"})
PENDING_STATUSES: FrozenSet[str] = frozenset({"Submitted", "Under Review"})

# action -> (statuses it may start from, status it moves to)
TRANSITIONS: Dict[str, tuple[FrozenSet[str], str]] = {
    "submit": (EDITABLE_STATUSES, "Submitted"),
    "start_review": (frozenset({"Submitted"}), "Under Review"),
    "approve": (PENDING_STATUSES, "Approved"),
    "request_revision": (PENDING_STATUSES, "Revision Required"),
    "reject": (PENDING_STATUSES, "Rejected"),
    "void": (frozenset({"Approved"}), "Voided"),
}


class DealsService:
    def __init__(
        self,
        repository: DealsRepository,
        profiles_repository: ProfilesRepository,
        exchange_rates: ExchangeRateService,
    ) -> None:
        self.repository = repository
        self.profiles_repository = profiles_repository
        self.exchange_rates = exchange_rates

    def _to_schema(self, record: DealRecord, names: Optional[Dict[str, str]] = None) -> Deal:
        data = record.model_dump(include=set(Deal.model_fields))
        if names is not None:
            data["submitted_by_name"] = names.get(record.submitted_by_user_id, "Unknown")
        return Deal(**data)

    def _profile_names(self) -> Dict[str, str]:
        return {profile.id: profile.name for profile in self.profiles_repository.list_profiles(active_only=False)}

    def _require_deal(self, deal_id: str) -> DealRecord:
        deal = self.repository.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        return deal

    def _transition(self, deal_id: str, action: str, extra: Optional[Dict[str, Any]] = None) -> Deal:
        allowed_from, target_status = TRANSITIONS[action]
        deal = self._require_deal(deal_id)
        if deal.status not in allowed_from:
            raise BadRequestError(f"Cannot {action.replace('_', ' ')} a deal in status {deal.status}")
        payload: Dict[str, Any] = {"status": target_status, "updated_at": utc_now_iso()}
        payload.update(extra or {})
        updated = self.repository.update_deal(deal_id, payload)
        if updated is None:
            raise NotFoundError("Deal not found")
        logger.info("Deal %s moved %s -> %s", deal_id, deal.status, target_status)
        return self._to_schema(updated)

    def submit_deal(self, request: DealCreateRequest, caller: CallerIdentity, today: Optional[date] = None) -> Deal:
        today = today or date.today()
        converted = self.exchange_rates.convert(request.value_original_currency, request.currency)
        payload = request.model_dump(exclude={"as_draft"}, exclude_none=True)
        payload.update(
            {
                "value_converted_gbp": float(round(converted, 2)),
                "submitted_by_user_id": caller.id,
                "status": "Draft" if request.as_draft else "Submitted",
                "submitted_month": today.month,
                "submitted_year": today.year,
            }
        )
        if not request.has_split():
            payload["bd_user_id"] = caller.id
            payload["bd_percent"] = 100
        if request.deal_type == "Service":
            for field in ("placement_id", "worker_name", "gp_daily", "duration_days"):
                payload.pop(field, None)
        else:
            for field in ("service_name", "service_description"):
                payload.pop(field, None)

        created = self.repository.create_deal(payload)
        logger.info("Deal %s created by %s as %s", created.id, caller.id, created.status)
        return self._to_schema(created)

    def get_deal(self, deal_id: str) -> Deal:
        return self._to_schema(self._require_deal(deal_id), self._profile_names())

    def list_drafts(self, caller: CallerIdentity) -> List[Deal]:
        deals = self.repository.list_deals(statuses=sorted(EDITABLE_STATUSES), submitted_by_user_id=caller.id)
        return [self._to_schema(deal) for deal in deals]

    def list_pending(self) -> List[Deal]:
        deals = self.repository.list_deals(statuses=sorted(PENDING_STATUSES))
        names = self._profile_names()
        return [self._to_schema(deal, names) for deal in deals]

    def delete_draft(self, deal_id: str, caller: CallerIdentity) -> None:
        deal = self._require_deal(deal_id)
        if deal.submitted_by_user_id != caller.id:
            raise ForbiddenError("Only the submitter can delete a draft")
        if deal.status not in EDITABLE_STATUSES:
            raise BadRequestError(f"Cannot delete a deal in status {deal.status}")
        self.repository.delete_deal(deal_id)
        logger.info("Draft %s deleted by %s", deal_id, caller.id)

    def submit_draft(self, deal_id: str, caller: CallerIdentity) -> Deal:
        deal = self._require_deal(deal_id)
        if deal.submitted_by_user_id != caller.id:
            raise ForbiddenError("Only the submitter can submit this deal")
        return self._transition(deal_id, "submit")

    def start_review(self, deal_id: str, caller: CallerIdentity) -> Deal:
        return self._transition(deal_id, "start_review")

    def approve(self, deal_id: str, caller: CallerIdentity) -> Deal:
        return self._transition(deal_id, "approve", {"approved_by_user_id": caller.id})

    def request_revision(self, deal_id: str, comment: str, caller: CallerIdentity) -> Deal:
        return self._transition(deal_id, "request_revision", {"revision_comment": comment})

    def reject(self, deal_id: str, comment: str, caller: CallerIdentity) -> Deal:
        return self._transition(deal_id, "reject", {"revision_comment": comment})

    def void(self, deal_id: str, reason: str, caller: CallerIdentity) -> Deal:
        return self._transition(deal_id, "void", {"void_reason": reason, "voided_by_user_id": caller.id})
