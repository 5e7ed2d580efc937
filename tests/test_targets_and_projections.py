from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import pytest

from src.core.errors import NotFoundError
from src.models.billing import BillingRecordRecord, IndividualTargetRecord
from src.models.deals import DealRecord, ProjectionAdjustmentRecord
from src.models.profiles import ProfileRecord
from src.schemas.projections import ProjectionAdjustmentRequest
from src.schemas.targets import IndividualTargetsRequest
from src.services.projections_service import ProjectionsService
from src.services.targets_service import TargetsService


class InMemoryTargetsRepository:
    def __init__(self) -> None:
        self.rows: Dict[tuple, IndividualTargetRecord] = {}

    def list_individual_targets(self, year: int, user_id: Optional[str] = None) -> List[IndividualTargetRecord]:
        return [
            row for row in self.rows.values() if row.year == year and (user_id is None or row.user_id == user_id)
        ]

    def upsert_individual_targets(self, rows: List[Dict[str, Any]]) -> List[IndividualTargetRecord]:
        saved = []
        for row in rows:
            record = IndividualTargetRecord(**row)
            self.rows[(record.user_id, record.year, record.month)] = record
            saved.append(record)
        return saved


class StubProfilesRepository:
    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        if user_id == "user-a":
            return ProfileRecord(id="user-a", name="Alice", role_type="BD")
        return None


def test_targets_default_to_zero_for_missing_months() -> None:
    service = TargetsService(repository=InMemoryTargetsRepository(), profiles_repository=StubProfilesRepository())
    targets = service.get_targets("user-a", 2025)
    assert len(targets.months) == 12
    assert targets.total == 0
    assert targets.quarters == [0, 0, 0, 0]


def test_saving_targets_upserts_all_twelve_months() -> None:
    repository = InMemoryTargetsRepository()
    service = TargetsService(repository=repository, profiles_repository=StubProfilesRepository())

    service.save_targets("user-a", 2025, IndividualTargetsRequest(months={1: 100, 2: 100, 3: 100, 12: 50}))
    saved = service.save_targets("user-a", 2025, IndividualTargetsRequest(months={1: 200, 12: 50}))

    assert len(repository.rows) == 12
    assert saved.months[1] == 200
    assert saved.months[2] == 0
    assert saved.quarters == [200, 0, 0, 50]
    assert saved.total == 250
    assert service.get_targets("user-a", 2025).months == saved.months


def test_targets_reject_out_of_range_months() -> None:
    with pytest.raises(ValueError):
        IndividualTargetsRequest(months={13: 10})


def test_saving_targets_for_unknown_user_fails() -> None:
    service = TargetsService(repository=InMemoryTargetsRepository(), profiles_repository=StubProfilesRepository())
    with pytest.raises(NotFoundError):
        service.save_targets("ghost", 2025, IndividualTargetsRequest(months={1: 1}))


def make_deal(deal_id: str, deal_type: str, value: float) -> DealRecord:
    return DealRecord(
        id=deal_id,
        deal_type=deal_type,
        client="Acme",
        location="Leeds",
        value_converted_gbp=value,
        status="Approved",
        submitted_by_user_id="user-a",
        submitted_year=2025,
    )


class StubDealsRepository:
    deals = [
        make_deal("svc-1", "Service", 5000),
        make_deal("svc-2", "Service", 2000),
        make_deal("staff-1", "Staff", 1200),
        make_deal("con-1", "Contract", 9000),
    ]

    def list_deals(self, **_: object) -> List[DealRecord]:
        return self.deals

    def get_deal(self, deal_id: str) -> Optional[DealRecord]:
        return next((deal for deal in self.deals if deal.id == deal_id), None)


class InMemoryProjectionsRepository:
    def __init__(self) -> None:
        self.adjustments: Dict[str, ProjectionAdjustmentRecord] = {
            "svc-1": ProjectionAdjustmentRecord(deal_id="svc-1", year=2025, value_this_year_gbp=3000),
            "con-1": ProjectionAdjustmentRecord(
                deal_id="con-1", year=2025, value_this_year_gbp=4500, expected_mobilisation_date=date(2025, 9, 1)
            ),
        }

    def list_adjustments(self, year: int) -> List[ProjectionAdjustmentRecord]:
        return [adjustment for adjustment in self.adjustments.values() if adjustment.year == year]

    def upsert_adjustment(self, payload: Dict[str, Any]) -> ProjectionAdjustmentRecord:
        record = ProjectionAdjustmentRecord(**payload)
        self.adjustments[record.deal_id] = record
        return record


class StubBillingRepository:
    def list_records(self, year: int, month: Optional[int] = None) -> List[BillingRecordRecord]:
        return [
            BillingRecordRecord(user_id="user-a", month=1, year=year, gp_gbp=Decimal("700")),
            BillingRecordRecord(user_id="user-b", month=2, year=year, gp_gbp=Decimal("300.50")),
        ]


def make_projections_service() -> tuple[ProjectionsService, InMemoryProjectionsRepository]:
    projections = InMemoryProjectionsRepository()
    service = ProjectionsService(
        deals_repository=StubDealsRepository(),
        projections_repository=projections,
        billing_repository=StubBillingRepository(),
    )
    return service, projections


def test_projection_totals_by_deal_type() -> None:
    service, _ = make_projections_service()
    result = service.get_projections(2025)

    assert result.totals.services == 3000
    assert result.totals.staff == 1200
    assert result.totals.contracts == 4500
    assert result.totals.billings == 1000.5
    assert result.totals.total == 9700.5
    assert [deal.deal_id for deal in result.services] == ["svc-1", "svc-2"]
    assert result.services[1].value_this_year_gbp is None
    assert result.contracts[0].expected_mobilisation_date == date(2025, 9, 1)


def test_mobilisation_date_is_only_kept_for_contracts() -> None:
    service, projections = make_projections_service()
    request = ProjectionAdjustmentRequest(
        year=2025, value_this_year_gbp=1500, expected_mobilisation_date=date(2025, 10, 1)
    )

    service_deal = service.save_adjustment("svc-2", request)
    contract = service.save_adjustment("con-1", request)

    assert service_deal.expected_mobilisation_date is None
    assert contract.expected_mobilisation_date == date(2025, 10, 1)
    assert projections.adjustments["svc-2"].value_this_year_gbp == 1500


def test_adjusting_unknown_deal_fails() -> None:
    service, _ = make_projections_service()
    with pytest.raises(NotFoundError):
        service.save_adjustment("missing", ProjectionAdjustmentRequest(year=2025))
