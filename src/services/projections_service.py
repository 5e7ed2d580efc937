from __future__ import annotations

import logging
from typing import Dict, List, Optional

from src.core.errors import NotFoundError
from src.models.deals import DealRecord, ProjectionAdjustmentRecord
from src.repositories.billing_repository import BillingRepository
from src.repositories.deals_repository import DealsRepository, ProjectionsRepository
from src.schemas.projections import (
    ProjectionAdjustmentRequest,
    ProjectionDeal,
    ProjectionsResponse,
    ProjectionTotals,
)

logger = logging.getLogger(__name__)


def _projection_deal(deal: DealRecord, adjustment: Optional[ProjectionAdjustmentRecord]) -> ProjectionDeal:
    return ProjectionDeal(
        deal_id=deal.id,
        deal_type=deal.deal_type,
        client=deal.client,
        value_converted_gbp=float(deal.value_converted_gbp or 0),
        value_this_year_gbp=adjustment.value_this_year_gbp if adjustment else None,
        expected_mobilisation_date=adjustment.expected_mobilisation_date if adjustment else None,
    )


class ProjectionsService:
    def __init__(
        self,
        deals_repository: DealsRepository,
        projections_repository: ProjectionsRepository,
        billing_repository: BillingRepository,
    ) -> None:
        self.deals_repository = deals_repository
        self.projections_repository = projections_repository
        self.billing_repository = billing_repository

    def get_projections(self, year: int) -> ProjectionsResponse:
        deals = self.deals_repository.list_deals(statuses=["Approved"], submitted_year=year)
        adjustments: Dict[str, ProjectionAdjustmentRecord] = {
            adjustment.deal_id: adjustment for adjustment in self.projections_repository.list_adjustments(year)
        }
        grouped: Dict[str, List[ProjectionDeal]] = {"Service": [], "Staff": [], "Contract": []}
        for deal in deals:
            if deal.deal_type in grouped:
                grouped[deal.deal_type].append(_projection_deal(deal, adjustments.get(deal.id)))

        services = sum(item.value_this_year_gbp or 0 for item in grouped["Service"])
        contracts = sum(item.value_this_year_gbp or 0 for item in grouped["Contract"])
        staff = sum(item.value_converted_gbp for item in grouped["Staff"])
        billings = float(sum(record.gp_gbp for record in self.billing_repository.list_records(year)))

        return ProjectionsResponse(
            year=year,
            totals=ProjectionTotals(
                services=round(services, 2),
                staff=round(staff, 2),
                contracts=round(contracts, 2),
                billings=round(billings, 2),
                total=round(services + staff + contracts + billings, 2),
            ),
            services=grouped["Service"],
            staff=grouped["Staff"],
            contracts=grouped["Contract"],
        )

    def save_adjustment(self, deal_id: str, request: ProjectionAdjustmentRequest) -> ProjectionDeal:
        deal = self.deals_repository.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal not found")
        mobilisation = request.expected_mobilisation_date if deal.deal_type == "Contract" else None
        saved = self.projections_repository.upsert_adjustment(
            {
                "deal_id": deal_id,
                "year": request.year,
                "value_this_year_gbp": request.value_this_year_gbp,
                "expected_mobilisation_date": mobilisation.isoformat() if mobilisation else None,
            }
        )
        logger.info("Saved projection adjustment for deal %s in %s", deal_id, request.year)
        return _projection_deal(deal, saved)
