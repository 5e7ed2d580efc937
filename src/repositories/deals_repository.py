from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.core.supabase import SupabaseClient
from src.models.deals import DealRecord, ProjectionAdjustmentRecord

MAX_QUERY_ROWS = 5000


def _in_filter(values: Sequence[str]) -> str:
    quoted = ",".join(f'"{value}"' for value in values)
    return f"in.({quoted})"


class DealsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def get_deal(self, deal_id: str) -> Optional[DealRecord]:
        rows, _ = self.client.select(
            table="deals",
            select="*",
            filters=[("id", f"eq.{deal_id}")],
            limit=1,
        )
        return DealRecord.model_validate(rows[0]) if rows else None

    def list_deals(
        self,
        statuses: Optional[Sequence[str]] = None,
        submitted_by_user_id: Optional[str] = None,
        submitted_by_user_ids: Optional[Sequence[str]] = None,
        submitted_year: Optional[int] = None,
    ) -> List[DealRecord]:
        filters: List[Tuple[str, str]] = []
        if statuses:
            filters.append(("status", _in_filter(statuses)))
        if submitted_by_user_id:
            filters.append(("submitted_by_user_id", f"eq.{submitted_by_user_id}"))
        if submitted_by_user_ids is not None:
            if not submitted_by_user_ids:
                return []
            filters.append(("submitted_by_user_id", _in_filter(submitted_by_user_ids)))
        if submitted_year is not None:
            filters.append(("submitted_year", f"eq.{submitted_year}"))
        rows, _ = self.client.select(
            table="deals",
            select="*",
            filters=filters,
            order="created_at.desc",
            limit=MAX_QUERY_ROWS,
        )
        return [DealRecord.model_validate(row) for row in rows]

    def create_deal(self, payload: Dict[str, Any]) -> DealRecord:
        rows = self.client.insert(table="deals", payload=payload)
        return DealRecord.model_validate(rows[0])

    def update_deal(self, deal_id: str, payload: Dict[str, Any]) -> Optional[DealRecord]:
        rows = self.client.update(table="deals", payload=payload, filters=[("id", f"eq.{deal_id}")])
        return DealRecord.model_validate(rows[0]) if rows else None

    def delete_deal(self, deal_id: str) -> None:
        self.client.delete(table="deals", filters=[("id", f"eq.{deal_id}")])


class ProjectionsRepository:
    def __init__(self) -> None:
        self.client = SupabaseClient()

    def list_adjustments(self, year: int) -> List[ProjectionAdjustmentRecord]:
        rows, _ = self.client.select(
            table="projection_adjustments",
            select="deal_id,year,value_this_year_gbp,expected_mobilisation_date",
            filters=[("year", f"eq.{year}")],
            limit=MAX_QUERY_ROWS,
        )
        return [ProjectionAdjustmentRecord.model_validate(row) for row in rows]

    def upsert_adjustment(self, payload: Dict[str, Any]) -> ProjectionAdjustmentRecord:
        rows = self.client.insert(
            table="projection_adjustments",
            payload=payload,
            upsert=True,
            on_conflict="deal_id,year",
        )
        return ProjectionAdjustmentRecord.model_validate(rows[0])
