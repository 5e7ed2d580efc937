from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Collection, Dict, Iterable, List, Optional

from src.models.deals import DealRecord
from src.shared.time import month_key, month_label

SPLIT_SLOTS = (
    ("bd_user_id", "bd_percent"),
    ("dt_user_id", "dt_percent"),
    ("user_360_id", "percent_360"),
)


@dataclass
class GpSummary:
    gp_added: float = 0.0
    new_placements: int = 0
    renewal_count: int = 0


@dataclass
class MonthlyGp:
    key: str
    label: str
    gp_added: float = 0.0
    deals: int = 0


def involves(deal: DealRecord, member_ids: Collection[str]) -> bool:
    return any(getattr(deal, user_field) in member_ids for user_field, _ in SPLIT_SLOTS)


def split_percent(deal: DealRecord, member_ids: Collection[str]) -> float:
    """Combined percentage of the split held by the given people.

    A person holding more than one slot gets the sum of those slots; the three
    percentages are not required to add up to 100.
    """
    percent = 0.0
    for user_field, percent_field in SPLIT_SLOTS:
        if getattr(deal, user_field) in member_ids:
            percent += float(getattr(deal, percent_field) or 0)
    return percent


def deal_value(deal: DealRecord, use_estimate: bool = False) -> float:
    if use_estimate and deal.total_estimated_opportunity_gbp:
        return float(deal.total_estimated_opportunity_gbp)
    return float(deal.value_converted_gbp or 0)


def credited_value(deal: DealRecord, member_ids: Collection[str], use_estimate: bool = False) -> float:
    return deal_value(deal, use_estimate) * split_percent(deal, member_ids) / 100


def summarize_deals(deals: Iterable[DealRecord], member_ids: Collection[str]) -> GpSummary:
    """GP added (renewals excluded), new placements and renewals for a group of people."""
    summary = GpSummary()
    if not member_ids:
        return summary
    for deal in deals:
        if not involves(deal, member_ids):
            continue
        if deal.is_renewal:
            summary.renewal_count += 1
            continue
        summary.new_placements += 1
        summary.gp_added += credited_value(deal, member_ids)
    return summary


def credited_total(
    deals: Iterable[DealRecord],
    member_ids: Collection[str],
    months: Optional[Collection[int]] = None,
    use_estimate: bool = False,
) -> float:
    total = 0.0
    for deal in deals:
        if months is not None and deal.submitted_month not in months:
            continue
        if not involves(deal, member_ids):
            continue
        total += credited_value(deal, member_ids, use_estimate)
    return total


def filter_created_between(
    deals: Iterable[DealRecord], start: date, end: Optional[datetime] = None
) -> List[DealRecord]:
    selected: List[DealRecord] = []
    for deal in deals:
        if deal.created_at is None:
            continue
        created_on = deal.created_at.date()
        if created_on < start:
            continue
        if end is not None and deal.created_at > end:
            continue
        selected.append(deal)
    return selected


def monthly_gp_trend(deals: Iterable[DealRecord]) -> List[MonthlyGp]:
    buckets: Dict[str, MonthlyGp] = {}
    for deal in deals:
        if deal.created_at is None:
            continue
        key = month_key(deal.created_at)
        bucket = buckets.setdefault(key, MonthlyGp(key=key, label=month_label(deal.created_at)))
        if not deal.is_renewal:
            bucket.gp_added += deal_value(deal)
            bucket.deals += 1
    return [buckets[key] for key in sorted(buckets)]


def year_end_projection(trend: List[MonthlyGp], current_total: float, months_left: int) -> tuple[float, float]:
    """Return (projection, average monthly GP)."""
    if not trend:
        return 0.0, 0.0
    average = sum(point.gp_added for point in trend) / len(trend)
    return current_total + average * months_left, average


def percent_of(actual: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return actual / target * 100


def variance_percent(actual: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return (actual - target) / target * 100


def group_ids_by(values: Iterable[tuple[Optional[str], str]]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = defaultdict(list)
    for group_key, member_id in values:
        if group_key:
            grouped[group_key].append(member_id)
    return dict(grouped)
