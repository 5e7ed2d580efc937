from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

from src.analytics.credit_split import (
    deal_value,
    filter_created_between,
    group_ids_by,
    monthly_gp_trend,
    summarize_deals,
    year_end_projection,
)
from src.models.deals import DealRecord
from src.models.profiles import CallerIdentity
from src.repositories.deals_repository import DealsRepository
from src.repositories.profiles_repository import ProfilesRepository, TeamsRepository
from src.schemas.analytics import (
    AnalyticsTotals,
    DashboardRankings,
    DashboardResponse,
    DealStats,
    ManagersAnalyticsResponse,
    MonthlyTrendPoint,
    PeerStats,
    PerformanceRow,
    ProjectionSummary,
    Ranking,
)
from src.shared.time import period_start, remaining_months

logger = logging.getLogger(__name__)

ROLE_GROUPS = ("BD", "DT", "360", "Manager", "CEO", "Admin")
PENDING_STATUSES = ("Submitted", "Under Review")


def _rank(stats: List[PeerStats], user_id: str, key: Callable[[PeerStats], float]) -> Ranking:
    ordered = sorted(stats, key=key)
    rank = next((index + 1 for index, item in enumerate(ordered) if item.user_id == user_id), 0)
    return Ranking(rank=rank, total=len(stats))


def _peer_stats(user_id: str, name: str, deals: List[DealRecord]) -> PeerStats:
    approved = [deal for deal in deals if deal.status == "Approved"]
    return PeerStats(
        user_id=user_id,
        name=name,
        total_deals=len(deals),
        approved_deals=len(approved),
        pending_deals=sum(1 for deal in deals if deal.status in PENDING_STATUSES),
        total_value=round(sum(deal_value(deal) for deal in approved), 2),
    )


class AnalyticsService:
    def __init__(
        self,
        deals_repository: DealsRepository,
        profiles_repository: ProfilesRepository,
        teams_repository: TeamsRepository,
    ) -> None:
        self.deals_repository = deals_repository
        self.profiles_repository = profiles_repository
        self.teams_repository = teams_repository

    def get_managers_analytics(
        self,
        time_period: str = "month",
        team_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> ManagersAnalyticsResponse:
        today = today or date.today()
        start = period_start(time_period, today)
        profiles = self.profiles_repository.list_profiles(active_only=True)
        teams = self.teams_repository.list_teams(active_only=True)
        deals = filter_created_between(self.deals_repository.list_deals(statuses=["Approved"]), start)
        logger.info("Managers analytics over %s approved deals since %s", len(deals), start)

        members_by_team = group_ids_by((profile.team_id, profile.id) for profile in profiles)
        team_rows = []
        for team in teams:
            member_ids = members_by_team.get(team.id, [])
            summary = summarize_deals(deals, member_ids)
            team_rows.append(
                PerformanceRow(
                    name=team.team_name,
                    gp_added=round(summary.gp_added, 2),
                    deals=summary.new_placements,
                    renewals=summary.renewal_count,
                    members=len(member_ids),
                )
            )
        team_rows.sort(key=lambda row: -row.gp_added)

        individual_rows = []
        for profile in profiles:
            if team_id and profile.team_id != team_id:
                continue
            summary = summarize_deals(deals, {profile.id})
            individual_rows.append(
                PerformanceRow(
                    name=profile.name,
                    role=profile.role_type,
                    gp_added=round(summary.gp_added, 2),
                    deals=summary.new_placements,
                    renewals=summary.renewal_count,
                )
            )
        individual_rows.sort(key=lambda row: -row.gp_added)

        members_by_role = group_ids_by((profile.role_type, profile.id) for profile in profiles)
        role_rows = []
        for role in ROLE_GROUPS:
            member_ids = members_by_role.get(role, [])
            if not member_ids:
                continue
            summary = summarize_deals(deals, member_ids)
            role_rows.append(
                PerformanceRow(
                    name=role,
                    gp_added=round(summary.gp_added, 2),
                    deals=summary.new_placements,
                    members=len(member_ids),
                )
            )

        trend = monthly_gp_trend(deals)
        new_business = [deal for deal in deals if not deal.is_renewal]
        current_total = sum(deal_value(deal) for deal in new_business)
        months_left = remaining_months(today)
        projection, average = year_end_projection(trend, current_total, months_left)

        return ManagersAnalyticsResponse(
            time_period=time_period,
            period_start=start,
            team_id=team_id,
            totals=AnalyticsTotals(
                total_gp=round(current_total, 2),
                total_deals=len(new_business),
                total_renewals=len(deals) - len(new_business),
            ),
            teams=team_rows,
            individuals=individual_rows,
            roles=role_rows,
            monthly_trends=[
                MonthlyTrendPoint(
                    month=point.key,
                    label=point.label,
                    gp_added=round(point.gp_added, 2),
                    deals=point.deals,
                )
                for point in trend
            ],
            projection=ProjectionSummary(
                current_total=round(current_total, 2),
                average_monthly=round(average, 2),
                remaining_months=months_left,
                projection=round(projection, 2),
            ),
        )

    def get_dashboard(self, caller: CallerIdentity) -> DashboardResponse:
        """Caller's own deal counts, ranked against everyone sharing their role."""
        own_deals = self.deals_repository.list_deals(submitted_by_user_id=caller.id)
        approved = [deal for deal in own_deals if deal.status == "Approved"]
        stats = DealStats(
            total_deals=len(own_deals),
            approved_deals=len(approved),
            pending_deals=sum(1 for deal in own_deals if deal.status in PENDING_STATUSES),
            draft_deals=sum(1 for deal in own_deals if deal.status == "Draft"),
            approved_value=round(sum(deal_value(deal) for deal in approved), 2),
        )

        peers = self.profiles_repository.list_profiles(active_only=False, role_type=caller.role_type)
        peer_ids = [profile.id for profile in peers]
        if caller.id not in peer_ids:
            peer_ids.append(caller.id)
        peer_deals = self.deals_repository.list_deals(submitted_by_user_ids=peer_ids)

        deals_by_user: Dict[str, List[DealRecord]] = {user_id: [] for user_id in peer_ids}
        for deal in peer_deals:
            if deal.submitted_by_user_id in deals_by_user:
                deals_by_user[deal.submitted_by_user_id].append(deal)
        names = {profile.id: profile.name for profile in peers}
        names.setdefault(caller.id, caller.name)
        peer_stats = [_peer_stats(user_id, names[user_id], deals_by_user[user_id]) for user_id in peer_ids]

        rankings = DashboardRankings(
            total_deals=_rank(peer_stats, caller.id, lambda item: -item.total_deals),
            approved_deals=_rank(peer_stats, caller.id, lambda item: -item.approved_deals),
            # fewer pending deals ranks higher
            pending_deals=_rank(peer_stats, caller.id, lambda item: item.pending_deals),
            total_value=_rank(peer_stats, caller.id, lambda item: -item.total_value),
        )
        return DashboardResponse(
            user_id=caller.id,
            name=caller.name,
            role_type=caller.role_type,
            stats=stats,
            rankings=rankings,
            peers=sorted(peer_stats, key=lambda item: -item.total_value),
        )
