from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional, Sequence

import pytest

from src.core.errors import BadRequestError
from src.models.deals import DealRecord
from src.models.profiles import CallerIdentity, ProfileRecord, TeamRecord
from src.services.analytics_service import AnalyticsService


def make_deal(
    deal_id: str,
    value: float,
    created: datetime,
    status: str = "Approved",
    submitter: str = "user-a",
    **fields: object,
) -> DealRecord:
    return DealRecord(
        id=deal_id,
        deal_type="Contract",
        client="Acme",
        location="Leeds",
        value_converted_gbp=value,
        status=status,
        submitted_by_user_id=submitter,
        created_at=created,
        **fields,
    )


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 12, tzinfo=timezone.utc)


DEALS = [
    make_deal("d1", 1000, utc(2025, 4, 3), bd_user_id="user-a", bd_percent=100),
    make_deal("d2", 600, utc(2025, 5, 20), bd_user_id="user-b", bd_percent=50, dt_user_id="user-a", dt_percent=50),
    make_deal("d3", 400, utc(2025, 5, 21), bd_user_id="user-b", bd_percent=100, is_renewal=True),
    make_deal("d4", 999, utc(2025, 1, 10), bd_user_id="user-a", bd_percent=100),
    make_deal("d5", 200, utc(2025, 5, 1), status="Submitted", submitter="user-b"),
    make_deal("d6", 50, utc(2025, 5, 2), status="Draft", submitter="user-a"),
]

PROFILES = [
    ProfileRecord(id="user-a", name="Alice", role_type="BD", team_id="team-1"),
    ProfileRecord(id="user-b", name="Bob", role_type="BD", team_id="team-2"),
    ProfileRecord(id="user-c", name="Cleo", role_type="Manager", team_id="team-2"),
]


class StubDealsRepository:
    def list_deals(
        self,
        statuses: Optional[Sequence[str]] = None,
        submitted_by_user_id: Optional[str] = None,
        submitted_by_user_ids: Optional[Sequence[str]] = None,
        **_: object,
    ) -> List[DealRecord]:
        return [
            deal
            for deal in DEALS
            if (not statuses or deal.status in statuses)
            and (submitted_by_user_id is None or deal.submitted_by_user_id == submitted_by_user_id)
            and (submitted_by_user_ids is None or deal.submitted_by_user_id in submitted_by_user_ids)
        ]


class StubProfilesRepository:
    def list_profiles(self, role_type: Optional[str] = None, **_: object) -> List[ProfileRecord]:
        return [profile for profile in PROFILES if role_type is None or profile.role_type == role_type]


class StubTeamsRepository:
    def list_teams(self, **_: object) -> List[TeamRecord]:
        return [TeamRecord(id="team-1", team_name="Alpha"), TeamRecord(id="team-2", team_name="Beta")]


def make_service() -> AnalyticsService:
    return AnalyticsService(
        deals_repository=StubDealsRepository(),
        profiles_repository=StubProfilesRepository(),
        teams_repository=StubTeamsRepository(),
    )


def test_quarter_analytics_only_counts_deals_since_period_start() -> None:
    result = make_service().get_managers_analytics("quarter", today=date(2025, 5, 31))

    assert result.period_start == date(2025, 4, 1)
    assert result.totals.total_gp == 1600
    assert result.totals.total_deals == 2
    assert result.totals.total_renewals == 1

    teams = {row.name: row for row in result.teams}
    assert teams["Alpha"].gp_added == 1300
    assert teams["Beta"].gp_added == 300
    assert teams["Beta"].renewals == 1
    assert [row.name for row in result.teams] == ["Alpha", "Beta"]

    assert [row.name for row in result.roles] == ["BD", "Manager"]
    assert result.roles[0].members == 2


def test_monthly_trend_and_projection() -> None:
    result = make_service().get_managers_analytics("quarter", today=date(2025, 5, 31))

    assert [(point.month, point.label, point.gp_added) for point in result.monthly_trends] == [
        ("2025-04", "Apr 2025", 1000),
        ("2025-05", "May 2025", 600),
    ]
    # 1600 so far plus an 800 monthly average over the 8 months left, May included.
    assert result.projection.remaining_months == 8
    assert result.projection.average_monthly == 800
    assert result.projection.projection == 1600 + 800 * 8


def test_team_filter_limits_individuals() -> None:
    result = make_service().get_managers_analytics("year", team_id="team-2", today=date(2025, 5, 31))
    assert [row.name for row in result.individuals] == ["Bob", "Cleo"]


def test_unknown_period_is_rejected() -> None:
    with pytest.raises(BadRequestError):
        make_service().get_managers_analytics("decade", today=date(2025, 5, 31))


def test_dashboard_ranks_caller_among_same_role() -> None:
    caller = CallerIdentity(id="user-a", name="Alice", role_type="BD")
    result = make_service().get_dashboard(caller)

    assert result.stats.total_deals == 5
    assert result.stats.approved_deals == 4
    assert result.stats.draft_deals == 1
    assert result.stats.pending_deals == 0
    assert result.stats.approved_value == 2999
    assert result.rankings.total_value.rank == 1
    assert result.rankings.total_value.total == 2
    assert result.rankings.pending_deals.rank == 1
    assert {peer.user_id for peer in result.peers} == {"user-a", "user-b"}
