from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

import pytest

from src.analytics.credit_split import credited_total, split_percent, summarize_deals
from src.core.errors import BadRequestError
from src.models.billing import IndividualTargetRecord
from src.models.deals import DealRecord
from src.models.profiles import ProfileRecord, TeamRecord
from src.services.leaderboard_service import LeaderboardService


def make_deal(deal_id: str, value: float, status: str = "Approved", month: int = 1, **fields: object) -> DealRecord:
    return DealRecord(
        id=deal_id,
        deal_type="Staff",
        client="Acme",
        location="London",
        value_converted_gbp=value,
        status=status,
        submitted_by_user_id="user-a",
        submitted_month=month,
        submitted_year=2025,
        **fields,
    )


DEALS = [
    make_deal("d1", 1000, bd_user_id="user-a", bd_percent=60, dt_user_id="user-b", dt_percent=40),
    make_deal("d2", 500, bd_user_id="user-b", bd_percent=100, month=2),
    make_deal("d3", 800, bd_user_id="user-a", bd_percent=100, is_renewal=True),
    make_deal(
        "d4",
        300,
        status="Submitted",
        month=2,
        bd_user_id="user-a",
        bd_percent=100,
        total_estimated_opportunity_gbp=900,
    ),
]

PROFILES = [
    ProfileRecord(id="user-a", name="Alice", role_type="BD", team_id="team-1", team_name="North"),
    ProfileRecord(id="user-b", name="Bob", role_type="DT", sales_role="360", team_id="team-1", team_name="North"),
    ProfileRecord(id="user-c", name="Cara", role_type="BD"),
]


class StubDealsRepository:
    def list_deals(
        self,
        statuses: Optional[Sequence[str]] = None,
        submitted_year: Optional[int] = None,
        **_: object,
    ) -> List[DealRecord]:
        return [
            deal
            for deal in DEALS
            if (not statuses or deal.status in statuses)
            and (submitted_year is None or deal.submitted_year == submitted_year)
        ]


class StubProfilesRepository:
    def list_profiles(self, **_: object) -> List[ProfileRecord]:
        return PROFILES


class StubTeamsRepository:
    def list_teams(self, **_: object) -> List[TeamRecord]:
        return [TeamRecord(id="team-1", team_name="North"), TeamRecord(id="team-2", team_name="South")]


class StubTargetsRepository:
    def list_individual_targets(self, year: int, user_id: Optional[str] = None) -> List[IndividualTargetRecord]:
        return [
            IndividualTargetRecord(user_id="user-a", year=year, month=1, target_gp=Decimal("500")),
            IndividualTargetRecord(user_id="user-a", year=year, month=2, target_gp=Decimal("500")),
            IndividualTargetRecord(user_id="user-b", year=year, month=1, target_gp=Decimal("400")),
        ]


def make_service() -> LeaderboardService:
    return LeaderboardService(
        deals_repository=StubDealsRepository(),
        profiles_repository=StubProfilesRepository(),
        teams_repository=StubTeamsRepository(),
        targets_repository=StubTargetsRepository(),
    )


def test_split_percent_sums_every_slot_held() -> None:
    deal = make_deal("x", 100, bd_user_id="u", bd_percent=50, user_360_id="u", percent_360=25)
    assert split_percent(deal, {"u"}) == 75
    assert split_percent(deal, {"someone-else"}) == 0


def test_summary_excludes_renewals_from_gp_added() -> None:
    approved = [deal for deal in DEALS if deal.status == "Approved"]
    summary = summarize_deals(approved, {"user-a"})
    assert summary.gp_added == pytest.approx(600)
    assert summary.new_placements == 1
    assert summary.renewal_count == 1


def test_credited_total_can_use_estimates() -> None:
    assert credited_total(DEALS, {"user-a"}, months={2}) == pytest.approx(300)
    assert credited_total(DEALS, {"user-a"}, months={2}, use_estimate=True) == pytest.approx(900)


def test_individual_leaderboard_ranks_by_gp_added() -> None:
    rows = make_service().get_individual_leaderboard()

    assert [(row.rank, row.name, row.gp_added) for row in rows] == [
        (1, "Bob", 900),
        (2, "Alice", 600),
        (3, "Cara", 0),
    ]
    assert rows[0].role_type == "360"
    assert rows[2].team_name == "No Team"


def test_team_leaderboard_counts_members() -> None:
    rows = make_service().get_team_leaderboard()

    assert [(row.team_name, row.member_count, row.gp_added) for row in rows] == [
        ("North", 2, 1500),
        ("South", 0, 0),
    ]
    assert rows[0].renewal_count == 1


def test_targets_leaderboard_for_a_quarter() -> None:
    result = make_service().get_targets_leaderboard(2025, "quarterly", 1)

    assert result.months == [1, 2, 3]
    alice = next(row for row in result.individuals if row.id == "user-a")
    # Approved: d1 60% of 1000 plus renewal d3 in full; pipeline adds d4 at its estimate.
    assert alice.target == 1000
    assert alice.actual == 1400
    assert alice.projected == 2300
    assert alice.variance == 40
    assert alice.projected_variance == 130
    assert alice.progress == 140

    cara = next(row for row in result.individuals if row.id == "user-c")
    assert (cara.target, cara.variance, cara.progress) == (0, 0, 0)

    assert [team.name for team in result.teams] == ["North"]
    assert result.teams[0].target == 1400
    assert result.teams[0].actual == 2300
    assert result.teams[0].member_count == 2


def test_targets_leaderboard_rejects_bad_period_number() -> None:
    with pytest.raises(BadRequestError):
        make_service().get_targets_leaderboard(2025, "quarterly", 5)
