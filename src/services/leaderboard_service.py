from __future__ import annotations

from collections import defaultdict
from typing import Dict, List

from src.analytics.credit_split import (
    credited_total,
    percent_of,
    summarize_deals,
    variance_percent,
)
from src.repositories.billing_repository import TargetsRepository
from src.repositories.deals_repository import DealsRepository
from src.repositories.profiles_repository import ProfilesRepository, TeamsRepository
from src.schemas.leaderboard import (
    IndividualLeaderboardRow,
    TargetProgressRow,
    TargetsLeaderboardResponse,
    TeamLeaderboardRow,
)
from src.shared.time import months_for_period

NO_TEAM = "No Team"
PIPELINE_STATUSES = ("Submitted", "Under Review", "Approved")


class LeaderboardService:
    def __init__(
        self,
        deals_repository: DealsRepository,
        profiles_repository: ProfilesRepository,
        teams_repository: TeamsRepository,
        targets_repository: TargetsRepository,
    ) -> None:
        self.deals_repository = deals_repository
        self.profiles_repository = profiles_repository
        self.teams_repository = teams_repository
        self.targets_repository = targets_repository

    def get_individual_leaderboard(self) -> List[IndividualLeaderboardRow]:
        profiles = self.profiles_repository.list_profiles(active_only=True)
        deals = self.deals_repository.list_deals(statuses=["Approved"])
        rows = []
        for profile in profiles:
            summary = summarize_deals(deals, {profile.id})
            rows.append((profile, summary))
        rows.sort(key=lambda item: (-item[1].gp_added, item[0].name.lower()))
        return [
            IndividualLeaderboardRow(
                rank=index + 1,
                user_id=profile.id,
                name=profile.name,
                email=profile.email,
                role_type=profile.display_role,
                team_name=profile.team_name or NO_TEAM,
                gp_added=round(summary.gp_added, 2),
                new_placements=summary.new_placements,
                renewal_count=summary.renewal_count,
            )
            for index, (profile, summary) in enumerate(rows)
        ]

    def get_team_leaderboard(self) -> List[TeamLeaderboardRow]:
        teams = self.teams_repository.list_teams(active_only=True)
        profiles = self.profiles_repository.list_profiles(active_only=True)
        deals = self.deals_repository.list_deals(statuses=["Approved"])

        members: Dict[str, set[str]] = defaultdict(set)
        for profile in profiles:
            if profile.team_id:
                members[profile.team_id].add(profile.id)

        rows = []
        for team in teams:
            member_ids = members.get(team.id, set())
            rows.append((team, len(member_ids), summarize_deals(deals, member_ids)))
        rows.sort(key=lambda item: (-item[2].gp_added, item[0].team_name.lower()))
        return [
            TeamLeaderboardRow(
                rank=index + 1,
                team_id=team.id,
                team_name=team.team_name,
                member_count=member_count,
                gp_added=round(summary.gp_added, 2),
                new_placements=summary.new_placements,
                renewal_count=summary.renewal_count,
            )
            for index, (team, member_count, summary) in enumerate(rows)
        ]

    def get_targets_leaderboard(self, year: int, period: str, period_number: int = 1) -> TargetsLeaderboardResponse:
        months = months_for_period(period, period_number)
        month_set = set(months)
        profiles = self.profiles_repository.list_profiles(active_only=True)
        targets = self.targets_repository.list_individual_targets(year)
        pipeline = self.deals_repository.list_deals(statuses=list(PIPELINE_STATUSES), submitted_year=year)
        approved = [deal for deal in pipeline if deal.status == "Approved"]

        target_by_user: Dict[str, float] = defaultdict(float)
        for target in targets:
            if target.month in month_set:
                target_by_user[target.user_id] += float(target.target_gp)

        metrics: Dict[str, tuple[float, float, float]] = {}
        for profile in profiles:
            member = {profile.id}
            metrics[profile.id] = (
                target_by_user.get(profile.id, 0.0),
                credited_total(approved, member, month_set),
                credited_total(pipeline, member, month_set, use_estimate=True),
            )

        individuals = [
            self._progress_row(
                profile.id,
                profile.name,
                *metrics[profile.id],
                role_type=profile.display_role,
                team_name=profile.team_name or NO_TEAM,
            )
            for profile in profiles
        ]
        individuals.sort(key=lambda row: -row.actual)

        team_names: Dict[str, str] = {}
        team_members: Dict[str, List[str]] = defaultdict(list)
        for profile in profiles:
            if profile.team_id:
                team_members[profile.team_id].append(profile.id)
                team_names.setdefault(profile.team_id, profile.team_name or "Unknown")

        teams = []
        for team_id, member_ids in team_members.items():
            target = sum(metrics[member_id][0] for member_id in member_ids)
            actual = sum(metrics[member_id][1] for member_id in member_ids)
            projected = sum(metrics[member_id][2] for member_id in member_ids)
            teams.append(
                self._progress_row(
                    team_id,
                    team_names[team_id],
                    target,
                    actual,
                    projected,
                    member_count=len(member_ids),
                )
            )
        teams.sort(key=lambda row: -row.actual)

        return TargetsLeaderboardResponse(
            year=year,
            period=period,
            period_number=period_number,
            months=months,
            individuals=individuals,
            teams=teams,
        )

    @staticmethod
    def _progress_row(
        row_id: str,
        name: str,
        target: float,
        actual: float,
        projected: float,
        **extra: object,
    ) -> TargetProgressRow:
        return TargetProgressRow(
            id=row_id,
            name=name,
            target=round(target, 2),
            actual=round(actual, 2),
            projected=round(projected, 2),
            variance=round(variance_percent(actual, target), 2),
            projected_variance=round(variance_percent(projected, target), 2),
            progress=round(percent_of(actual, target), 2),
            **extra,
        )
