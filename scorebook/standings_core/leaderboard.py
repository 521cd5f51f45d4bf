"""
Entry points used by the application layer.

``compute_standings`` runs the whole pipeline (outcome extraction, scoring,
aggregation, ranking) and ``explain_points`` exposes the formula resolver for
previewing a formula against a hypothetical score before it is saved.

Both are pure and recompute from their inputs on every call; callers may cache
results keyed by formula and game-set versions.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from scorebook.standings_core.formula import DrawPolicy, Formula, Number
from scorebook.standings_core.ranking import PreviousStandings, rank
from scorebook.standings_core.scoring import PointAward, resolve
from scorebook.standings_core.standings import StandingEntry, aggregate
from scorebook.standings_core.structure import (
    EntityId,
    Game,
    GameId,
    GameOutcome,
    Participant,
    TeamMember,
)

logger = logging.getLogger(__name__)


def filter_games_by_period(
    games: Iterable[Game], year: Optional[int] = None, month: Optional[int] = None
) -> List[Game]:
    """Keep games played in the given calendar year and/or month.

    Undated games are dropped as soon as a period is requested.
    """
    if year is None and month is None:
        return list(games)

    selected = []
    for game in games:
        if game.date is None:
            continue
        if year is not None and game.date.year != year:
            continue
        if month is not None and game.date.month != month:
            continue
        selected.append(game)
    return selected


def compute_standings(
    formula: Formula,
    games: Iterable[Game],
    participants_by_game: Mapping[GameId, Sequence[Participant]],
    previous_snapshot: Optional[PreviousStandings] = None,
    members_by_team: Optional[Mapping[EntityId, Sequence[TeamMember]]] = None,
    draw_policy: Optional[DrawPolicy] = None,
    roster: Optional[Iterable[Tuple[EntityId, str]]] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
    perfect_score: Optional[Number] = None,
) -> List[StandingEntry]:
    """
    Compute an ordered leaderboard.

    Args:
        formula: Scoring formula for the tournament
        games: Recorded games
        participants_by_game: Participants of each game, keyed by game id
        previous_snapshot: Prior leaderboard for movement
        members_by_team: Credit these teams' results to their members
        draw_policy: Tournament draw policy, overriding the formula's
        roster: Entities listed even when they have no games
        year: Only count games played in this year
        month: Only count games played in this month
        perfect_score: Winner score counted as a perfect-score win

    Returns:
        Standing entries in leaderboard order
    """
    games = filter_games_by_period(games, year, month)
    entries = aggregate(
        formula,
        games,
        participants_by_game,
        members_by_team=members_by_team,
        draw_policy=draw_policy,
        roster=roster,
        perfect_score=perfect_score,
    )
    standings = rank(entries, previous_snapshot)
    logger.info(
        f"Computed standings with formula '{formula.name}': "
        f"{len(games)} games, {len(standings)} entries"
    )
    return standings


def explain_points(formula: Formula, outcome: GameOutcome) -> PointAward:
    """Points a formula would award for a hypothetical outcome."""
    return resolve(formula, outcome)
