"""
Aggregation of game outcomes into per-entity standings.

Every game is reduced to an outcome, scored with the formula, and folded into
running totals for the entities involved (players, or teams). Totals are sums,
so the order games are given in does not change them. Games are still folded
in chronological order so that win streaks are meaningful.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from scorebook.standings_core.conf import get_setting
from scorebook.standings_core.formula import DrawPolicy, Formula, Number
from scorebook.standings_core.outcomes import extract
from scorebook.standings_core.scoring import resolve
from scorebook.standings_core.structure import (
    EntityId,
    Game,
    GameId,
    Participant,
    TeamMember,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecialEvent:
    """A bonus rule matched for the winner of a specific game."""

    rule_id: str
    description: str
    points: Number
    game_id: GameId
    game_score: str = ""


@dataclass(frozen=True)
class EntityCounters:
    """Raw per-entity counters shared with the achievements subsystem."""

    perfect_score_wins: int = 0
    perfect_shutouts: int = 0
    current_win_streak: int = 0
    longest_win_streak: int = 0


class MovementDirection(Enum):
    UP = "up"
    DOWN = "down"
    NONE = "none"


@dataclass(frozen=True)
class Movement:
    """Change in position against a previous snapshot.

    ``positions`` is previous position minus current position, so it is
    positive when moving up the table.
    """

    direction: MovementDirection = MovementDirection.NONE
    positions: int = 0


@dataclass(frozen=True)
class StandingEntry:
    """One entity's aggregated statistics in a leaderboard."""

    entity_id: EntityId
    display_name: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: Number = 0
    special_events: Tuple[SpecialEvent, ...] = ()
    counters: EntityCounters = field(default_factory=EntityCounters)
    position: Optional[int] = None
    movement: Optional[Movement] = None

    def as_dict(self) -> Dict:
        """Payload for the presentation layer.

        ``movement.positions`` keeps its sign, so a drop of two places is
        ``{"direction": "down", "positions": -2}``.
        """
        movement = self.movement or Movement()
        return {
            "entityId": self.entity_id,
            "displayName": self.display_name,
            "gamesPlayed": self.games_played,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "points": self.points,
            "position": self.position,
            "movement": {
                "direction": movement.direction.value,
                "positions": movement.positions,
            },
            "specialEvents": [
                {
                    "ruleId": event.rule_id,
                    "description": event.description,
                    "points": event.points,
                    "gameId": event.game_id,
                    "gameScore": event.game_score,
                }
                for event in self.special_events
            ],
            "counters": {
                "perfectScoreWins": self.counters.perfect_score_wins,
                "perfectShutouts": self.counters.perfect_shutouts,
                "currentWinStreak": self.counters.current_win_streak,
                "longestWinStreak": self.counters.longest_win_streak,
            },
        }


@dataclass
class _Tally:
    """Running totals for one entity while folding games."""

    entity_id: EntityId
    display_name: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: Number = 0
    special_events: List[SpecialEvent] = field(default_factory=list)
    perfect_score_wins: int = 0
    perfect_shutouts: int = 0
    current_win_streak: int = 0
    longest_win_streak: int = 0

    def record_win(
        self,
        points: Number,
        event: Optional[SpecialEvent],
        perfect_score: bool,
        shutout: bool,
    ):
        self.games_played += 1
        self.wins += 1
        self.points += points
        if event is not None:
            self.special_events.append(event)
        if perfect_score:
            self.perfect_score_wins += 1
            if shutout:
                self.perfect_shutouts += 1
        self.current_win_streak += 1
        self.longest_win_streak = max(self.longest_win_streak, self.current_win_streak)

    def record_loss(self, points: Number):
        self.games_played += 1
        self.losses += 1
        self.points += points
        self.current_win_streak = 0

    def record_draw(self, points: Number):
        self.games_played += 1
        self.draws += 1
        self.points += points
        self.current_win_streak = 0

    def freeze(self) -> StandingEntry:
        return StandingEntry(
            entity_id=self.entity_id,
            display_name=self.display_name,
            games_played=self.games_played,
            wins=self.wins,
            losses=self.losses,
            draws=self.draws,
            points=self.points,
            special_events=tuple(self.special_events),
            counters=EntityCounters(
                perfect_score_wins=self.perfect_score_wins,
                perfect_shutouts=self.perfect_shutouts,
                current_win_streak=self.current_win_streak,
                longest_win_streak=self.longest_win_streak,
            ),
        )


def _chronological(game: Game):
    # Undated games first, then by date, then by id for a stable order
    return (game.date is not None, game.date or datetime.min, str(game.id))


class _Ledger:
    """Tallies keyed by entity, with optional team-to-member crediting."""

    def __init__(self, members_by_team: Optional[Mapping[EntityId, Sequence[TeamMember]]]):
        self.members_by_team = members_by_team or {}
        self.tallies: Dict[EntityId, _Tally] = {}

    def tally(self, entity_id: EntityId, display_name: str) -> _Tally:
        tally = self.tallies.get(entity_id)
        if tally is None:
            tally = _Tally(entity_id, display_name or str(entity_id))
            self.tallies[entity_id] = tally
        return tally

    def credited(self, participant: Participant) -> List[_Tally]:
        """Tallies credited with a participant's result."""
        members = self.members_by_team.get(participant.entity_id)
        if members:
            return [self.tally(m.player_id, m.name) for m in members]
        return [self.tally(participant.entity_id, participant.name)]


def aggregate(
    formula: Formula,
    games: Iterable[Game],
    participants_by_game: Mapping[GameId, Sequence[Participant]],
    members_by_team: Optional[Mapping[EntityId, Sequence[TeamMember]]] = None,
    draw_policy: Optional[DrawPolicy] = None,
    roster: Optional[Iterable[Tuple[EntityId, str]]] = None,
    perfect_score: Optional[Number] = None,
) -> List[StandingEntry]:
    """
    Fold games into per-entity standing entries.

    Args:
        formula: Scoring formula applied to every decided game
        games: Games to include
        participants_by_game: Participants of each game, keyed by game id
        members_by_team: When given, results of these teams are credited to
                         their members instead of the team itself
        draw_policy: Overrides the formula's draw policy
        roster: (entity_id, display_name) pairs listed even without games
        perfect_score: Winner score counted as a perfect-score win

    Returns:
        Unordered standing entries with position and movement unset
    """
    policy = draw_policy or formula.draw_policy
    if perfect_score is None:
        perfect_score = get_setting("PERFECT_SCORE")

    ledger = _Ledger(members_by_team)
    for entity_id, display_name in roster or ():
        ledger.tally(entity_id, display_name)

    for game in sorted(games, key=_chronological):
        extracted = extract(game, participants_by_game.get(game.id, ()), policy)
        if extracted is None:
            continue

        if extracted.is_draw:
            for participant in extracted.participants:
                for tally in ledger.credited(participant):
                    tally.record_draw(policy.points)
            continue

        outcome = extracted.outcome
        award = resolve(formula, outcome)

        event = None
        if award.matched_rule is not None:
            event = SpecialEvent(
                rule_id=award.matched_rule.id,
                description=award.matched_rule.label(),
                points=award.winner_points,
                game_id=game.id,
                game_score=str(outcome),
            )

        perfect = outcome.winner_score == perfect_score
        shutout = perfect and outcome.loser_score == 0

        for tally in ledger.credited(extracted.winner):
            tally.record_win(award.winner_points, event, perfect, shutout)
        for tally in ledger.credited(extracted.loser):
            tally.record_loss(award.loser_points)
        for participant in extracted.others:
            for tally in ledger.credited(participant):
                tally.record_loss(formula.default_loser_points)

    return [tally.freeze() for tally in ledger.tallies.values()]
