"""
Builder for creating game logs with a fluent API.

Players and teams are referred to by name; ids are assigned as they are
added. The resulting log holds exactly what the application would pass to
``compute_standings``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from scorebook.standings_core.formula import Formula
from scorebook.standings_core.leaderboard import compute_standings
from scorebook.standings_core.standings import StandingEntry
from scorebook.standings_core.structure import (
    EntityId,
    Game,
    GameId,
    Participant,
    TeamMember,
)

Score = Optional[Union[int, float, str]]


@dataclass
class GameLog:
    """Games and participants as handed over by the game store."""

    games: List[Game] = field(default_factory=list)
    participants_by_game: Dict[GameId, List[Participant]] = field(default_factory=dict)
    members_by_team: Dict[EntityId, List[TeamMember]] = field(default_factory=dict)
    roster: List[Tuple[EntityId, str]] = field(default_factory=list)


class LeaderboardBuilder:
    """Builder for game logs and the standings computed from them."""

    def __init__(self, formula: Optional[Formula] = None):
        self.formula = formula
        self.log = GameLog()
        self.name_to_id: Dict[str, EntityId] = {}
        self.team_names: List[str] = []
        self._next_entity_id = 1
        self._next_game_id = 1
        self._date: Optional[datetime] = None

    def _register(self, name: str) -> EntityId:
        if name in self.name_to_id:
            return self.name_to_id[name]
        entity_id = self._next_entity_id
        self._next_entity_id += 1
        self.name_to_id[name] = entity_id
        return entity_id

    def _get_entity_id(self, name: str) -> EntityId:
        entity_id = self.name_to_id.get(name)
        if entity_id is None:
            raise ValueError(f"Player or team not found: {name}")
        return entity_id

    def _is_team(self, name: str) -> bool:
        return name in self.team_names

    # Fluent API

    def player(self, name: str) -> "LeaderboardBuilder":
        """Add a player."""
        entity_id = self._register(name)
        if (entity_id, name) not in self.log.roster:
            self.log.roster.append((entity_id, name))
        return self

    def players(self, *names: str) -> "LeaderboardBuilder":
        for name in names:
            self.player(name)
        return self

    def team(self, name: str, *members: str) -> "LeaderboardBuilder":
        """Add a team; members are added as players if needed."""
        team_id = self._register(name)
        if name not in self.team_names:
            self.team_names.append(name)
        roster = self.log.members_by_team.setdefault(team_id, [])
        for member in members:
            self.player(member)
            player_id = self.name_to_id[member]
            if all(m.player_id != player_id for m in roster):
                roster.append(TeamMember(player_id, member))
        return self

    def on(self, date: datetime) -> "LeaderboardBuilder":
        """Date the games added after this call."""
        self._date = date
        return self

    def game(
        self, winner: str, winner_score: Score, loser: str, loser_score: Score
    ) -> "LeaderboardBuilder":
        """Record a decided two-sided game."""
        return self.multi((winner, winner_score), (loser, loser_score), winner=winner)

    def draw(
        self, first: str, first_score: Score, second: str, second_score: Score
    ) -> "LeaderboardBuilder":
        """Record a two-sided game with no winner flagged."""
        return self.multi((first, first_score), (second, second_score), winner=None)

    def multi(
        self, *results: Tuple[str, Score], winner: Optional[str] = "top"
    ) -> "LeaderboardBuilder":
        """Record a game between any number of participants.

        Args:
            results: (name, score) for each participant
            winner: Name of the flagged winner, "top" for the highest score,
                    or None to flag nobody
        """
        if len(results) < 1:
            raise ValueError("A game needs at least one participant")

        if winner == "top":
            winner = max(
                results,
                key=lambda r: float(r[1]) if r[1] not in (None, "") else 0.0,
            )[0]
        elif winner is not None and winner not in [name for name, _ in results]:
            raise ValueError(f"Winner {winner} did not take part in the game")

        game_id = self._next_game_id
        self._next_game_id += 1
        is_team_game = any(self._is_team(name) for name, _ in results)
        self.log.games.append(Game(game_id, self._date, is_team_game))
        self.log.participants_by_game[game_id] = [
            Participant(
                entity_id=self._get_entity_id(name),
                display_name=name,
                score=score,
                is_winner=name == winner,
            )
            for name, score in results
        ]
        return self

    def build(self) -> GameLog:
        return self.log

    def standings(
        self, previous_snapshot=None, credit_members: bool = False, **kwargs
    ) -> List[StandingEntry]:
        """Compute standings for the games recorded so far.

        Args:
            previous_snapshot: Prior leaderboard for movement
            credit_members: Credit team results to team members (player leaderboard)
            kwargs: Passed on to compute_standings
        """
        if self.formula is None:
            raise ValueError("Builder needs a formula to compute standings")
        roster = self.log.roster
        if credit_members:
            kwargs["members_by_team"] = self.log.members_by_team
        else:
            # Team leaderboard: list teams, not the players behind them
            team_ids = {self.name_to_id[name] for name in self.team_names}
            member_ids = {
                m.player_id for members in self.log.members_by_team.values() for m in members
            }
            if team_ids:
                roster = [(tid, name) for name, tid in self.name_to_id.items() if tid in team_ids]
                roster += [r for r in self.log.roster if r[0] not in member_ids]
        return compute_standings(
            self.formula,
            self.log.games,
            self.log.participants_by_game,
            previous_snapshot=previous_snapshot,
            roster=roster,
            **kwargs,
        )
