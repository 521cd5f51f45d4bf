"""
Plain representations of recorded games and their participants.

These are the already-validated records the application hands to the
standings core. A participant is whoever took part in a game: a player in an
individual game, a team in a team game.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

EntityId = Union[int, str]
GameId = Union[int, str]


@dataclass(frozen=True)
class Game:
    """A recorded game."""

    id: GameId
    date: Optional[datetime] = None
    is_team_game: bool = False


@dataclass(frozen=True)
class Participant:
    """One side of a game with its score and winner flag."""

    entity_id: EntityId
    display_name: str = ""
    score: Optional[Union[int, float, str]] = None
    is_winner: bool = False

    @property
    def numeric_score(self) -> float:
        """The score as a number; missing scores count as 0."""
        if self.score is None or self.score == "":
            return 0.0
        return float(self.score)

    @property
    def name(self) -> str:
        return self.display_name or str(self.entity_id)


@dataclass(frozen=True)
class TeamMember:
    """A player belonging to a team, credited with the team's results."""

    player_id: EntityId
    display_name: str = ""

    @property
    def name(self) -> str:
        return self.display_name or str(self.player_id)


@dataclass(frozen=True)
class GameOutcome:
    """The winner/loser score pair a formula is evaluated against."""

    winner_score: float
    loser_score: float

    @property
    def score_differential(self) -> float:
        return self.winner_score - self.loser_score

    @property
    def total_score(self) -> float:
        return self.winner_score + self.loser_score

    def __str__(self) -> str:
        return f"{self.winner_score:g}-{self.loser_score:g}"
