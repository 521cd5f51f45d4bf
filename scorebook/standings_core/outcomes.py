"""
Extraction of winner/loser outcomes from recorded games.

A formula reasons about a single (winner score, loser score) pair. This module
reduces a game and its participants to that pair:

- Two participants: the one flagged as winner is the winner side.
- More participants: they are ranked by score, the top score is the winner
  side and the bottom score the loser side. Everyone in between only gets
  participation bookkeeping.

A game is a draw when nobody is flagged as winner, when the top scores tie in
a multi-participant game, or when the tournament's draw policy says the score
pair is a draw.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from scorebook.standings_core.formula import DrawPolicy
from scorebook.standings_core.structure import Game, GameOutcome, Participant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractedOutcome:
    """The outcome of a game and the participants on each side of it."""

    outcome: GameOutcome
    winner: Participant
    loser: Participant
    is_draw: bool = False
    others: Tuple[Participant, ...] = ()  # middle-ranked participants

    @property
    def participants(self) -> Tuple[Participant, ...]:
        return (self.winner,) + self.others + (self.loser,)


def _rank_by_score(participants) -> list:
    # Stable sort keeps recorded order among equal scores; flagged winners first
    return sorted(participants, key=lambda p: (-p.numeric_score, not p.is_winner))


def extract(
    game: Game,
    participants: Iterable[Participant],
    draw_policy: Optional[DrawPolicy] = None,
) -> Optional[ExtractedOutcome]:
    """Reduce a game to its winner/loser outcome.

    Args:
        game: The recorded game
        participants: Its participants, with scores and winner flags
        draw_policy: Optional tournament draw policy (score bands treated as draws)

    Returns:
        ExtractedOutcome, or None when the game has fewer than two participants
    """
    participants = list(participants)

    if len(participants) < 2:
        logger.debug(
            f"Skipping game {game.id}: {len(participants)} participant(s), need at least 2"
        )
        return None

    if len(participants) == 2:
        flagged = [p for p in participants if p.is_winner]
        if len(flagged) == 1:
            winner = flagged[0]
            loser = participants[1] if participants[0] is winner else participants[0]
            is_draw = False
        else:
            # Nobody (or everybody) flagged: a draw, sides ordered by score
            winner, loser = _rank_by_score(participants)
            is_draw = True
        others = ()
    else:
        ranked = _rank_by_score(participants)
        winner, loser = ranked[0], ranked[-1]
        others = tuple(ranked[1:-1])
        is_draw = (
            not any(p.is_winner for p in participants)
            or ranked[0].numeric_score == ranked[1].numeric_score
        )

    outcome = GameOutcome(winner.numeric_score, loser.numeric_score)

    if (
        not is_draw
        and draw_policy is not None
        and draw_policy.is_draw(
            max(outcome.winner_score, outcome.loser_score),
            min(outcome.winner_score, outcome.loser_score),
        )
    ):
        logger.debug(f"Game {game.id} ({outcome}) falls in a draw band")
        is_draw = True

    return ExtractedOutcome(
        outcome=outcome,
        winner=winner,
        loser=loser,
        is_draw=is_draw,
        others=others,
    )
