"""
Turning game outcomes into points.

``evaluate`` tests a single condition against an outcome and ``resolve`` walks
a formula's rules in order, returning the points of the first rule that
matches or the formula defaults when none does. Both are pure: the same
inputs always give the same award, which is what lets a leaderboard explain
every point it shows.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from scorebook.standings_core.formula import (
    Condition,
    ConditionType,
    Formula,
    Number,
    SCORE_DIFFERENCE,
    Operator,
    Points,
    Rule,
)
from scorebook.standings_core.structure import GameOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointAward:
    """Points for both sides of a game and the rule that produced them."""

    winner_points: Number
    loser_points: Number
    matched_rule: Optional[Rule] = None

    @property
    def is_default(self) -> bool:
        return self.matched_rule is None

    @property
    def explanation(self) -> str:
        """Why these points were awarded, for display next to a result."""
        points = f"winner {self.winner_points:g}, loser {self.loser_points:g}"
        if self.matched_rule is None:
            return f"No rule matched, formula defaults apply: {points}"
        return f"Rule '{self.matched_rule.id}' ({self.matched_rule.label()}): {points}"


def _tested_value(condition_type: ConditionType, outcome: GameOutcome) -> float:
    if condition_type == ConditionType.SCORE_DIFFERENTIAL:
        return outcome.score_differential
    elif condition_type == ConditionType.WINNER_SCORE:
        return outcome.winner_score
    elif condition_type == ConditionType.LOSER_SCORE:
        return outcome.loser_score
    else:  # TOTAL_SCORE
        return outcome.total_score


def _awarded(points: Points, outcome: GameOutcome) -> Number:
    if points == SCORE_DIFFERENCE:
        return max(outcome.score_differential, 0)
    return points


def evaluate(condition: Condition, outcome: GameOutcome) -> bool:
    """Return whether the outcome satisfies the condition."""
    value = _tested_value(condition.type, outcome)
    operator = condition.operator

    if operator == Operator.EQUALS:
        return value == condition.value
    elif operator == Operator.GREATER_THAN:
        return value > condition.value
    elif operator == Operator.LESS_THAN:
        return value < condition.value
    elif operator == Operator.GREATER_THAN_OR_EQUAL:
        return value >= condition.value
    elif operator == Operator.LESS_THAN_OR_EQUAL:
        return value <= condition.value
    else:  # BETWEEN, inclusive on both ends
        low, high = condition.value
        return low <= value <= high


def resolve(formula: Formula, outcome: GameOutcome) -> PointAward:
    """Award points for an outcome using the first matching rule.

    Args:
        formula: The scoring formula
        outcome: Winner and loser scores of the game

    Returns:
        PointAward with the matched rule, or the formula defaults when no
        rule matches
    """
    for rule in formula.rules:
        if evaluate(rule.condition, outcome):
            logger.debug(
                f"Outcome {outcome} matched rule '{rule.id}' of '{formula.name}'"
            )
            return PointAward(
                _awarded(rule.winner_points, outcome),
                _awarded(rule.loser_points, outcome),
                rule,
            )

    return PointAward(formula.default_winner_points, formula.default_loser_points)
