"""
Configurable scoring formulas.

A formula is an ordered list of rules. Each rule pairs a condition on the
outcome of a game (winner score, loser score, differential or total) with the
points awarded to the winner and the loser. Rules are tried in order and the
first match wins; when nothing matches the formula's default points apply.
A rule may award ``score_difference`` instead of a fixed number of points.

Formulas are stored as JSON by the application, so this module also knows how
to read and write that shape and validates it on the way in.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple, Union

from scorebook.standings_core.conf import get_setting
from scorebook.standings_core.errors import FormulaValidationError

logger = logging.getLogger(__name__)

Number = Union[int, float]
ScoreRange = Tuple[Number, Number]

# Rule points may name a value of the outcome instead of a fixed number
SCORE_DIFFERENCE = "score_difference"
Points = Union[Number, str]


class ConditionType(Enum):
    """Which value of a game outcome a condition tests."""

    SCORE_DIFFERENTIAL = "score_differential"
    WINNER_SCORE = "winner_score"
    LOSER_SCORE = "loser_score"
    TOTAL_SCORE = "total_score"


class Operator(Enum):
    """Comparison applied between the tested value and the condition value."""

    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_points(value: Any) -> bool:
    return value == SCORE_DIFFERENCE or (_is_number(value) and value >= 0)


def _check_range(value: Any, what: str, rule_id: Optional[str] = None) -> None:
    if (
        not isinstance(value, tuple)
        or len(value) != 2
        or not all(_is_number(v) for v in value)
    ):
        raise FormulaValidationError(
            f"{what} must be a [low, high] pair of numbers, got {value!r}", rule_id
        )
    if value[0] > value[1]:
        raise FormulaValidationError(
            f"{what} low bound {value[0]} is greater than high bound {value[1]}",
            rule_id,
        )


@dataclass(frozen=True)
class Condition:
    """A single test against a game outcome.

    ``value`` is a ``(low, high)`` tuple when ``operator`` is ``BETWEEN`` and a
    plain number otherwise. The shape is checked on construction.
    """

    type: ConditionType
    operator: Operator
    value: Union[Number, ScoreRange]

    def __post_init__(self):
        if not isinstance(self.type, ConditionType):
            raise FormulaValidationError(f"Unknown condition type {self.type!r}")
        if not isinstance(self.operator, Operator):
            raise FormulaValidationError(f"Unknown operator {self.operator!r}")
        if self.operator == Operator.BETWEEN:
            _check_range(self.value, "A 'between' value")
        elif not _is_number(self.value):
            raise FormulaValidationError(
                f"Operator '{self.operator.value}' needs a single number, got {self.value!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        if not isinstance(data, dict):
            raise FormulaValidationError(f"Condition must be an object, got {data!r}")
        try:
            condition_type = ConditionType(data["type"])
            operator = Operator(data["operator"])
        except KeyError as e:
            raise FormulaValidationError(f"Condition is missing {e}") from e
        except ValueError as e:
            raise FormulaValidationError(str(e)) from e

        value = data.get("value")
        if isinstance(value, list):
            value = tuple(value)
        return cls(condition_type, operator, value)

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"type": self.type.value, "operator": self.operator.value, "value": value}

    def describe(self) -> str:
        """Human readable form, e.g. ``Winner Score = 12``."""
        subject = self.type.value.replace("_", " ").title()
        if self.operator == Operator.BETWEEN:
            low, high = self.value
            return f"{subject} between {low} and {high}"
        symbols = {
            Operator.EQUALS: "=",
            Operator.GREATER_THAN: ">",
            Operator.LESS_THAN: "<",
            Operator.GREATER_THAN_OR_EQUAL: ">=",
            Operator.LESS_THAN_OR_EQUAL: "<=",
        }
        return f"{subject} {symbols[self.operator]} {self.value}"


@dataclass(frozen=True)
class Rule:
    """A condition and the points it awards to each side of the game."""

    id: str
    condition: Condition
    winner_points: Points
    loser_points: Points = 0
    description: Optional[str] = None

    def __post_init__(self):
        for label, points in (
            ("winnerPoints", self.winner_points),
            ("loserPoints", self.loser_points),
        ):
            if not _is_points(points):
                raise FormulaValidationError(
                    f"{label} must be a number >= 0 or '{SCORE_DIFFERENCE}', got {points!r}",
                    self.id,
                )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        if not isinstance(data, dict):
            raise FormulaValidationError(f"Rule must be an object, got {data!r}")
        rule_id = str(data.get("id", ""))
        if not rule_id:
            raise FormulaValidationError("Every rule needs an id")
        if "condition" not in data:
            raise FormulaValidationError("Rule has no condition", rule_id)
        try:
            condition = Condition.from_dict(data["condition"])
        except FormulaValidationError as e:
            raise FormulaValidationError(e.reason, rule_id) from e
        return cls(
            id=rule_id,
            condition=condition,
            winner_points=data.get("winnerPoints"),
            loser_points=data.get("loserPoints", 0),
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "condition": self.condition.to_dict(),
            "winnerPoints": self.winner_points,
            "loserPoints": self.loser_points,
        }
        if self.description is not None:
            result["description"] = self.description
        return result

    def label(self) -> str:
        return self.description or self.condition.describe()


@dataclass(frozen=True)
class DrawBand:
    """Treat a game as drawn when both scores fall inside these ranges.

    ``winner_range`` applies to the top score and ``loser_range`` to the
    bottom score; both ranges are inclusive.
    """

    winner_range: ScoreRange
    loser_range: ScoreRange

    def __post_init__(self):
        _check_range(self.winner_range, "Draw band winner range")
        _check_range(self.loser_range, "Draw band loser range")

    def contains(self, winner_score: Number, loser_score: Number) -> bool:
        return (
            self.winner_range[0] <= winner_score <= self.winner_range[1]
            and self.loser_range[0] <= loser_score <= self.loser_range[1]
        )


def _default_draw_points() -> Number:
    return get_setting("DEFAULT_DRAW_POINTS")


@dataclass(frozen=True)
class DrawPolicy:
    """How a tournament detects and scores draws.

    Bands are matched against the top and bottom score of a game, whichever
    side is flagged as winner.
    """

    points: Number = field(default_factory=_default_draw_points)
    bands: Tuple[DrawBand, ...] = ()

    def __post_init__(self):
        if not _is_number(self.points) or self.points < 0:
            raise FormulaValidationError(
                f"drawPoints must be a number >= 0, got {self.points!r}"
            )

    def is_draw(self, winner_score: Number, loser_score: Number) -> bool:
        return any(band.contains(winner_score, loser_score) for band in self.bands)


@dataclass(frozen=True)
class Formula:
    """A named, ordered set of scoring rules with default points."""

    id: Optional[str]
    name: str
    rules: Tuple[Rule, ...] = ()
    default_winner_points: Number = 1
    default_loser_points: Number = 0
    draw_policy: DrawPolicy = field(default_factory=DrawPolicy)
    description: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.rules, tuple):
            object.__setattr__(self, "rules", tuple(self.rules))
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise FormulaValidationError(f"Duplicate rule id '{rule.id}'")
            seen.add(rule.id)
        for label, points in (
            ("defaultWinnerPoints", self.default_winner_points),
            ("defaultLoserPoints", self.default_loser_points),
        ):
            if not _is_number(points) or points < 0:
                raise FormulaValidationError(f"{label} must be a number >= 0")

    def rule(self, rule_id: str) -> Optional[Rule]:
        """Look up a rule by id."""
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        formula_id: Optional[str] = None,
        strict: bool = True,
    ) -> "Formula":
        """Build a formula from its stored JSON shape.

        Args:
            data: The stored formula document (``rules``, ``defaultWinnerPoints``...)
            formula_id: Id of the stored record, if any
            strict: Raise on the first malformed rule. When False, malformed
                    rules are logged and skipped so the rest still score.

        Returns:
            The parsed Formula
        """
        name = data.get("name")
        if not name:
            raise FormulaValidationError("Formula name is required")

        rules: List[Rule] = []
        for raw_rule in data.get("rules") or []:
            try:
                rules.append(Rule.from_dict(raw_rule))
            except FormulaValidationError as e:
                if strict:
                    raise
                logger.warning(f"Skipping malformed rule in formula '{name}': {e}")

        draw_kwargs = {}
        if data.get("drawPoints") is not None:
            draw_kwargs["points"] = data["drawPoints"]
        bands = []
        for raw_band in data.get("drawBands") or []:
            try:
                winner_range = tuple(raw_band["winnerRange"])
                loser_range = tuple(raw_band["loserRange"])
            except (KeyError, TypeError) as e:
                raise FormulaValidationError(f"Malformed draw band {raw_band!r}") from e
            bands.append(DrawBand(winner_range, loser_range))
        draw_kwargs["bands"] = tuple(bands)

        return cls(
            id=formula_id,
            name=name,
            rules=tuple(rules),
            default_winner_points=data.get("defaultWinnerPoints", 1),
            default_loser_points=data.get("defaultLoserPoints", 0),
            draw_policy=DrawPolicy(**draw_kwargs),
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "rules": [rule.to_dict() for rule in self.rules],
            "defaultWinnerPoints": self.default_winner_points,
            "defaultLoserPoints": self.default_loser_points,
            "drawPoints": self.draw_policy.points,
        }
        if self.draw_policy.bands:
            result["drawBands"] = [
                {
                    "winnerRange": list(band.winner_range),
                    "loserRange": list(band.loser_range),
                }
                for band in self.draw_policy.bands
            ]
        if self.description is not None:
            result["description"] = self.description
        return result


def _win_rule(points: Number, description: str) -> Rule:
    return Rule(
        id="win-rule",
        condition=Condition(ConditionType.WINNER_SCORE, Operator.GREATER_THAN, 0),
        winner_points=points,
        loser_points=0,
        description=description,
    )


# Pre-defined formulas offered as templates
SOCCER_FORMULA = Formula(
    id="template-soccer",
    name="Soccer/Football",
    description="Win: 3, Loss: 0, Draw: 1",
    rules=(_win_rule(3, "Win: 3 points"),),
    default_winner_points=3,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

TENNIS_FORMULA = Formula(
    id="template-tennis",
    name="Tennis/Racket Sports",
    description="Win: 2, Loss: 0",
    rules=(_win_rule(2, "Win: 2 points"),),
    default_winner_points=2,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

BASKETBALL_FORMULA = Formula(
    id="template-basketball",
    name="Basketball",
    description="Win: 2, Loss: 0",
    rules=(_win_rule(2, "Win: 2 points"),),
    default_winner_points=2,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

CHESS_FORMULA = Formula(
    id="template-chess",
    name="Chess",
    description="Win: 1, Loss: 0, Draw: 0.5",
    rules=(_win_rule(1, "Win: 1 point"),),
    default_winner_points=1,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=0.5),
)

POINTS_BASED_FORMULA = Formula(
    id="template-points-based",
    name="Points-Based",
    description="Higher score wins, points = score difference",
    rules=(
        Rule(
            id="score-diff-rule",
            condition=Condition(ConditionType.WINNER_SCORE, Operator.GREATER_THAN, 0),
            winner_points=SCORE_DIFFERENCE,
            loser_points=0,
            description="Winner gets score difference as points",
        ),
    ),
    default_winner_points=1,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=0),
)

BASIC_WIN_LOSS_FORMULA = Formula(
    id="template-basic-win-loss",
    name="Basic Win/Loss",
    description="Win: 1 point, Loss: 0 points",
    rules=(_win_rule(1, "Win: 1 point to winner, 0 points to loser"),),
    default_winner_points=1,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)


def _rule(rule_id, condition_type, operator, value, winner_points, loser_points, description):
    return Rule(
        id=rule_id,
        condition=Condition(condition_type, operator, value),
        winner_points=winner_points,
        loser_points=loser_points,
        description=description,
    )


MARGIN_BASED_FORMULA = Formula(
    id="template-margin-based",
    name="Margin-Based Scoring",
    description="Points based on victory margin",
    rules=(
        _rule("close-win", ConditionType.SCORE_DIFFERENTIAL, Operator.BETWEEN, (1, 3), 2, 1,
              "Close win (1-3 point margin)"),
        _rule("comfortable-win", ConditionType.SCORE_DIFFERENTIAL, Operator.BETWEEN, (4, 7),
              3, 0, "Comfortable win (4-7 point margin)"),
        _rule("dominant-win", ConditionType.SCORE_DIFFERENTIAL, Operator.GREATER_THAN, 7,
              4, 0, "Dominant win (8+ point margin)"),
    ),
    default_winner_points=2,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

PERFORMANCE_WEIGHTED_FORMULA = Formula(
    id="template-performance-weighted",
    name="Performance Weighted",
    description="Base win + performance bonuses",
    rules=(
        _rule("standard-win", ConditionType.WINNER_SCORE, Operator.BETWEEN, (6, 8), 2, 0,
              "Standard win (6-8 points)"),
        _rule("good-performance", ConditionType.WINNER_SCORE, Operator.BETWEEN, (9, 11), 3, 0,
              "Good performance (9-11 points)"),
        _rule("excellent-performance", ConditionType.WINNER_SCORE, Operator.EQUALS, 12, 4, 0,
              "Excellent performance (12 points)"),
    ),
    default_winner_points=2,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

PROGRESSIVE_FORMULA = Formula(
    id="template-progressive",
    name="Progressive Scoring",
    description="Higher scores earn more points",
    rules=(
        _rule("score-6-7", ConditionType.WINNER_SCORE, Operator.BETWEEN, (6, 7), 1, 0,
              "Score 6-7"),
        _rule("score-8-9", ConditionType.WINNER_SCORE, Operator.BETWEEN, (8, 9), 2, 0,
              "Score 8-9"),
        _rule("score-10-11", ConditionType.WINNER_SCORE, Operator.BETWEEN, (10, 11), 3, 0,
              "Score 10-11"),
        _rule("score-12", ConditionType.WINNER_SCORE, Operator.EQUALS, 12, 5, 0,
              "Perfect score 12"),
    ),
    default_winner_points=1,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1),
)

# Dominoes scoring: a 12-0 shutout is worth three wins, a 6 against 1-5 is a draw
DOMINOLOGY_FORMULA = Formula(
    id="template-dominology",
    name="Dominology",
    description="Win: 3, 12-0 victory: 9, Draw: 1",
    rules=(
        Rule(
            id="perfect-shutout",
            condition=Condition(ConditionType.WINNER_SCORE, Operator.EQUALS, 12),
            winner_points=9,
            loser_points=0,
            description="12-0 victory",
        ),
    ),
    default_winner_points=3,
    default_loser_points=0,
    draw_policy=DrawPolicy(points=1, bands=(DrawBand((6, 6), (1, 5)),)),
)

TEMPLATE_FORMULAS = (
    SOCCER_FORMULA,
    TENNIS_FORMULA,
    BASKETBALL_FORMULA,
    CHESS_FORMULA,
    POINTS_BASED_FORMULA,
    DOMINOLOGY_FORMULA,
    BASIC_WIN_LOSS_FORMULA,
    MARGIN_BASED_FORMULA,
    PERFORMANCE_WEIGHTED_FORMULA,
    PROGRESSIVE_FORMULA,
)
