"""
Tests for formula construction, validation and the stored JSON shape.
"""

import unittest

from scorebook.standings_core.errors import FormulaValidationError, ScorebookError
from scorebook.standings_core.formula import (
    DOMINOLOGY_FORMULA,
    MARGIN_BASED_FORMULA,
    PERFORMANCE_WEIGHTED_FORMULA,
    POINTS_BASED_FORMULA,
    PROGRESSIVE_FORMULA,
    SCORE_DIFFERENCE,
    TEMPLATE_FORMULAS,
    Condition,
    ConditionType,
    DrawBand,
    DrawPolicy,
    Formula,
    Operator,
    Rule,
)
from scorebook.standings_core.scoring import resolve
from scorebook.standings_core.tests.test_utils import condition, outcome, rule

STORED_FORMULA = {
    "name": "Club Night",
    "description": "Bonus for big wins",
    "rules": [
        {
            "id": "blowout",
            "condition": {
                "type": "score_differential",
                "operator": "greater_than_or_equal",
                "value": 10,
            },
            "winnerPoints": 4,
            "loserPoints": 0,
            "description": "Won by ten or more",
        },
        {
            "id": "close",
            "condition": {"type": "score_differential", "operator": "between", "value": [1, 2]},
            "winnerPoints": 2,
            "loserPoints": 1,
        },
    ],
    "defaultWinnerPoints": 3,
    "defaultLoserPoints": 0,
}


class ConditionValidationTests(unittest.TestCase):
    def test_between_needs_a_pair(self):
        with self.assertRaises(FormulaValidationError):
            condition("winner_score", "between", 6)
        with self.assertRaises(FormulaValidationError):
            condition("winner_score", "between", [6, 7, 8])

    def test_between_bounds_must_be_ordered(self):
        with self.assertRaises(FormulaValidationError):
            condition("winner_score", "between", [7, 6])

    def test_single_value_operators_reject_pairs(self):
        with self.assertRaises(FormulaValidationError):
            condition("winner_score", "equals", [6, 7])

    def test_booleans_are_not_numbers(self):
        with self.assertRaises(FormulaValidationError):
            condition("winner_score", "equals", True)

    def test_unknown_type_and_operator_in_stored_condition(self):
        with self.assertRaises(FormulaValidationError):
            Condition.from_dict({"type": "margin", "operator": "equals", "value": 1})
        with self.assertRaises(FormulaValidationError):
            Condition.from_dict({"type": "winner_score", "operator": "approx", "value": 1})
        with self.assertRaises(FormulaValidationError):
            Condition.from_dict({"operator": "equals", "value": 1})

    def test_describe(self):
        self.assertEqual(condition("winner_score", "equals", 12).describe(), "Winner Score = 12")
        self.assertEqual(
            condition("score_differential", "between", [1, 3]).describe(),
            "Score Differential between 1 and 3",
        )
        self.assertEqual(
            condition("total_score", "less_than_or_equal", 10).describe(), "Total Score <= 10"
        )


class RuleValidationTests(unittest.TestCase):
    def test_negative_points_rejected(self):
        with self.assertRaises(FormulaValidationError) as ctx:
            rule("bad", "winner_score", "equals", 12, -1)
        self.assertEqual(ctx.exception.rule_id, "bad")

    def test_score_difference_keyword_accepted(self):
        r = rule("diff", "winner_score", "greater_than", 0, SCORE_DIFFERENCE)
        self.assertEqual(r.winner_points, SCORE_DIFFERENCE)

        with self.assertRaises(FormulaValidationError):
            rule("typo", "winner_score", "greater_than", 0, "score_diff")

    def test_label_prefers_description(self):
        self.assertEqual(
            rule("r", "winner_score", "equals", 12, 5, 0, "Perfect").label(), "Perfect"
        )
        self.assertEqual(rule("r", "winner_score", "equals", 12, 5).label(), "Winner Score = 12")

    def test_malformed_condition_reports_rule_id(self):
        with self.assertRaises(FormulaValidationError) as ctx:
            Rule.from_dict(
                {
                    "id": "r9",
                    "condition": {"type": "winner_score", "operator": "between", "value": 3},
                    "winnerPoints": 1,
                }
            )
        self.assertEqual(ctx.exception.rule_id, "r9")
        self.assertIn("r9", str(ctx.exception))

    def test_rule_needs_id_and_points(self):
        with self.assertRaises(FormulaValidationError):
            Rule.from_dict({"condition": {"type": "winner_score", "operator": "equals", "value": 1}})
        with self.assertRaises(FormulaValidationError):
            Rule.from_dict(
                {"id": "r", "condition": {"type": "winner_score", "operator": "equals", "value": 1}}
            )


class FormulaTests(unittest.TestCase):
    def test_from_dict(self):
        formula = Formula.from_dict(STORED_FORMULA, formula_id="f-1")

        self.assertEqual(formula.id, "f-1")
        self.assertEqual(formula.name, "Club Night")
        self.assertEqual([r.id for r in formula.rules], ["blowout", "close"])
        self.assertEqual(formula.rule("close").condition.value, (1, 2))
        self.assertEqual(formula.rule("close").loser_points, 1)
        self.assertIsNone(formula.rule("missing"))
        self.assertEqual(formula.default_winner_points, 3)

    def test_to_dict_keeps_stored_shape(self):
        stored = Formula.from_dict(STORED_FORMULA).to_dict()

        self.assertEqual(stored["rules"], STORED_FORMULA["rules"])
        self.assertEqual(stored["defaultWinnerPoints"], 3)
        self.assertEqual(stored["drawPoints"], 1)
        self.assertNotIn("drawBands", stored)

    def test_stored_defaults(self):
        formula = Formula.from_dict({"name": "Bare"})
        self.assertEqual(formula.rules, ())
        self.assertEqual(formula.default_winner_points, 1)
        self.assertEqual(formula.default_loser_points, 0)

    def test_name_required(self):
        with self.assertRaises(FormulaValidationError):
            Formula.from_dict({"rules": []})

    def test_duplicate_rule_ids_rejected(self):
        with self.assertRaises(FormulaValidationError):
            Formula(
                id=None,
                name="Dupes",
                rules=[
                    rule("same", "winner_score", "equals", 12, 5),
                    rule("same", "winner_score", "equals", 11, 4),
                ],
            )

    def test_rules_coerced_to_tuple(self):
        formula = Formula(id=None, name="List", rules=[rule("r", "winner_score", "equals", 1, 1)])
        self.assertIsInstance(formula.rules, tuple)

    def test_strict_parsing_raises_on_bad_rule(self):
        data = dict(STORED_FORMULA)
        data["rules"] = STORED_FORMULA["rules"] + [
            {"id": "broken", "condition": {"type": "winner_score", "operator": "equals"}}
        ]
        with self.assertRaises(FormulaValidationError):
            Formula.from_dict(data)

    def test_lenient_parsing_drops_bad_rule(self):
        data = dict(STORED_FORMULA)
        data["rules"] = [
            {"id": "broken", "condition": {"type": "winner_score", "operator": "equals"}}
        ] + STORED_FORMULA["rules"]

        with self.assertLogs("scorebook.standings_core.formula", level="WARNING") as logs:
            formula = Formula.from_dict(data, strict=False)

        self.assertEqual([r.id for r in formula.rules], ["blowout", "close"])
        self.assertIn("broken", logs.output[0])

    def test_draw_settings(self):
        data = dict(STORED_FORMULA)
        data["drawPoints"] = 0.5
        data["drawBands"] = [{"winnerRange": [6, 6], "loserRange": [1, 5]}]
        formula = Formula.from_dict(data)

        self.assertEqual(formula.draw_policy.points, 0.5)
        self.assertEqual(formula.draw_policy.bands, (DrawBand((6, 6), (1, 5)),))
        self.assertTrue(formula.draw_policy.is_draw(6, 3))
        self.assertFalse(formula.draw_policy.is_draw(6, 0))
        self.assertFalse(formula.draw_policy.is_draw(7, 3))
        self.assertEqual(
            formula.to_dict()["drawBands"], [{"winnerRange": [6, 6], "loserRange": [1, 5]}]
        )

    def test_draw_points_validated(self):
        for points in ("1", -3, True):
            with self.assertRaises(FormulaValidationError):
                Formula.from_dict({"name": "F", "drawPoints": points})
        with self.assertRaises(FormulaValidationError):
            DrawPolicy(points=-1)

    def test_lenient_parsing_drops_rules_of_the_wrong_shape(self):
        valid = STORED_FORMULA["rules"][0]
        for bad in ("garbage", None, {"id": "r", "condition": None, "winnerPoints": 1}):
            data = {"name": "Mixed", "rules": [bad, valid]}

            with self.assertLogs("scorebook.standings_core.formula", level="WARNING"):
                formula = Formula.from_dict(data, strict=False)
            self.assertEqual([r.id for r in formula.rules], ["blowout"])

            with self.assertRaises(FormulaValidationError):
                Formula.from_dict(data)

    def test_malformed_draw_band(self):
        data = dict(STORED_FORMULA)
        data["drawBands"] = [{"winnerRange": [6, 6]}]
        with self.assertRaises(FormulaValidationError):
            Formula.from_dict(data)

    def test_validation_error_is_a_value_error(self):
        try:
            Formula.from_dict({})
        except ValueError as e:
            self.assertIsInstance(e, ScorebookError)
            self.assertEqual(e.user_message, "Formula name is required")
        else:
            self.fail("FormulaValidationError not raised")


class TemplateFormulaTests(unittest.TestCase):
    def test_templates_have_unique_ids(self):
        ids = [f.id for f in TEMPLATE_FORMULAS]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertTrue(all(i.startswith("template-") for i in ids))

    def test_templates_survive_stored_shape(self):
        for template in TEMPLATE_FORMULAS:
            parsed = Formula.from_dict(template.to_dict(), formula_id=template.id)
            self.assertEqual(parsed, template)

    def test_points_based_awards_score_difference(self):
        award = resolve(POINTS_BASED_FORMULA, outcome(21, 15))
        self.assertEqual(award.winner_points, 6)
        self.assertEqual(award.loser_points, 0)
        self.assertEqual(award.matched_rule.id, "score-diff-rule")

    def test_dominology(self):
        shutout = resolve(DOMINOLOGY_FORMULA, outcome(12, 0))
        self.assertEqual((shutout.winner_points, shutout.loser_points), (9, 0))

        regular = resolve(DOMINOLOGY_FORMULA, outcome(10, 4))
        self.assertTrue(regular.is_default)
        self.assertEqual(regular.winner_points, 3)

        self.assertTrue(DOMINOLOGY_FORMULA.draw_policy.is_draw(6, 2))

    def test_margin_based(self):
        close = resolve(MARGIN_BASED_FORMULA, outcome(8, 6))
        self.assertEqual((close.winner_points, close.loser_points), (2, 1))
        self.assertEqual(resolve(MARGIN_BASED_FORMULA, outcome(9, 2)).matched_rule.id,
                         "comfortable-win")
        self.assertEqual(resolve(MARGIN_BASED_FORMULA, outcome(12, 4)).winner_points, 4)

    def test_performance_and_progressive(self):
        self.assertEqual(resolve(PERFORMANCE_WEIGHTED_FORMULA, outcome(8, 3)).winner_points, 2)
        self.assertEqual(resolve(PERFORMANCE_WEIGHTED_FORMULA, outcome(11, 3)).winner_points, 3)
        self.assertEqual(resolve(PERFORMANCE_WEIGHTED_FORMULA, outcome(12, 0)).winner_points, 4)

        self.assertEqual(resolve(PROGRESSIVE_FORMULA, outcome(7, 2)).winner_points, 1)
        self.assertEqual(resolve(PROGRESSIVE_FORMULA, outcome(9, 2)).winner_points, 2)
        self.assertEqual(resolve(PROGRESSIVE_FORMULA, outcome(12, 0)).winner_points, 5)
        # Below every band the defaults apply
        self.assertTrue(resolve(PROGRESSIVE_FORMULA, outcome(5, 2)).is_default)

    def test_condition_types_round_trip_through_enums(self):
        c = Condition(ConditionType.LOSER_SCORE, Operator.LESS_THAN, 3)
        self.assertEqual(Condition.from_dict(c.to_dict()), c)


if __name__ == "__main__":
    unittest.main()
