import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.models.factory.Nodes import ConditionModel, ConditionOperator
from botforge_flow.util.condition_evaluator import evaluate, first_match


class TestEvaluate:
    """Operators never raise; numeric comparisons degrade to string comparisons."""

    def test_equals_is_case_sensitive(self):
        assert evaluate("equals", "Yes", "Yes") is True
        assert evaluate("equals", "yes", "Yes") is False

    def test_not_equals(self):
        assert evaluate("not_equals", "a", "b") is True
        assert evaluate("NotEquals", "a", "a") is False

    def test_contains_is_case_insensitive(self):
        assert evaluate("contains", "I'd like to speak with a HUMAN", "human") is True
        assert evaluate("Contains", "hello", "HELL") is True
        assert evaluate("contains", "hello", "bye") is False

    def test_numeric_comparison(self):
        assert evaluate("greater_than", "10", "9") is True
        assert evaluate("less_than", "2.5", "10") is True
        assert evaluate("GreaterThan", " 3 ", "3") is False

    def test_lexicographic_fallback(self):
        # "10" < "9" as strings, but only one side is numeric here
        assert evaluate("greater_than", "banana", "apple") is True
        assert evaluate("less_than", "10 items", "9") is True

    def test_nan_and_inf_are_not_numbers(self):
        assert evaluate("greater_than", "nan", "1") is ("nan" > "1")
        assert evaluate("less_than", "inf", "5") is ("inf" < "5")

    def test_symbol_and_hyphen_spellings(self):
        assert evaluate("==", "x", "x") is True
        assert evaluate("not-equals", "x", "y") is True
        assert evaluate(">", "5", "4") is True
        assert evaluate(ConditionOperator.LESS_THAN, "4", "5") is True

    def test_unknown_operator_is_false(self):
        assert evaluate("matches_regex", "abc", "a.c") is False

    def test_missing_left_value(self):
        assert evaluate("equals", None, "") is True
        assert evaluate("contains", None, "x") is False


class TestFirstMatch:
    """Declared order is priority."""

    def setup_method(self):
        self.conditions = [
            ConditionModel(variable="selected_option", operator="contains", value="human", action="handoff"),
            ConditionModel(variable="selected_option", operator="contains", value="a", action="more"),
        ]

    def test_first_declared_condition_wins(self):
        match = first_match(self.conditions, {"selected_option": "I'd like to speak with a human"})
        assert match.action == "handoff"

    def test_later_condition_when_first_fails(self):
        match = first_match(self.conditions, {"selected_option": "another question"})
        assert match.action == "more"

    def test_no_match(self):
        assert first_match(self.conditions, {"selected_option": "xyz"}) is None

    def test_missing_variable_reads_as_empty(self):
        assert first_match(self.conditions, {}) is None

    def test_numeric_value_coerced_to_string(self):
        condition = ConditionModel(variable="score", operator="greater_than", value=7, action="promoter")
        assert condition.value == "7"
        assert first_match([condition], {"score": "9"}) is condition

    def test_evaluations_reported_until_first_match(self):
        seen = []
        first_match(self.conditions, {"selected_option": "human"},
                    on_evaluated=lambda index, condition, result: seen.append((index, condition.action, result)))
        assert seen == [(0, "handoff", True)]

        seen.clear()
        first_match(self.conditions, {"selected_option": "xyz"},
                    on_evaluated=lambda index, condition, result: seen.append((index, result)))
        assert seen == [(0, False), (1, False)]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
