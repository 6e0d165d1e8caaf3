import logging
import math
from typing import Callable, Optional, Sequence, Mapping, Any

from botforge_flow.models.factory.Nodes.ConditionalNodeModel import (
    ConditionModel,
    ConditionOperator,
    normalize_operator,
)

logger = logging.getLogger(__name__)


def _as_number(value: str) -> Optional[float]:
    try:
        number = float(value.strip())
    except (ValueError, AttributeError):
        return None
    # "nan" and "inf" parse but do not compare meaningfully
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def evaluate(operator, left: str, right: str) -> bool:
    """
    Compare a variable value (`left`) with a condition operand (`right`).

    equals / not_equals are case-sensitive exact comparisons; contains is a
    case-insensitive substring test; greater_than / less_than compare numerically
    when both sides parse as numbers and lexicographically otherwise.
    Unknown operators evaluate to False.
    """
    left = '' if left is None else str(left)
    right = '' if right is None else str(right)
    try:
        op = ConditionOperator(normalize_operator(operator))
    except ValueError:
        logger.warning("Unknown condition operator %r; treating as no match", operator)
        return False

    if op == ConditionOperator.EQUALS:
        return left == right
    if op == ConditionOperator.NOT_EQUALS:
        return left != right
    if op == ConditionOperator.CONTAINS:
        return right.lower() in left.lower()

    lnum, rnum = _as_number(left), _as_number(right)
    if lnum is not None and rnum is not None:
        return lnum > rnum if op == ConditionOperator.GREATER_THAN else lnum < rnum
    return left > right if op == ConditionOperator.GREATER_THAN else left < right


def first_match(conditions: Sequence[ConditionModel], variables: Mapping[str, Any],
                on_evaluated: Optional[Callable[[int, ConditionModel, bool], None]] = None) -> Optional[ConditionModel]:
    """
    Return the first condition, in declared order, that holds; missing variables read as ''.

    `on_evaluated(index, condition, result)` is called for every condition tried.
    """
    for index, condition in enumerate(conditions):
        result = evaluate(condition.operator, variables.get(condition.variable, ''), condition.value)
        if on_evaluated is not None:
            on_evaluated(index, condition, result)
        if result:
            return condition
    return None
