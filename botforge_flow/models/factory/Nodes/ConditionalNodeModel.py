"""
ConditionalNodeModel - Pydantic validation model for conditional node configuration.

A conditional node owns an ordered list of conditions. Order is priority:
the first condition that matches decides which outgoing edge is taken.
"""

import re
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class ConditionOperator(str, Enum):
    EQUALS = 'equals'
    NOT_EQUALS = 'not_equals'
    CONTAINS = 'contains'
    GREATER_THAN = 'greater_than'
    LESS_THAN = 'less_than'


_SYMBOLS = {
    '==': ConditionOperator.EQUALS,
    '!=': ConditionOperator.NOT_EQUALS,
    '>': ConditionOperator.GREATER_THAN,
    '<': ConditionOperator.LESS_THAN,
}


def normalize_operator(value: Any) -> Any:
    """Accept 'NotEquals', 'not-equals', 'not_equals' and '!=' alike."""
    if not isinstance(value, str):
        return value
    if value.strip() in _SYMBOLS:
        return _SYMBOLS[value.strip()]
    snake = re.sub(r'(?<!^)(?=[A-Z])', '_', value.strip()).lower()
    return snake.replace('-', '_').replace(' ', '_')


class ConditionModel(BaseModel):
    """
    Example usage in JSON:
        {"variable": "selected_option", "operator": "contains",
         "value": "human", "action": "handoff"}
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    variable: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: str = ''
    action: str = Field(..., min_length=1)

    @field_validator('operator', mode='before')
    @classmethod
    def validate_operator(cls, v: Any) -> Any:
        return normalize_operator(v)

    @field_validator('value', mode='before')
    @classmethod
    def coerce_value(cls, v: Any) -> Any:
        # Numbers typed into the editor arrive as JSON numbers
        if v is None:
            return ''
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ConditionalNodeModel(BaseNodeModel):
    conditions: Tuple[ConditionModel, ...] = Field(..., min_length=1)
    fallbackMessage: Optional[str] = None

    @property
    def actions(self) -> Tuple[str, ...]:
        seen = []
        for condition in self.conditions:
            if condition.action not in seen:
                seen.append(condition.action)
        return tuple(seen)
