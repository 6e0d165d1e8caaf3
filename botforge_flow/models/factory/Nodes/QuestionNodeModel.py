from typing import Tuple

from pydantic import Field, field_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel
from botforge_flow.util.const import VAR_SELECTED_OPTION


class QuestionNodeModel(BaseNodeModel):
    """
    Multiple-choice prompt.

    Example usage in JSON:
        {
            "id": "question-1",
            "type": "question",
            "config": {
                "content": "How can I help you today?",
                "options": ["Pricing", "Support", "Talk to a human"],
                "variable": "topic"
            }
        }
    """
    content: str = Field(..., min_length=1)
    options: Tuple[str, ...] = Field(..., min_length=1)
    variable: str = VAR_SELECTED_OPTION

    @field_validator('options')
    @classmethod
    def validate_options(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        cleaned = tuple(o.strip() for o in v)
        if any(not o for o in cleaned):
            raise ValueError("Question options cannot be empty")
        return cleaned
