from typing import Any, Optional

from pydantic import model_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class AiResponseNodeModel(BaseNodeModel):
    """
    AI-generated reply. Waits for the user's message and answers it with the
    configured language model (or a keyword fallback).
    """
    systemPrompt: Optional[str] = None
    variable: str = 'ai_response'
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    @model_validator(mode='before')
    @classmethod
    def resolve_prompt_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get('systemPrompt') is None:
            for alias in ('system_prompt', 'prompt'):
                if data.get(alias):
                    return {**data, 'systemPrompt': data[alias]}
        return data
