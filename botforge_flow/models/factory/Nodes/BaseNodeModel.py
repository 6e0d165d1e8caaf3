from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from botforge_flow.util.const import AUTHORING_ONLY_KEYS

NodeTypeId = Literal[
    'start',
    'message',
    'question',
    'ai_response',
    'lead_capture',
    'survey',
    'file_upload',
    'appointment',
    'api_webhook',
    'human_handoff',
    'action',
    'conditional',
]


class NodeTypesModel:
    START = 'start'
    MESSAGE = 'message'
    QUESTION = 'question'
    AI_RESPONSE = 'ai_response'
    LEAD_CAPTURE = 'lead_capture'
    SURVEY = 'survey'
    FILE_UPLOAD = 'file_upload'
    APPOINTMENT = 'appointment'
    API_WEBHOOK = 'api_webhook'
    HUMAN_HANDOFF = 'human_handoff'
    ACTION = 'action'
    CONDITIONAL = 'conditional'


def strip_authoring_bindings(data: Any) -> Any:
    """Drop editor callbacks and selection flags from a raw config mapping."""
    if not isinstance(data, dict):
        return data
    return {
        k: v for k, v in data.items()
        if k not in AUTHORING_ONLY_KEYS and not callable(v)
    }


class BaseNodeModel(BaseModel):
    """
    Base model for all node configuration payloads.
    Configured to accept extra fields from JSON without raising errors.
    The JSON definition is the source of truth; configs are frozen once loaded.
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    label: Optional[str] = None
    content: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def resolve_aliases(cls, data: Any) -> Any:
        """Resolve fields from alternative names (JSON-first approach)."""
        data = strip_authoring_bindings(data)
        if isinstance(data, dict) and data.get('content') is None:
            for alias in ('message', 'text'):
                if isinstance(data.get(alias), str):
                    data = {**data, 'content': data[alias]}
                    break
        return data
