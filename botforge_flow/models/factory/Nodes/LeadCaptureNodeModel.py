from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from botforge_flow.models.factory.Nodes.BaseNodeModel import BaseNodeModel


class LeadFieldModel(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    name: str = Field(..., min_length=1)
    type: Literal['text', 'email', 'phone', 'number'] = 'text'
    required: bool = True
    label: Optional[str] = None

    @property
    def prompt_label(self) -> str:
        return self.label or self.name.replace('_', ' ')


class LeadCaptureNodeModel(BaseNodeModel):
    """Collects contact details, one field per turn, in declared order."""
    fields: Tuple[LeadFieldModel, ...] = Field(..., min_length=1)

    @field_validator('fields', mode='before')
    @classmethod
    def coerce_field_names(cls, v: Any) -> Any:
        # "fields": ["name", "email"] is shorthand for text fields
        if isinstance(v, (list, tuple)):
            return [{'name': f} if isinstance(f, str) else f for f in v]
        return v
