from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class FileReference(BaseModel):
    name: str = Field(..., min_length=1)
    size: int = Field(default=0, ge=0, description="Bytes")
    mime_type: Optional[str] = None
    url: Optional[str] = None

    @property
    def extension(self) -> str:
        return self.name.rsplit('.', 1)[-1].lower() if '.' in self.name else ''


class UserEvent(BaseModel):
    """
    A single inbound user event for one conversation turn: free text, a clicked
    option, or an uploaded file reference.
    """
    kind: Literal['text', 'option', 'file'] = 'text'
    text: Optional[str] = None
    option: Optional[str] = None
    file: Optional[FileReference] = None

    @model_validator(mode='after')
    def infer_kind(self):
        if self.file is not None:
            self.kind = 'file'
        elif self.option is not None:
            self.kind = 'option'
        return self

    @property
    def value(self) -> str:
        """The event flattened to the string recorded as last_user_input."""
        if self.kind == 'file' and self.file is not None:
            return self.file.name
        if self.kind == 'option' and self.option is not None:
            return self.option
        return self.text or ''

    @classmethod
    def coerce(cls, event: Any) -> 'UserEvent':
        if isinstance(event, UserEvent):
            return event
        if isinstance(event, str):
            return cls(text=event)
        if isinstance(event, dict):
            return cls.model_validate(event)
        raise TypeError(f"Unsupported user event type: {type(event).__name__}")
