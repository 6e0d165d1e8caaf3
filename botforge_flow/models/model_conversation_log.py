from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class ConversationOutcome(BaseModel):
    """Outcome record reported outward when an experiment conversation ends."""
    conversation_id: str
    chatbot_id: Optional[str] = None
    test_id: Optional[str] = None
    variant: Optional[Literal['A', 'B']] = None
    user_identifier: Optional[str] = None
    goal_achieved: bool = False
    conversion_value: Optional[float] = None
    session_duration: float = 0.0
    messages_count: int = 0
    ended_at: Optional[datetime] = None
