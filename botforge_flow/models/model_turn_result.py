from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ConversationStatus(str, Enum):
    NEW = 'new'
    AWAITING_INPUT = 'awaiting_input'
    COMPLETED = 'completed'
    DEAD_END = 'dead_end'
    HALTED = 'halted'
    UPGRADE_REQUIRED = 'upgrade_required'

    @property
    def is_finished(self) -> bool:
        return self in (ConversationStatus.COMPLETED, ConversationStatus.DEAD_END, ConversationStatus.HALTED)


class NodeOutput(BaseModel):
    """What the delivery channel shows for one traversal step."""
    node_id: str
    node_type: str
    kind: Literal['content', 'fallback', 'upgrade_required', 'end'] = 'content'
    content: str = ''
    directives: Dict[str, Any] = Field(default_factory=dict)


class ExternalCallFailure(BaseModel):
    node_id: str
    reason: Literal['timeout', 'http_status', 'connection']
    message: str = ''
    status_code: Optional[int] = None


class TurnResult(BaseModel):
    conversation_id: str
    node_id: Optional[str] = None
    status: ConversationStatus
    outputs: List[NodeOutput] = Field(default_factory=list)
    fallback: bool = False
    failure: Optional[ExternalCallFailure] = None
    intent: Optional[str] = None
    confidence: Optional[float] = None
    variant: Optional[Literal['A', 'B']] = None

    @property
    def messages(self) -> List[str]:
        return [o.content for o in self.outputs if o.content]
