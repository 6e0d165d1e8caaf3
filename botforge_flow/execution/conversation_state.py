from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional
from uuid import uuid4

from botforge_flow.models.model_turn_result import ConversationStatus
from botforge_flow.util.const import PLAN_FREE


class VariableStore(dict):
    """
    Per-conversation string key/value memory.

    Every write is coerced to str so interpolation and condition evaluation
    always see text.
    """

    def __setitem__(self, key: str, value: Any) -> None:
        super().__setitem__(str(key), '' if value is None else str(value))

    def update(self, *args, **kwargs) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def setdefault(self, key: str, default: Any = '') -> str:
        if key not in self:
            self[key] = default
        return self[key]

    def text(self, key: str) -> str:
        return self.get(key, '')

    def snapshot(self) -> Dict[str, str]:
        return dict(self)


@dataclass
class ConversationState:
    """
    Private state of one conversation: where it is and what it knows.

    Owned by exactly one conversation and only mutated by the engine while
    that conversation's turn lock is held.
    """
    conversation_id: str = field(default_factory=lambda: uuid4().hex)
    chatbot_id: Optional[str] = None
    user_identifier: Optional[str] = None
    plan: str = PLAN_FREE
    current_node_id: Optional[str] = None
    status: ConversationStatus = ConversationStatus.NEW
    variables: VariableStore = field(default_factory=VariableStore)
    # Progress inside the current node (lead field index, survey question index, ...)
    node_progress: Dict[str, Any] = field(default_factory=dict)
    test_id: Optional[str] = None
    variant: Optional[str] = None
    visited: List[str] = field(default_factory=list)
    transcript: List[Dict[str, str]] = field(default_factory=list)
    messages_count: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    trace: Any = None

    @property
    def is_finished(self) -> bool:
        return self.status.is_finished

    def touch(self) -> None:
        self.updated_at = datetime.now(UTC)

    @property
    def session_duration(self) -> float:
        return (self.updated_at - self.started_at).total_seconds()
