"""
Traversal debug events.

Every traversal fact worth tracing (a node entered, a condition evaluated,
a webhook failing) is recorded as a DebugEvent, so events can be filtered,
collected and serialized the same way regardless of where they came from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4


class DebugEventType(Enum):
    """What happened during a turn, grouped below by the part of traversal that reports it."""

    # Lifecycle events
    CONVERSATION_START = "conversation_start"
    CONVERSATION_END = "conversation_end"
    NODE_ENTERED = "node_entered"
    INPUT_CAPTURED = "input_captured"

    # Routing events
    CONDITION_EVALUATED = "condition_evaluated"
    EDGE_TRAVERSED = "edge_traversed"
    VARIANT_ASSIGNED = "variant_assigned"

    # Fallback events
    FALLBACK = "fallback"
    GATE_BLOCKED = "gate_blocked"

    # External calls
    WEBHOOK_CALLED = "webhook_called"
    WEBHOOK_FAILED = "webhook_failed"
    LLM_GENERATION = "llm_generation"

    # Error events
    VALIDATION_ERROR = "validation_error"
    INTEGRITY_ERROR = "integrity_error"


class DebugEventSeverity(Enum):
    """
    Ordered lowest to highest. WARN marks a designed non-happy path (fallback,
    gate block); ERROR marks something that stopped or broke a turn.
    """
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER[self]


_SEVERITY_ORDER = {
    DebugEventSeverity.TRACE: 0,
    DebugEventSeverity.DEBUG: 1,
    DebugEventSeverity.INFO: 2,
    DebugEventSeverity.WARN: 3,
    DebugEventSeverity.ERROR: 4,
}

# Severity used when a caller does not give one
DEFAULT_SEVERITY = {
    DebugEventType.CONDITION_EVALUATED: DebugEventSeverity.DEBUG,
    DebugEventType.EDGE_TRAVERSED: DebugEventSeverity.DEBUG,
    DebugEventType.INPUT_CAPTURED: DebugEventSeverity.DEBUG,
    DebugEventType.FALLBACK: DebugEventSeverity.WARN,
    DebugEventType.GATE_BLOCKED: DebugEventSeverity.WARN,
    DebugEventType.WEBHOOK_FAILED: DebugEventSeverity.ERROR,
    DebugEventType.VALIDATION_ERROR: DebugEventSeverity.ERROR,
    DebugEventType.INTEGRITY_ERROR: DebugEventSeverity.ERROR,
}


@dataclass
class DebugEvent:
    """
    One traced fact about one conversation.

    `sequence_number` orders events within the conversation; `node_type` is
    filled in by the engine from the published graph. `payload` holds the
    event-specific fields after redaction and truncation.
    """

    event_id: str = field(default_factory=lambda: uuid4().hex)
    event_type: DebugEventType = DebugEventType.NODE_ENTERED
    severity: DebugEventSeverity = DebugEventSeverity.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    conversation_id: str = ""
    sequence_number: int = 0
    node_id: Optional[str] = None
    node_type: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.severity == DebugEventSeverity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "conversation_id": self.conversation_id,
            "sequence_number": self.sequence_number,
            "node_id": self.node_id,
            "node_type": self.node_type,
            "payload": self.payload,
            "tags": self.tags,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DebugEvent:
        return cls(
            event_id=data.get("event_id", uuid4().hex),
            event_type=DebugEventType(data.get("event_type", "node_entered")),
            severity=DebugEventSeverity(data.get("severity", "info")),
            timestamp=(
                datetime.fromisoformat(data["timestamp"])
                if "timestamp" in data
                else datetime.now(UTC)
            ),
            conversation_id=data.get("conversation_id", ""),
            sequence_number=data.get("sequence_number", 0),
            node_id=data.get("node_id"),
            node_type=data.get("node_type"),
            payload=data.get("payload", {}),
            tags=data.get("tags", []),
        )
