"""
Debug Event Collection and Aggregation.

A DebugCollector is attached to one conversation and folds its events into a
ConversationTraceSummary: the path walked, the fallbacks hit and the errors seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import DebugConfig
from .events import DEFAULT_SEVERITY, DebugEvent, DebugEventSeverity, DebugEventType

logger = logging.getLogger(__name__)


@dataclass
class ConversationTraceSummary:
    conversation_id: str
    visited_nodes: List[str] = field(default_factory=list)
    traversed_edges: List[Dict[str, Optional[str]]] = field(default_factory=list)
    conditions: List[Dict[str, Any]] = field(default_factory=list)
    fallbacks: int = 0
    gate_blocks: int = 0
    webhook_calls: int = 0
    webhook_failures: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    event_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "visited_nodes": list(self.visited_nodes),
            "traversed_edges": list(self.traversed_edges),
            "conditions": list(self.conditions),
            "fallbacks": self.fallbacks,
            "gate_blocks": self.gate_blocks,
            "webhook_calls": self.webhook_calls,
            "webhook_failures": self.webhook_failures,
            "errors": list(self.errors),
            "event_count": self.event_count,
        }


class DebugCollector:
    """
    Collects the debug events of one conversation.

    Example:
        collector = DebugCollector(conversation_id="abc123")
        collector.record(DebugEventType.NODE_ENTERED, node_id="start-1")
        summary = collector.get_summary()
    """

    def __init__(self, conversation_id: str, config: Optional[DebugConfig] = None):
        self._conversation_id = conversation_id
        self._config = config or DebugConfig()
        self._events: List[DebugEvent] = []
        self._sequence = 0

    @property
    def conversation_id(self) -> str:
        return self._conversation_id

    @property
    def events(self) -> List[DebugEvent]:
        return list(self._events)

    def record(self,
               event_type: DebugEventType,
               severity: Optional[DebugEventSeverity] = None,
               node_id: Optional[str] = None,
               node_type: Optional[str] = None,
               **payload) -> Optional[DebugEvent]:
        """Build an event, filter it through the config and keep it if it passes."""
        self._sequence += 1
        event = DebugEvent(
            event_type=event_type,
            severity=severity or DEFAULT_SEVERITY.get(event_type, DebugEventSeverity.INFO),
            conversation_id=self._conversation_id,
            sequence_number=self._sequence,
            node_id=node_id,
            node_type=node_type,
            payload=self._config.sanitize(payload),
        )
        return event if self.collect(event) else None

    def collect(self, event: DebugEvent) -> bool:
        if not self._config.should_include(event):
            return False
        self._events.append(event)
        if self._config.emit_to_log:
            logger.log(self._config.log_level_value, "[%s] %s node=%s %s",
                       self._conversation_id, event.event_type.value, event.node_id, event.payload)
        return True

    def get_summary(self) -> ConversationTraceSummary:
        summary = ConversationTraceSummary(conversation_id=self._conversation_id)
        for event in self._events:
            summary.event_count += 1
            etype = event.event_type
            if etype == DebugEventType.NODE_ENTERED and event.node_id:
                summary.visited_nodes.append(event.node_id)
            elif etype == DebugEventType.EDGE_TRAVERSED:
                summary.traversed_edges.append({
                    "edge_id": event.payload.get("edge_id"),
                    "source": event.node_id,
                    "target": event.payload.get("target"),
                })
            elif etype == DebugEventType.CONDITION_EVALUATED:
                summary.conditions.append({"node_id": event.node_id, **event.payload})
            elif etype == DebugEventType.FALLBACK:
                summary.fallbacks += 1
            elif etype == DebugEventType.GATE_BLOCKED:
                summary.gate_blocks += 1
            elif etype == DebugEventType.WEBHOOK_CALLED:
                summary.webhook_calls += 1
            elif etype == DebugEventType.WEBHOOK_FAILED:
                summary.webhook_failures += 1
            if event.is_error:
                summary.errors.append({
                    "event_type": etype.value,
                    "node_id": event.node_id,
                    "message": event.payload.get("message") or event.payload.get("error_message"),
                })
        return summary

    def clear(self) -> None:
        self._events.clear()
        self._sequence = 0
