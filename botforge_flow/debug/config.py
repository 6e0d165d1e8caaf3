"""
Debug Configuration.

Controls which traversal events are kept, how payloads are sanitized,
and whether events are mirrored to the log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from botforge_flow.util.telemetry import _redact

from .events import DebugEvent, DebugEventType, DebugEventSeverity


@dataclass
class DebugConfig:
    """
    Which traversal events a conversation keeps, and in what form.

    Severity, event type and node id filters are applied in that order. Payloads
    are redacted (sensitive keys plus `additional_redact_keys`) and then
    truncated to `max_payload_length` characters and `max_list_items` items.
    With `emit_to_log` every kept event is also logged at `log_level`.
    """

    enabled: bool = True

    # Filtering
    min_severity: DebugEventSeverity = DebugEventSeverity.DEBUG
    include_event_types: Optional[Set[DebugEventType]] = None
    exclude_event_types: Set[DebugEventType] = field(default_factory=set)
    include_nodes: Optional[Set[str]] = None
    exclude_nodes: Set[str] = field(default_factory=set)

    # Redaction
    redact_sensitive: bool = True
    additional_redact_keys: Set[str] = field(default_factory=set)

    # Truncation
    max_payload_length: int = 1000
    max_list_items: int = 20

    # Logging
    emit_to_log: bool = False
    log_level: str = "DEBUG"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DebugConfig":
        """
        Create a DebugConfig from a dictionary (e.g., from engine settings JSON).

        A "preset" key selects a base configuration; remaining keys override it.

        ```json
        {"preset": "verbose", "exclude_nodes": ["start-1"]}
        ```
        """
        if not data:
            return cls()
        data = dict(data)
        preset_name = data.pop("preset", None)
        base = get_preset(preset_name) if preset_name else cls()

        if data.get("include_event_types"):
            data["include_event_types"] = {
                DebugEventType(et) if isinstance(et, str) else et
                for et in data["include_event_types"]
            }
        if data.get("exclude_event_types"):
            data["exclude_event_types"] = {
                DebugEventType(et) if isinstance(et, str) else et
                for et in data["exclude_event_types"]
            }
        if isinstance(data.get("min_severity"), str):
            data["min_severity"] = DebugEventSeverity(data["min_severity"])
        for key in ("include_nodes", "exclude_nodes", "additional_redact_keys"):
            if data.get(key):
                data[key] = set(data[key])

        return cls(
            enabled=data.get("enabled", base.enabled),
            min_severity=data.get("min_severity", base.min_severity),
            include_event_types=data.get("include_event_types", base.include_event_types),
            exclude_event_types=data.get("exclude_event_types", base.exclude_event_types),
            include_nodes=data.get("include_nodes", base.include_nodes),
            exclude_nodes=data.get("exclude_nodes", base.exclude_nodes),
            redact_sensitive=data.get("redact_sensitive", base.redact_sensitive),
            additional_redact_keys=data.get("additional_redact_keys", base.additional_redact_keys),
            max_payload_length=data.get("max_payload_length", base.max_payload_length),
            max_list_items=data.get("max_list_items", base.max_list_items),
            emit_to_log=data.get("emit_to_log", base.emit_to_log),
            log_level=data.get("log_level", base.log_level),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "min_severity": self.min_severity.value,
            "include_event_types": [et.value for et in self.include_event_types] if self.include_event_types else None,
            "exclude_event_types": [et.value for et in self.exclude_event_types],
            "include_nodes": sorted(self.include_nodes) if self.include_nodes else None,
            "exclude_nodes": sorted(self.exclude_nodes),
            "redact_sensitive": self.redact_sensitive,
            "additional_redact_keys": sorted(self.additional_redact_keys),
            "max_payload_length": self.max_payload_length,
            "max_list_items": self.max_list_items,
            "emit_to_log": self.emit_to_log,
            "log_level": self.log_level,
        }

    def should_include(self, event: DebugEvent) -> bool:
        if not self.enabled:
            return False
        if event.severity.rank < self.min_severity.rank:
            return False
        if self.include_event_types is not None and event.event_type not in self.include_event_types:
            return False
        if event.event_type in self.exclude_event_types:
            return False
        if event.node_id is not None:
            if self.include_nodes is not None and event.node_id not in self.include_nodes:
                return False
            if event.node_id in self.exclude_nodes:
                return False
        return True

    def sanitize(self, payload: Any) -> Any:
        """Redact sensitive keys and truncate long strings and lists."""
        if self.redact_sensitive:
            payload = _redact(payload, self.additional_redact_keys)
        return self._truncate(payload)

    def _truncate(self, value: Any) -> Any:
        if isinstance(value, str) and len(value) > self.max_payload_length:
            return value[:self.max_payload_length] + '...'
        if isinstance(value, dict):
            return {k: self._truncate(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._truncate(v) for v in list(value)[:self.max_list_items]]
        return value

    @property
    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.DEBUG


def default_config() -> DebugConfig:
    return DebugConfig()


def minimal_config() -> DebugConfig:
    """Warnings and errors only, short payloads."""
    return DebugConfig(
        min_severity=DebugEventSeverity.WARN,
        max_payload_length=200,
    )


def verbose_config() -> DebugConfig:
    """Everything including trace events, mirrored to the log."""
    return DebugConfig(
        min_severity=DebugEventSeverity.TRACE,
        max_payload_length=5000,
        max_list_items=100,
        emit_to_log=True,
    )


def errors_only_config() -> DebugConfig:
    return DebugConfig(
        min_severity=DebugEventSeverity.ERROR,
        include_event_types={
            DebugEventType.WEBHOOK_FAILED,
            DebugEventType.VALIDATION_ERROR,
            DebugEventType.INTEGRITY_ERROR,
        },
    )


# Named presets accepted by DebugConfig.from_dict({"preset": ...})
PRESETS = {
    "default": default_config,
    "minimal": minimal_config,
    "verbose": verbose_config,
    "errors_only": errors_only_config,
}


def get_preset(name: str) -> DebugConfig:
    """Fresh DebugConfig for a preset name; raises ValueError for an unknown name."""
    if name not in PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {list(PRESETS.keys())}"
        )
    return PRESETS[name]()
