"""
Traversal debugging: structured events, filtering configuration and
per-conversation collection.
"""

from .events import DebugEvent, DebugEventType, DebugEventSeverity
from .config import DebugConfig, get_preset, PRESETS
from .collector import DebugCollector, ConversationTraceSummary

__all__ = [
    'DebugEvent',
    'DebugEventType',
    'DebugEventSeverity',
    'DebugConfig',
    'get_preset',
    'PRESETS',
    'DebugCollector',
    'ConversationTraceSummary',
]
