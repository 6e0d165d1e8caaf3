"""
Engine Configuration.

Messages, limits and collaborator settings shared by every conversation
an engine runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from botforge_flow.debug.config import DebugConfig
from botforge_flow.util import const


@dataclass
class EngineConfig:
    """
    Configuration for the flow traversal engine.

    Attributes:
        fallback_message: Re-prompt when a conditional has no match and no default edge
        invalid_option_message: Re-prompt when a reply matches no question option
        end_message: Emitted when a conversation ends on an intentionally terminal node
        dead_end_message: Emitted when traversal stops on a node that should not end a conversation
        upgrade_message: Replaces the content of a gated node after a plan downgrade
        webhook_failure_message: Emitted when a webhook fails and no failure edge exists
        default_webhook_timeout: Used when a webhook config omits its timeout
        max_auto_steps: Pass-through hops allowed in one turn before traversal is aborted
        chatbot_context: Business description injected into AI prompts
        faq_entries: [{question, answer, keywords}] used by AI nodes
        llm: MagicLLM client arguments (engine, model, api_key, ...)
        debug: Attach a DebugCollector to each conversation
        debug_config: Filtering for the collector
    """

    fallback_message: str = const.DEFAULT_FALLBACK_MESSAGE
    invalid_option_message: str = const.DEFAULT_INVALID_OPTION_MESSAGE
    end_message: str = const.DEFAULT_END_MESSAGE
    dead_end_message: str = const.DEFAULT_DEAD_END_MESSAGE
    upgrade_message: str = const.DEFAULT_UPGRADE_MESSAGE
    webhook_failure_message: str = const.DEFAULT_WEBHOOK_FAILURE_MESSAGE
    default_webhook_timeout: float = 30.0
    max_auto_steps: int = 50
    chatbot_context: str = ''
    faq_entries: List[Dict[str, Any]] = field(default_factory=list)
    llm: Optional[Dict[str, Any]] = None
    debug: bool = False
    debug_config: DebugConfig = field(default_factory=DebugConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineConfig":
        if not data:
            return cls()
        base = cls()
        debug_config = data.get("debug_config")
        return cls(
            fallback_message=data.get("fallback_message", base.fallback_message),
            invalid_option_message=data.get("invalid_option_message", base.invalid_option_message),
            end_message=data.get("end_message", base.end_message),
            dead_end_message=data.get("dead_end_message", base.dead_end_message),
            upgrade_message=data.get("upgrade_message", base.upgrade_message),
            webhook_failure_message=data.get("webhook_failure_message", base.webhook_failure_message),
            default_webhook_timeout=float(data.get("default_webhook_timeout", base.default_webhook_timeout)),
            max_auto_steps=int(data.get("max_auto_steps", base.max_auto_steps)),
            chatbot_context=data.get("chatbot_context", base.chatbot_context),
            faq_entries=list(data.get("faq_entries", base.faq_entries)),
            llm=data.get("llm", base.llm),
            debug=bool(data.get("debug", base.debug)),
            debug_config=(
                debug_config if isinstance(debug_config, DebugConfig)
                else DebugConfig.from_dict(debug_config)
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fallback_message": self.fallback_message,
            "invalid_option_message": self.invalid_option_message,
            "end_message": self.end_message,
            "dead_end_message": self.dead_end_message,
            "upgrade_message": self.upgrade_message,
            "webhook_failure_message": self.webhook_failure_message,
            "default_webhook_timeout": self.default_webhook_timeout,
            "max_auto_steps": self.max_auto_steps,
            "chatbot_context": self.chatbot_context,
            "faq_entries": list(self.faq_entries),
            "llm": self.llm,
            "debug": self.debug,
            "debug_config": self.debug_config.to_dict(),
        }
