"""
Conversation execution for published flow graphs.

- EngineConfig: messages, limits and collaborator settings
- ConversationState / VariableStore: private per-conversation state
- FlowTraversalEngine: state machine over one validated graph
- FlowStore / ConversationDispatcher: published graphs and per-conversation turn serialization
"""

from botforge_flow.execution.config import EngineConfig
from botforge_flow.execution.conversation_state import ConversationState, VariableStore
from botforge_flow.execution.traversal_engine import FlowTraversalEngine
from botforge_flow.execution.conversation_dispatcher import ConversationDispatcher, FlowStore

__all__ = [
    "EngineConfig",
    "ConversationState",
    "VariableStore",
    "FlowTraversalEngine",
    "FlowStore",
    "ConversationDispatcher",
]
