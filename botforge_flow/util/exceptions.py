"""
Exceptions raised by botforge_flow.

Most failure modes of a conversation are values (validation issues, fallbacks,
external call failures). The classes here cover the cases that must stop the
caller: authoring a gated node type, publishing an invalid graph, and internal
invariant violations that make traversal impossible.
"""

from typing import List, Optional


class BotForgeFlowError(Exception):
    """Base class for all botforge_flow errors."""


class FeatureGateError(BotForgeFlowError):
    """An author tried to place or connect a node type their plan does not include."""

    def __init__(self, node_type: str, plan: str, message: Optional[str] = None):
        self.node_type = node_type
        self.plan = plan
        super().__init__(
            message or f"Node type '{node_type}' is not available on the '{plan}' plan"
        )


class FlowValidationError(BotForgeFlowError):
    """A graph failed structural validation where a valid one was required."""

    def __init__(self, errors: List, message: Optional[str] = None):
        self.errors = list(errors)
        kinds = sorted({str(getattr(e, 'kind', e)) for e in self.errors})
        super().__init__(
            message or f"Flow graph is invalid ({len(self.errors)} issue(s): {', '.join(kinds)})"
        )


class FlowIntegrityError(BotForgeFlowError):
    """Fatal: the graph reaching the engine is corrupt, so traversal must halt."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        self.node_id = node_id
        super().__init__(message)


class ConversationNotFoundError(BotForgeFlowError, KeyError):
    """No live conversation (or published flow) exists under the given id."""

    def __str__(self):
        return str(self.args[0]) if self.args else 'conversation not found'
