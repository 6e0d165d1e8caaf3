"""
Delivery runtime: published graphs and the live conversations running on them.

`FlowStore` holds the current published graph per chatbot. Publishing swaps
the whole engine reference at once, so a conversation keeps the engine (and
graph) it started with while new conversations pick up the new graph.

`ConversationDispatcher` owns every ConversationState and serializes the
turns of each conversation behind its own asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Callable, Dict, Optional, Tuple, Union

from botforge_flow.debug.events import DebugEventType
from botforge_flow.execution.config import EngineConfig
from botforge_flow.execution.conversation_state import ConversationState
from botforge_flow.execution.traversal_engine import FlowTraversalEngine
from botforge_flow.experiments.variant_selector import select_variant
from botforge_flow.models.ab_test import ABTestModel
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.model_conversation_log import ConversationOutcome
from botforge_flow.models.model_turn_result import TurnResult
from botforge_flow.util.const import PLAN_FREE
from botforge_flow.util.exceptions import ConversationNotFoundError, FlowValidationError
from botforge_flow.util.feature_gate import plan_rank
from botforge_flow.util.graph_validator import validate_flow

logger = logging.getLogger(__name__)


def _as_graph(graph: Union[FlowGraphModel, Dict[str, Any]]) -> FlowGraphModel:
    return graph if isinstance(graph, FlowGraphModel) else FlowGraphModel.model_validate(graph)


class FlowStore:
    """Published graphs, one per chatbot, each wrapped in a ready engine."""

    def __init__(self, config: Optional[EngineConfig] = None, llm_client: Any = None):
        self.config = config or EngineConfig()
        self.llm_client = llm_client
        self._engines: Dict[str, FlowTraversalEngine] = {}
        self._variant_engines: Dict[Tuple[str, str], FlowTraversalEngine] = {}

    def _engine(self, graph: FlowGraphModel) -> FlowTraversalEngine:
        return FlowTraversalEngine(graph, config=self.config, llm_client=self.llm_client)

    def publish(self, chatbot_id: str, graph: Union[FlowGraphModel, Dict[str, Any]]) -> FlowGraphModel:
        """
        Validate `graph` and make it the live graph of `chatbot_id`.

        Raises:
            FlowValidationError: The graph is invalid; the previous graph stays live.
        """
        graph = _as_graph(graph)
        errors = validate_flow(graph)
        if errors:
            logger.warning("Rejected publish for chatbot %s: %d validation error(s)", chatbot_id, len(errors))
            raise FlowValidationError(errors)
        engine = self._engine(graph)
        self._engines[chatbot_id] = engine
        logger.info("Published flow for chatbot %s (%d nodes)", chatbot_id, len(graph.nodes))
        return graph

    def unpublish(self, chatbot_id: str) -> None:
        self._engines.pop(chatbot_id, None)

    def get(self, chatbot_id: str) -> FlowTraversalEngine:
        try:
            return self._engines[chatbot_id]
        except KeyError:
            raise ConversationNotFoundError(f"No published flow for chatbot {chatbot_id!r}") from None

    def graph(self, chatbot_id: str) -> FlowGraphModel:
        return self.get(chatbot_id).graph

    def variant_engine(self, test_id: str, variant: str, flow: FlowGraphModel) -> FlowTraversalEngine:
        key = (test_id, variant)
        engine = self._variant_engines.get(key)
        if engine is None or engine.graph != flow:
            engine = self._engine(flow)
            self._variant_engines[key] = engine
        return engine


@dataclass
class _Session:
    state: ConversationState
    engine: FlowTraversalEngine
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class ConversationDispatcher:
    """
    Routes inbound events to live conversations.

    Args:
        store: Published graphs.
        on_outcome: Called with a ConversationOutcome when a conversation ends.
            May be a plain function or a coroutine function.
    """

    def __init__(self, store: FlowStore,
                 on_outcome: Optional[Callable[[ConversationOutcome], Any]] = None):
        self.store = store
        self.on_outcome = on_outcome
        self._sessions: Dict[str, _Session] = {}

    def __len__(self):
        return len(self._sessions)

    def _session(self, conversation_id: str) -> _Session:
        try:
            return self._sessions[conversation_id]
        except KeyError:
            raise ConversationNotFoundError(f"Unknown conversation {conversation_id!r}") from None

    def _ensure_open(self, conversation_id: str, session: _Session) -> None:
        # Checked under the lock: an earlier event in the queue may have ended it
        if self._sessions.get(conversation_id) is not session:
            raise ConversationNotFoundError(f"Conversation {conversation_id!r} has ended")

    async def start_conversation(self,
                                 chatbot_id: str,
                                 user_identifier: Optional[str] = None,
                                 plan: str = PLAN_FREE,
                                 ab_test: Optional[ABTestModel] = None,
                                 conversation_id: Optional[str] = None) -> TurnResult:
        """
        Open a conversation on the chatbot's published graph, or on an A/B
        variant when `ab_test` is running, and run its first turn.
        """
        plan_rank(plan)
        engine = None
        assignment = None
        if ab_test is not None and ab_test.chatbot_id == chatbot_id:
            assignment = select_variant(ab_test, user_identifier or conversation_id or '')
            if assignment is not None:
                engine = self.store.variant_engine(assignment.test_id, assignment.variant, assignment.flow)
        if engine is None:
            engine = self.store.get(chatbot_id)

        kwargs = {'chatbot_id': chatbot_id, 'user_identifier': user_identifier, 'plan': plan}
        if conversation_id is not None:
            if conversation_id in self._sessions:
                raise ValueError(f"Conversation {conversation_id!r} already exists")
            kwargs['conversation_id'] = conversation_id
        if assignment is not None:
            kwargs['test_id'] = assignment.test_id
            kwargs['variant'] = assignment.variant
        state = engine.new_conversation(**kwargs)
        if assignment is not None:
            engine.emit(state, DebugEventType.VARIANT_ASSIGNED, test_id=assignment.test_id,
                        variant=assignment.variant)

        session = _Session(state=state, engine=engine)
        self._sessions[state.conversation_id] = session
        async with session.lock:
            return await engine.start(state)

    async def handle_event(self, conversation_id: str, event: Any) -> TurnResult:
        """Apply one user event; events for the same conversation run one at a time, in arrival order."""
        session = self._session(conversation_id)
        async with session.lock:
            self._ensure_open(conversation_id, session)
            return await session.engine.advance(session.state, event)

    def get_state(self, conversation_id: str) -> ConversationState:
        return self._session(conversation_id).state

    async def end_conversation(self, conversation_id: str,
                               goal_achieved: bool = False,
                               conversion_value: Optional[float] = None) -> ConversationOutcome:
        """Drop the conversation's state and report its outcome outward."""
        session = self._session(conversation_id)
        async with session.lock:
            self._ensure_open(conversation_id, session)
            state = session.state
            state.touch()
            outcome = ConversationOutcome(
                conversation_id=state.conversation_id,
                chatbot_id=state.chatbot_id,
                test_id=state.test_id,
                variant=state.variant,
                user_identifier=state.user_identifier,
                goal_achieved=goal_achieved,
                conversion_value=conversion_value,
                session_duration=state.session_duration,
                messages_count=state.messages_count,
                ended_at=datetime.now(UTC),
            )
            self._sessions.pop(conversation_id, None)
        logger.info("Conversation %s closed (goal_achieved=%s)", conversation_id, goal_achieved)

        if self.on_outcome is not None:
            result = self.on_outcome(outcome)
            if inspect.isawaitable(result):
                await result
        return outcome
