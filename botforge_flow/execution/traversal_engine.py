"""
Flow Traversal Engine - turns a validated flow graph into a conversation state machine.

One engine serves every conversation of one published graph. The engine and
the graph are read-only during traversal; everything that changes lives in
the ConversationState handed to `start` and `advance`.

A turn runs the node the conversation is on, then keeps following edges
through pass-through nodes (start, message without a variable, webhook,
action, handoff, conditional) until it reaches a node that waits for input
or the conversation ends.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional

from botforge_flow.debug.collector import DebugCollector
from botforge_flow.debug.events import DebugEventSeverity, DebugEventType
from botforge_flow.execution.config import EngineConfig
from botforge_flow.execution.conversation_state import ConversationState
from botforge_flow.models.factory.EdgeNodeModel import EdgeNodeModel
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.model_turn_result import ConversationStatus, NodeOutput, TurnResult
from botforge_flow.models.model_user_event import UserEvent
from botforge_flow.node_system import Node, NodeContext
from botforge_flow.registry import NODE_TYPES, create_node
from botforge_flow.util.condition_evaluator import first_match
from botforge_flow.util.const import (
    NODE_EVENT_CONTENT,
    NODE_EVENT_FAILURE,
    NODE_EVENT_ROUTE,
    OUTPUT_END,
    OUTPUT_FALLBACK,
    OUTPUT_UPGRADE_REQUIRED,
    VAR_LAST_USER_INPUT,
)
from botforge_flow.util.exceptions import FlowIntegrityError
from botforge_flow.util.feature_gate import can_execute
from botforge_flow.util.graph_validator import validate_flow
from botforge_flow.util.llm_client import build_llm_client

logger = logging.getLogger(__name__)


class _Turn:
    """Accumulates what one call to `start` or `advance` produces."""

    def __init__(self):
        self.outputs: List[NodeOutput] = []
        self.fallback = False
        self.failure = None
        self.intent: Optional[str] = None
        self.confidence: Optional[float] = None
        self.steps = 0


class FlowTraversalEngine:
    """
    Executes one flow graph for any number of conversations.

    Args:
        graph: The published graph. It must pass `validate_flow`.
        config: Messages and limits; defaults to EngineConfig().
        llm_client: Client for ai_response nodes. Built from `config.llm` when omitted.
        debug: Overrides `config.debug`.

    Raises:
        FlowIntegrityError: The graph is structurally invalid.
    """

    def __init__(self,
                 graph: FlowGraphModel,
                 config: Optional[EngineConfig] = None,
                 llm_client: Any = None,
                 debug: Optional[bool] = None):
        self.graph = graph
        self.config = config or EngineConfig()
        self.debug = self.config.debug if debug is None else debug

        errors = validate_flow(graph)
        if errors:
            for error in errors:
                logger.error("Refusing invalid graph: %s: %s", error.kind.value, error.message)
            raise FlowIntegrityError(
                f"Flow graph failed validation with {len(errors)} error(s): "
                + "; ".join(e.message for e in errors)
            )

        self.nodes: Dict[str, Node] = {node.id: create_node(node, self.debug) for node in graph.nodes}
        self.node_types: Dict[str, str] = graph.node_types()
        self.edges: Dict[str, List[EdgeNodeModel]] = defaultdict(list)
        for edge in graph.edges:
            self.edges[edge.source].append(edge)
        self.start_id: str = graph.start_nodes()[0].id
        self.llm_client = llm_client if llm_client is not None else build_llm_client(self.config.llm)
        logger.info("FlowTraversalEngine ready: %d node(s), %d edge(s), start=%s",
                    len(self.nodes), len(graph.edges), self.start_id)

    # ------------------------------------------------------------------ state

    def new_conversation(self, **kwargs) -> ConversationState:
        """Create a fresh ConversationState; keyword arguments are passed to the dataclass."""
        state = ConversationState(**kwargs)
        if self.debug and state.trace is None:
            state.trace = DebugCollector(state.conversation_id, self.config.debug_config)
        return state

    def _context(self, state: ConversationState) -> NodeContext:
        return NodeContext(
            variables=state.variables,
            progress=state.node_progress,
            settings=self.config,
            llm_client=self.llm_client,
            emit=lambda event_type, severity=None, node_id=None, **payload: self.emit(
                state, event_type, severity=severity, node_id=node_id, **payload),
            transcript=state.transcript,
        )

    def emit(self, state: ConversationState, event_type: DebugEventType,
              severity: Optional[DebugEventSeverity] = None, node_id: Optional[str] = None, **payload) -> None:
        if state.trace is None:
            return
        state.trace.record(event_type, severity=severity, node_id=node_id,
                           node_type=self.node_types.get(node_id) if node_id else None, **payload)

    def _result(self, state: ConversationState, turn: _Turn) -> TurnResult:
        for output in turn.outputs:
            if output.content:
                state.transcript.append({'role': 'bot', 'node_id': output.node_id, 'content': output.content})
        state.touch()
        return TurnResult(
            conversation_id=state.conversation_id,
            node_id=state.current_node_id,
            status=state.status,
            outputs=turn.outputs,
            fallback=turn.fallback,
            failure=turn.failure,
            intent=turn.intent,
            confidence=turn.confidence,
            variant=state.variant,
        )

    # ------------------------------------------------------------------ public API

    async def start(self, state: ConversationState) -> TurnResult:
        """Place a NEW conversation on the start node and run until it needs input."""
        if state.status != ConversationStatus.NEW:
            raise ValueError(f"Conversation {state.conversation_id} was already started")
        logger.info("Conversation %s started (chatbot=%s, plan=%s, variant=%s)",
                    state.conversation_id, state.chatbot_id, state.plan, state.variant)
        self.emit(state, DebugEventType.CONVERSATION_START, chatbot_id=state.chatbot_id,
                   plan=state.plan, variant=state.variant)
        turn = _Turn()
        await self._run_from(state, self.start_id, turn)
        return self._result(state, turn)

    async def advance(self, state: ConversationState, event: Any) -> TurnResult:
        """
        Hand one user event to the node the conversation is waiting on.

        Args:
            state: A started conversation.
            event: A UserEvent, a plain string (free text) or a dict
                ({"text": ...}, {"option": ...}, {"file": {...}}).

        Returns:
            TurnResult with the outputs produced until the next wait or the end.
        """
        if state.status == ConversationStatus.NEW:
            raise ValueError(f"Conversation {state.conversation_id} has not been started")
        if state.is_finished:
            logger.debug("Conversation %s is %s; ignoring event", state.conversation_id, state.status.value)
            return self._result(state, _Turn())

        event = UserEvent.coerce(event)
        state.variables[VAR_LAST_USER_INPUT] = event.value
        state.messages_count += 1
        state.transcript.append({'role': 'user', 'node_id': state.current_node_id, 'content': event.value})

        turn = _Turn()
        node_id = state.current_node_id
        node = self._node(node_id)

        # Gated or stalled pass-through nodes are re-run rather than fed the event
        if state.status == ConversationStatus.UPGRADE_REQUIRED or not node.awaits_input():
            await self._run_from(state, node_id, turn)
            return self._result(state, turn)

        if not can_execute(node.node_type, state.plan):
            self._block(state, node, turn)
            return self._result(state, turn)

        ctx = self._context(state)
        capture = await node.receive(event, ctx)
        turn.outputs.extend(capture.outputs)
        turn.intent = capture.intent
        turn.confidence = capture.confidence

        if not capture.accepted:
            turn.fallback = True
            state.status = ConversationStatus.AWAITING_INPUT
            logger.info("Conversation %s: input rejected on %s", state.conversation_id, node_id)
            return self._result(state, turn)
        if not capture.complete:
            state.status = ConversationStatus.AWAITING_INPUT
            return self._result(state, turn)

        await self._follow(state, node_id, turn, route=capture.route)
        return self._result(state, turn)

    def select_edge(self, node_id: str, variables: Dict[str, str]) -> Optional[EdgeNodeModel]:
        """
        The edge traversal would take from `node_id` given `variables`, ignoring failure paths.

        Conditional nodes apply first-match-wins over their declared conditions,
        then the unconditioned default edge. Other nodes take their single edge.
        """
        regular = self._regular_edges(node_id)
        if self.node_types.get(node_id) != 'conditional':
            return regular[0] if regular else None
        matched = first_match(self.graph.get_node(node_id).config.conditions, variables)
        if matched is not None:
            return self._edge_for_action(node_id, matched.action)
        return self._default_edge(node_id)

    # ------------------------------------------------------------------ traversal

    def _node(self, node_id: Optional[str]) -> Node:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise FlowIntegrityError(f"Traversal reached unknown node {node_id!r}", node_id=node_id) from None

    def _regular_edges(self, node_id: str) -> List[EdgeNodeModel]:
        return [edge for edge in self.edges.get(node_id, ()) if not edge.is_failure_path]

    def _failure_edge(self, node_id: str) -> Optional[EdgeNodeModel]:
        for edge in self.edges.get(node_id, ()):
            if edge.is_failure_path:
                return edge
        return None

    def _default_edge(self, node_id: str) -> Optional[EdgeNodeModel]:
        for edge in self._regular_edges(node_id):
            if edge.condition is None:
                return edge
        return None

    def _edge_for_action(self, node_id: str, action: str) -> EdgeNodeModel:
        for edge in self._regular_edges(node_id):
            if edge.condition == action:
                return edge
        raise FlowIntegrityError(f"Condition action {action!r} on {node_id!r} has no outgoing edge",
                                 node_id=node_id)

    def _block(self, state: ConversationState, node: Node, turn: _Turn) -> None:
        logger.warning("Conversation %s: node %s (%s) is gated for plan %s",
                       state.conversation_id, node.node_id, node.node_type, state.plan)
        self.emit(state, DebugEventType.GATE_BLOCKED, node_id=node.node_id, plan=state.plan)
        turn.outputs.append(NodeOutput(
            node_id=node.node_id,
            node_type=node.node_type,
            kind=OUTPUT_UPGRADE_REQUIRED,
            content=self.config.upgrade_message,
        ))
        turn.fallback = True
        if state.current_node_id != node.node_id:
            state.node_progress.clear()
        state.current_node_id = node.node_id
        state.status = ConversationStatus.UPGRADE_REQUIRED

    async def _run_from(self, state: ConversationState, node_id: str, turn: _Turn) -> None:
        """Enter `node_id` and keep moving until a node waits for input or the conversation ends."""
        node = self._node(node_id)
        turn.steps += 1
        if turn.steps > self.config.max_auto_steps:
            self.emit(state, DebugEventType.INTEGRITY_ERROR, node_id=node_id,
                       message='max_auto_steps exceeded')
            logger.error("Conversation %s: more than %d pass-through steps, stopping at %s",
                         state.conversation_id, self.config.max_auto_steps, node_id)
            raise FlowIntegrityError(
                f"Traversal exceeded {self.config.max_auto_steps} steps without waiting for input",
                node_id=node_id,
            )

        if not can_execute(node.node_type, state.plan):
            self._block(state, node, turn)
            return

        if state.current_node_id != node_id:
            state.node_progress.clear()
        state.current_node_id = node_id
        state.visited.append(node_id)
        logger.info("Conversation %s entered %s (%s)", state.conversation_id, node_id, node.node_type)
        self.emit(state, DebugEventType.NODE_ENTERED, node_id=node_id)

        ctx = self._context(state)
        route: Optional[str] = None
        failure = None
        async for item in node(ctx):
            if item['type'] == NODE_EVENT_CONTENT:
                turn.outputs.append(item['content'])
            elif item['type'] == NODE_EVENT_ROUTE:
                route = item['content']
            elif item['type'] == NODE_EVENT_FAILURE:
                failure = item['content']

        if failure is not None:
            turn.failure = failure
            await self._follow_failure(state, node_id, turn)
            return

        if node.awaits_input():
            state.status = ConversationStatus.AWAITING_INPUT
            return

        await self._follow(state, node_id, turn, route=route)

    async def _follow_failure(self, state: ConversationState, node_id: str, turn: _Turn) -> None:
        edge = self._failure_edge(node_id)
        if edge is None:
            logger.warning("Conversation %s halted: %s failed without a failure path",
                           state.conversation_id, node_id)
            turn.outputs.append(NodeOutput(
                node_id=node_id,
                node_type=self.node_types[node_id],
                kind=OUTPUT_FALLBACK,
                content=self.config.webhook_failure_message,
            ))
            turn.fallback = True
            self._finish(state, ConversationStatus.HALTED, reason='external_call_failed')
            return
        self._traverse(state, edge)
        await self._run_from(state, edge.target, turn)

    async def _follow(self, state: ConversationState, node_id: str, turn: _Turn,
                      route: Optional[str] = None) -> None:
        node_type = self.node_types[node_id]
        regular = self._regular_edges(node_id)

        if not regular:
            if NODE_TYPES[node_type].may_end:
                turn.outputs.append(NodeOutput(node_id=node_id, node_type=node_type,
                                               kind=OUTPUT_END, content=self.config.end_message))
                self._finish(state, ConversationStatus.COMPLETED, reason='terminal_node')
            else:
                logger.warning("Conversation %s reached dead end at %s (%s)",
                               state.conversation_id, node_id, node_type)
                turn.outputs.append(NodeOutput(node_id=node_id, node_type=node_type,
                                               kind=OUTPUT_FALLBACK, content=self.config.dead_end_message))
                turn.fallback = True
                self._finish(state, ConversationStatus.DEAD_END, reason='dead_end')
            return

        if node_type == 'conditional':
            edge = self._edge_for_action(node_id, route) if route is not None else self._default_edge(node_id)
            if edge is None:
                node = self.nodes[node_id]
                message = node.config.fallbackMessage or self.config.fallback_message
                logger.info("Conversation %s: no condition matched on %s; re-prompting",
                            state.conversation_id, node_id)
                self.emit(state, DebugEventType.FALLBACK, node_id=node_id, reason='no_condition_match')
                turn.outputs.append(node.fallback(self._context(state), message))
                turn.fallback = True
                state.status = ConversationStatus.AWAITING_INPUT
                return
        else:
            edge = regular[0]

        self._traverse(state, edge)
        await self._run_from(state, edge.target, turn)

    def _traverse(self, state: ConversationState, edge: EdgeNodeModel) -> None:
        if edge.target not in self.nodes:
            raise FlowIntegrityError(f"Edge {edge.id!r} points at unknown node {edge.target!r}",
                                     node_id=edge.source)
        logger.debug("Conversation %s: %s -> %s via %s", state.conversation_id, edge.source, edge.target, edge.id)
        self.emit(state, DebugEventType.EDGE_TRAVERSED, node_id=edge.source, edge_id=edge.id,
                   target=edge.target, condition=edge.condition)

    def _finish(self, state: ConversationState, status: ConversationStatus, reason: str) -> None:
        state.status = status
        logger.info("Conversation %s ended with status %s", state.conversation_id, status.value)
        self.emit(state, DebugEventType.CONVERSATION_END, node_id=state.current_node_id,
                   status=status.value, reason=reason)
