import abc
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from botforge_flow.models.factory.Nodes import BaseNodeModel
from botforge_flow.models.model_turn_result import ExternalCallFailure, NodeOutput
from botforge_flow.models.model_user_event import UserEvent
from botforge_flow.util.const import (
    NODE_EVENT_CONTENT,
    NODE_EVENT_FAILURE,
    NODE_EVENT_ROUTE,
    OUTPUT_CONTENT,
    OUTPUT_FALLBACK,
)
from botforge_flow.util.telemetry import flow_telemetry
from botforge_flow.util.template_parser import interpolate, interpolate_output


@dataclass
class NodeContext:
    """
    Everything a node may read or write while one conversation is on it.

    `variables` and `progress` belong to the conversation, never to the node
    instance, so one node object serves any number of conversations.
    """
    variables: Dict[str, str]
    progress: Dict[str, Any]
    settings: Any = None
    llm_client: Any = None
    emit: Optional[Callable[..., None]] = None
    transcript: List[Dict[str, str]] = field(default_factory=list)

    def record(self, event_type, severity=None, node_id=None, **payload):
        if self.emit is not None:
            self.emit(event_type, severity=severity, node_id=node_id, **payload)


@dataclass
class Capture:
    """Result of handing a user event to the node the conversation waits on."""
    accepted: bool = True
    complete: bool = True
    outputs: List[NodeOutput] = field(default_factory=list)
    route: Optional[str] = None
    intent: Optional[str] = None
    confidence: Optional[float] = None


class Node(abc.ABC):
    AWAITS_INPUT = False

    def __init__(self,
                 config: BaseNodeModel,
                 node_id: str,
                 node_type: str,
                 debug: bool = False,
                 **kwargs):
        self.config = config
        self.node_id = node_id
        self.node_type = node_type
        self.debug = debug

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        # Automatically decorate the `process` method of the subclass
        if 'process' in cls.__dict__:
            cls.process = flow_telemetry(cls.process)

    async def __call__(self, ctx: NodeContext):
        async for result in self.process(ctx):
            yield result

    @abc.abstractmethod
    async def process(self, ctx: NodeContext):
        """Run on entry; yields content, route and failure items."""
        pass

    def awaits_input(self) -> bool:
        return self.AWAITS_INPUT

    async def receive(self, event: UserEvent, ctx: NodeContext) -> Capture:
        return Capture()

    def directives(self) -> Dict[str, Any]:
        """Type-specific directives forwarded to the delivery channel."""
        return {}

    def get_debug(self):
        return self.debug

    def output(self, ctx: NodeContext, content: Optional[str], kind: str = OUTPUT_CONTENT,
               **directives) -> NodeOutput:
        return NodeOutput(
            node_id=self.node_id,
            node_type=self.node_type,
            kind=kind,
            content=interpolate(content or '', ctx.variables),
            directives=interpolate_output(directives, ctx.variables),
        )

    def fallback(self, ctx: NodeContext, content: str, **directives) -> NodeOutput:
        return self.output(ctx, content, kind=OUTPUT_FALLBACK, **directives)

    def yield_content(self, ctx: NodeContext, content: Optional[str], **directives) -> dict:
        return {
            'type': NODE_EVENT_CONTENT,
            'content': self.output(ctx, content, **directives),
        }

    @staticmethod
    def yield_route(action: Optional[str]) -> dict:
        return {'type': NODE_EVENT_ROUTE, 'content': action}

    def yield_failure(self, reason: str, message: str, status_code: Optional[int] = None) -> dict:
        return {
            'type': NODE_EVENT_FAILURE,
            'content': ExternalCallFailure(
                node_id=self.node_id,
                reason=reason,
                message=message,
                status_code=status_code,
            ),
        }
