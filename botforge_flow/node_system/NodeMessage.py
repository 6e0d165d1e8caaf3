import logging

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import MessageNodeModel
from botforge_flow.node_system.Node import Capture, Node

logger = logging.getLogger(__name__)


class NodeMessage(Node):
    """
    Bot message. Passes through unless `variable` is configured, in which case
    it waits for a free-text reply and stores it under that name.
    """

    def __init__(self, config: MessageNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.variable = config.variable

    def awaits_input(self) -> bool:
        return bool(self.variable)

    async def process(self, ctx):
        if self.config.content:
            yield self.yield_content(ctx, self.config.content)

    async def receive(self, event, ctx):
        ctx.variables[self.variable] = event.value
        logger.debug("NodeMessage:%s stored reply under %s", self.node_id, self.variable)
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable)
        return Capture()
