from botforge_flow.models.factory.Nodes import StartNodeModel
from botforge_flow.node_system.Node import Node


class NodeStart(Node):
    """Entry node. Emits its greeting (if any) and passes straight through."""

    def __init__(self, config: StartNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)

    async def process(self, ctx):
        if self.config.content:
            yield self.yield_content(ctx, self.config.content)
