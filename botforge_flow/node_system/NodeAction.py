from botforge_flow.models.factory.Nodes import ActionNodeModel
from botforge_flow.node_system.Node import Node


class NodeAction(Node):

    def __init__(self, config: ActionNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)

    def directives(self):
        return {'actionType': self.config.actionType}

    async def process(self, ctx):
        description = self.config.content or self.config.label or self.config.actionType
        yield self.yield_content(ctx, f"Action executed: {description}", **self.directives())
