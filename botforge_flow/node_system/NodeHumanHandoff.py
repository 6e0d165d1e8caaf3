from botforge_flow.models.factory.Nodes import HumanHandoffNodeModel
from botforge_flow.node_system.Node import Node
from botforge_flow.util.const import DEFAULT_HANDOFF_MESSAGE


class NodeHumanHandoff(Node):
    """Announces the transfer; the channel acts on the handoffConfig directive."""

    def __init__(self, config: HumanHandoffNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)

    def directives(self):
        return {'handoffConfig': self.config.handoffConfig.model_dump(mode='json')}

    async def process(self, ctx):
        ctx.variables['handoff_department'] = self.config.handoffConfig.department
        yield self.yield_content(ctx, self.config.content or DEFAULT_HANDOFF_MESSAGE, **self.directives())
