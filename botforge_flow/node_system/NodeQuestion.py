import logging
from typing import Optional

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import QuestionNodeModel
from botforge_flow.node_system.Node import Capture, Node
from botforge_flow.util.const import VAR_SELECTED_OPTION

logger = logging.getLogger(__name__)


class NodeQuestion(Node):
    AWAITS_INPUT = True

    def __init__(self, config: QuestionNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.options = list(config.options)
        self.variable = config.variable

    def directives(self):
        return {'options': list(self.options)}

    async def process(self, ctx):
        yield self.yield_content(ctx, self.config.content, **self.directives())

    def match_option(self, reply: str) -> Optional[str]:
        """
        Exact (case-insensitive) match first, then containment in either
        direction, in declared option order.
        """
        needle = (reply or '').strip().lower()
        if not needle:
            return None
        for option in self.options:
            if option.lower() == needle:
                return option
        for option in self.options:
            lowered = option.lower()
            if lowered in needle or needle in lowered:
                return option
        return None

    async def receive(self, event, ctx):
        selected = self.match_option(event.option if event.option is not None else event.value)
        if selected is None:
            logger.info("NodeQuestion:%s reply matched no option", self.node_id)
            ctx.record(DebugEventType.FALLBACK, node_id=self.node_id, reason='no_option_match')
            return Capture(
                accepted=False,
                complete=False,
                outputs=[self.fallback(ctx, ctx.settings.invalid_option_message, **self.directives())],
            )
        ctx.variables[self.variable] = selected
        ctx.variables[VAR_SELECTED_OPTION] = selected
        ctx.variables[self.node_id] = selected
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable)
        return Capture(
            outputs=[self.output(ctx, f"You selected: {selected}")],
            intent='option_selected',
            confidence=0.9,
        )
