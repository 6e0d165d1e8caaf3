import logging
from typing import Mapping, Optional

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import ConditionalNodeModel, ConditionModel
from botforge_flow.node_system.Node import Node
from botforge_flow.util.condition_evaluator import first_match

logger = logging.getLogger(__name__)


class NodeConditional(Node):
    """
    Branching node. Conditions are evaluated in declared order and the first
    one that holds selects its action; the engine then follows the edge whose
    `condition` equals that action. No match routes to None (default edge).
    """

    def __init__(self, config: ConditionalNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.conditions = list(config.conditions)

    def first_match(self, variables: Mapping[str, str], ctx=None) -> Optional[ConditionModel]:
        def trace(index: int, condition: ConditionModel, result: bool) -> None:
            logger.debug("NodeConditional:%s condition %d (%s %s %r) -> %s", self.node_id, index,
                         condition.variable, condition.operator.value, condition.value, result)
            if ctx is not None:
                ctx.record(DebugEventType.CONDITION_EVALUATED, node_id=self.node_id, index=index,
                           variable=condition.variable, operator=condition.operator.value,
                           value=condition.value, result=result)

        return first_match(self.conditions, variables, on_evaluated=trace)

    async def process(self, ctx):
        matched = self.first_match(ctx.variables, ctx)
        yield self.yield_route(matched.action if matched else None)
