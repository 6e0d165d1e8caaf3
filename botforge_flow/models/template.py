from typing import Literal, Tuple

from pydantic import BaseModel, ConfigDict

from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel


class TemplateModel(BaseModel):
    """A read-only canned flow used to seed new chatbots."""
    model_config = ConfigDict(frozen=True, extra='ignore')

    id: str
    name: str
    description: str = ''
    category: Literal['business', 'support', 'sales', 'general'] = 'general'
    difficulty: Literal['beginner', 'intermediate', 'advanced'] = 'beginner'
    icon: str = 'MessageCircle'
    color: str = ''
    tags: Tuple[str, ...] = ()
    flow: FlowGraphModel

    @property
    def requires_pro(self) -> bool:
        from botforge_flow.registry import get_node_type

        return any(get_node_type(node.type).requires_pro for node in self.flow.nodes)
