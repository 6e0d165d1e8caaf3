from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from botforge_flow.models.factory.EdgeNodeModel import EdgeNodeModel
from botforge_flow.models.factory.FlowNodeModel import FlowNode


class FlowGraphModel(BaseModel):
    """
    Immutable flow graph: the value persisted as one chatbot's conversation logic.

    Loading only checks shape (known node types, well-formed configs). Structural
    rules such as unique ids or resolvable edges are checked separately by
    `validate_flow`, so an invalid graph can still be loaded and reported on.

    Attributes:
        nodes: Typed nodes in authoring order
        edges: Directed links between node ids
    """
    model_config = ConfigDict(frozen=True, extra='ignore')

    nodes: Tuple[FlowNode, ...] = ()
    edges: Tuple[EdgeNodeModel, ...] = ()

    def get_node(self, node_id: str) -> Optional[FlowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def outgoing(self, node_id: str) -> List[EdgeNodeModel]:
        return [edge for edge in self.edges if edge.source == node_id]

    def incoming(self, node_id: str) -> List[EdgeNodeModel]:
        return [edge for edge in self.edges if edge.target == node_id]

    def start_nodes(self) -> List[FlowNode]:
        return [node for node in self.nodes if node.type == 'start']

    def node_types(self) -> Dict[str, str]:
        return {node.id: node.type for node in self.nodes}

    def to_json(self) -> dict:
        """Persisted shape: nodes[].{id,type,config}, edges[].{id,source,target,...}."""
        return self.model_dump(mode='json', exclude_none=True)
