"""
Template Instantiator - clones a read-only template into a freshly identified graph.
"""

import logging
import uuid
from typing import Dict, Union

from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.factory.Nodes import strip_authoring_bindings
from botforge_flow.models.template import TemplateModel

logger = logging.getLogger(__name__)


def new_node_id(node_type: str) -> str:
    return f"{node_type}-{uuid.uuid4().hex}"


def new_edge_id() -> str:
    return f"edge-{uuid.uuid4().hex}"


def instantiate(template: Union[TemplateModel, FlowGraphModel]) -> FlowGraphModel:
    """
    Produce a structurally identical graph with fresh node and edge ids.

    Every node id is replaced, edges are rewritten through the old->new mapping,
    and configs are re-validated with editor bindings removed. The template is
    not modified.

    Raises:
        ValueError: The template repeats a node id or an edge references an
            id the template does not define, so no total, injective id
            mapping exists.
    """
    source = template.flow if isinstance(template, TemplateModel) else template

    mapping: Dict[str, str] = {}
    nodes = []
    for node in source.nodes:
        if node.id in mapping:
            raise ValueError(f"Template repeats node id {node.id!r}")
        mapping[node.id] = new_node_id(node.type)
        nodes.append({
            'id': mapping[node.id],
            'type': node.type,
            'position': dict(node.position) if node.position else None,
            'config': strip_authoring_bindings(node.config.model_dump(mode='json', exclude_none=True)),
        })

    edges = []
    for edge in source.edges:
        try:
            source_id, target_id = mapping[edge.source], mapping[edge.target]
        except KeyError as e:
            raise ValueError(f"Template edge {edge.id!r} references unknown node {e.args[0]!r}") from None
        payload = edge.model_dump(mode='json', exclude_none=True)
        payload.update(id=new_edge_id(), source=source_id, target=target_id)
        edges.append(payload)

    graph = FlowGraphModel.model_validate({'nodes': nodes, 'edges': edges})
    logger.debug("Instantiated %s: %d nodes, %d edges",
                 getattr(template, 'id', 'graph'), len(graph.nodes), len(graph.edges))
    return graph
