"""
FlowDraft - the mutable working copy behind the authoring surface.

The editor never holds behaviour inside the graph. It sends edit messages
against node ids (`dispatch({"action": "edit_node", "node_id": ..., ...})`)
and gets back plain data: node ids, validation errors, gating decisions.
Saving produces an immutable FlowGraphModel, and only when the draft is valid.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.factory.Nodes import strip_authoring_bindings
from botforge_flow.models.template import TemplateModel
from botforge_flow.models.validation import ValidationError
from botforge_flow.registry import get_node_type
from botforge_flow.templates.instantiator import instantiate, new_edge_id, new_node_id
from botforge_flow.util.const import HANDLE_FAILURE, PLAN_FREE
from botforge_flow.util.feature_gate import ensure_can_author, plan_rank
from botforge_flow.util.graph_validator import flow_warnings, validate_flow

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    saved: bool
    graph: Optional[FlowGraphModel] = None
    errors: List[ValidationError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'saved': self.saved,
            'graph': self.graph.to_json() if self.graph is not None else None,
            'errors': [e.to_dict() for e in self.errors],
        }


class FlowDraft:
    """
    Mutable graph owned by one author session.

    Args:
        plan: Plan tier of the owning account; gates add_node and connect.
    """

    def __init__(self, plan: str = PLAN_FREE):
        plan_rank(plan)
        self.plan = plan
        self._nodes: Dict[str, Dict[str, Any]] = {}
        self._edges: Dict[str, Dict[str, Any]] = {}

    # ------------------------------------------------------------------ loading

    @classmethod
    def from_graph(cls, graph: FlowGraphModel, plan: str = PLAN_FREE) -> 'FlowDraft':
        """Open a persisted graph for editing. Gated nodes already in it are kept as-is."""
        draft = cls(plan=plan)
        for node in graph.nodes:
            draft._nodes[node.id] = {
                'id': node.id,
                'type': node.type,
                'position': dict(node.position) if node.position else None,
                'config': node.config.model_dump(mode='json', exclude_none=True),
            }
        for edge in graph.edges:
            draft._edges[edge.id] = edge.model_dump(mode='json', exclude_none=True)
        return draft

    @classmethod
    def from_template(cls, template: TemplateModel, plan: str = PLAN_FREE) -> 'FlowDraft':
        """
        Start a draft from a freshly instantiated template.

        Raises:
            FeatureGateError: The template uses a node type `plan` may not author.
        """
        for node_type in sorted({node.type for node in template.flow.nodes}):
            ensure_can_author(node_type, plan)
        return cls.from_graph(instantiate(template), plan=plan)

    # ------------------------------------------------------------------ queries

    @property
    def node_ids(self) -> List[str]:
        return list(self._nodes)

    @property
    def edge_ids(self) -> List[str]:
        return list(self._edges)

    def node(self, node_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self._require_node(node_id))

    def _require_node(self, node_id: str) -> Dict[str, Any]:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise KeyError(f"Unknown node {node_id!r}") from None

    # ------------------------------------------------------------------ edits

    def _checked_config(self, node_type: str, config: Dict[str, Any]) -> Dict[str, Any]:
        model = get_node_type(node_type).config_model.model_validate(config)
        return model.model_dump(mode='json', exclude_none=True)

    def add_node(self, node_type: str,
                 config: Optional[Dict[str, Any]] = None,
                 node_id: Optional[str] = None,
                 position: Optional[Dict[str, float]] = None) -> str:
        """
        Place a new node, starting from the registry defaults for its type.

        Raises:
            FeatureGateError: `node_type` is gated for the draft's plan.
            ValueError: Unknown type or duplicate id.
            pydantic.ValidationError: The resulting config is not valid for the type.
        """
        spec = get_node_type(node_type)
        ensure_can_author(node_type, self.plan)
        node_id = node_id or new_node_id(node_type)
        if node_id in self._nodes:
            raise ValueError(f"Node id {node_id!r} already exists")
        merged = {**spec.default_config(), **strip_authoring_bindings(dict(config or {}))}
        self._nodes[node_id] = {
            'id': node_id,
            'type': node_type,
            'position': dict(position) if position else None,
            'config': self._checked_config(node_type, merged),
        }
        logger.debug("FlowDraft: added %s node %s", node_type, node_id)
        return node_id

    def update_node(self, node_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge `changes` into the node's config; the stored config is replaced only if the result is valid."""
        node = self._require_node(node_id)
        changes = strip_authoring_bindings(dict(changes))
        position = changes.pop('position', None)
        merged = {**node['config'], **changes}
        node['config'] = self._checked_config(node['type'], merged)
        if position is not None:
            node['position'] = dict(position)
        return copy.deepcopy(node['config'])

    def remove_node(self, node_id: str) -> List[str]:
        """Delete a node and every edge touching it. Returns the removed edge ids."""
        self._require_node(node_id)
        del self._nodes[node_id]
        removed = [eid for eid, e in self._edges.items() if node_id in (e['source'], e['target'])]
        for edge_id in removed:
            del self._edges[edge_id]
        logger.debug("FlowDraft: removed node %s and %d edge(s)", node_id, len(removed))
        return removed

    def connect(self, source: str, target: str,
                condition: Optional[str] = None,
                source_handle: Optional[str] = None,
                target_handle: Optional[str] = None,
                edge_id: Optional[str] = None) -> str:
        """
        Add an edge. Both endpoints must exist and be authorable on the draft's plan.

        Pass `source_handle="failure"` for an api_webhook failure path.
        """
        for node_id in (source, target):
            ensure_can_author(self._require_node(node_id)['type'], self.plan)
        edge_id = edge_id or new_edge_id()
        if edge_id in self._edges:
            raise ValueError(f"Edge id {edge_id!r} already exists")
        edge = {'id': edge_id, 'source': source, 'target': target}
        if condition is not None:
            edge['condition'] = condition
        if source_handle is not None:
            edge['sourceHandle'] = source_handle
        if target_handle is not None:
            edge['targetHandle'] = target_handle
        self._edges[edge_id] = edge
        return edge_id

    def connect_failure(self, source: str, target: str) -> str:
        return self.connect(source, target, source_handle=HANDLE_FAILURE)

    def disconnect(self, edge_id: str) -> None:
        try:
            del self._edges[edge_id]
        except KeyError:
            raise KeyError(f"Unknown edge {edge_id!r}") from None

    def dispatch(self, message: Dict[str, Any]) -> Any:
        """
        Apply one editor message.

        Supported actions: add_node {node_type, config?, node_id?, position?},
        edit_node {node_id, changes}, delete_node {node_id},
        connect {source, target, condition?, sourceHandle?, targetHandle?, edge_id?},
        disconnect {edge_id}.
        """
        message = dict(message)
        action = message.pop('action', None)
        if action == 'add_node':
            return self.add_node(message.get('node_type') or message['type'], message.get('config'),
                                 message.get('node_id'), message.get('position'))
        if action == 'edit_node':
            return self.update_node(message['node_id'], message.get('changes') or message.get('config') or {})
        if action == 'delete_node':
            return self.remove_node(message['node_id'])
        if action == 'connect':
            return self.connect(message['source'], message['target'],
                                condition=message.get('condition'),
                                source_handle=message.get('sourceHandle'),
                                target_handle=message.get('targetHandle'),
                                edge_id=message.get('edge_id'))
        if action == 'disconnect':
            return self.disconnect(message['edge_id'])
        raise ValueError(f"Unsupported draft action: {action!r}")

    # ------------------------------------------------------------------ output

    def to_json(self) -> Dict[str, Any]:
        nodes = []
        for node in self._nodes.values():
            item = {'id': node['id'], 'type': node['type'], 'config': copy.deepcopy(node['config'])}
            if node['position']:
                item['position'] = dict(node['position'])
            nodes.append(item)
        return {'nodes': nodes, 'edges': [dict(e) for e in self._edges.values()]}

    def to_graph(self) -> FlowGraphModel:
        return FlowGraphModel.model_validate(self.to_json())

    def validate(self) -> List[ValidationError]:
        return validate_flow(self.to_graph())

    def warnings(self) -> List[ValidationError]:
        return flow_warnings(self.to_graph())

    def save(self) -> SaveResult:
        """Freeze the draft into a FlowGraphModel if it passes validation."""
        graph = self.to_graph()
        errors = validate_flow(graph)
        if errors:
            logger.info("FlowDraft: save blocked by %d validation error(s)", len(errors))
            return SaveResult(saved=False, errors=errors)
        return SaveResult(saved=True, graph=graph)
