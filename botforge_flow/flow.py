"""
BotForge Flow entry points.

Load persisted flow JSON, validate it for the authoring surface, and build a
traversal engine for the delivery runtime.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from botforge_flow.execution.config import EngineConfig
from botforge_flow.execution.traversal_engine import FlowTraversalEngine
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.validation import ValidationError, ValidationErrorKind, ValidationResult
from botforge_flow.registry import create_node
from botforge_flow.util.graph_validator import flow_warnings, validate_flow

logger = logging.getLogger(__name__)

__all__ = ['load_flow', 'validate_graph', 'build', 'create_node']


def _normalize(flow_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Accept the graph flat ({'nodes', 'edges'}) or wrapped under 'content' or
    'flow', as chatbot and template records store it.
    """
    for key in ('content', 'flow'):
        inner = flow_data.get(key)
        if isinstance(inner, dict) and 'nodes' in inner:
            return {'nodes': inner.get('nodes', []), 'edges': inner.get('edges', [])}
    return {'nodes': flow_data.get('nodes', []), 'edges': flow_data.get('edges', [])}


def load_flow(flow_data: Union[FlowGraphModel, Dict[str, Any]]) -> FlowGraphModel:
    """
    Parse persisted flow JSON into a typed, immutable graph.

    Raises:
        pydantic.ValidationError: A node has an unknown type or an ill-formed config.
    """
    if isinstance(flow_data, FlowGraphModel):
        return flow_data
    return FlowGraphModel.model_validate(_normalize(flow_data))


def _config_errors(exc: PydanticValidationError, nodes: List[dict]) -> List[ValidationError]:
    errors = []
    for err in exc.errors():
        loc = err.get('loc', ())
        node_id = None
        if len(loc) >= 2 and loc[0] == 'nodes' and isinstance(loc[1], int) and loc[1] < len(nodes):
            node = nodes[loc[1]]
            node_id = node.get('id') if isinstance(node, dict) else None
        errors.append(ValidationError(
            kind=ValidationErrorKind.INVALID_NODE_CONFIG,
            node_id=node_id,
            message=f"{'.'.join(str(p) for p in loc)}: {err.get('msg')}",
        ))
    return errors


def validate_graph(nodes: List[dict], edges: List[dict]) -> dict:
    """
    Validate raw editor nodes and edges.

    Args:
        nodes (list[dict]): Nodes as persisted ({id, type, config} or {id, type, data}).
        edges (list[dict]): Edges as persisted.

    Returns:
        dict: 'valid' (bool), 'errors' and 'warnings' (lists of dicts).
    """
    try:
        graph = FlowGraphModel.model_validate({'nodes': nodes, 'edges': edges})
    except PydanticValidationError as e:
        errors = _config_errors(e, nodes)
        logger.error("Graph could not be parsed: %d config error(s)", len(errors))
        result = ValidationResult(valid=False, errors=errors)
    else:
        errors = validate_flow(graph)
        for err in errors:
            logger.error("  - %s: %s", err.kind.value, err.message)
        result = ValidationResult(valid=not errors, errors=errors, warnings=flow_warnings(graph))
    return {
        'valid': result.valid,
        'errors': [e.to_dict() for e in result.errors],
        'warnings': [w.to_dict() for w in result.warnings],
    }


def build(flow_data: Union[FlowGraphModel, Dict[str, Any]],
          config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
          llm_client: Any = None,
          debug: Optional[bool] = None) -> FlowTraversalEngine:
    """
    Prepare a traversal engine for a flow.

    Args:
        flow_data: Graph JSON (flat or nested under 'content'/'flow') or a loaded graph.
        config: EngineConfig or its dict form. A top-level 'debug' key in
            `flow_data` enables debug when `debug` is not given.
        llm_client: Client used by ai_response nodes.

    Raises:
        FlowIntegrityError: The graph does not pass validation.
    """
    if not isinstance(config, EngineConfig):
        config = EngineConfig.from_dict(config)
    if debug is None and isinstance(flow_data, dict) and 'debug' in flow_data:
        debug = bool(flow_data['debug'])
    graph = load_flow(flow_data)
    return FlowTraversalEngine(graph, config=config, llm_client=llm_client, debug=debug)
