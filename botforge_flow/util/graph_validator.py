"""
Graph Validator - structural validation for flow graphs.

`validate_flow` runs every blocking check independently and reports all
problems at once; it never mutates the graph. `flow_warnings` adds
non-blocking authoring hints computed over the networkx view of the graph.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Set

from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.validation import ValidationError, ValidationErrorKind as Kind
from botforge_flow.node_system import build_graph, find_loops, unreachable_nodes
from botforge_flow.registry import NODE_TYPES
from botforge_flow.util.const import BUILTIN_VARIABLES, NAME_ALIASES

logger = logging.getLogger(__name__)


def check_unique_ids(graph: FlowGraphModel) -> List[ValidationError]:
    counts = Counter(node.id for node in graph.nodes)
    return [
        ValidationError(
            kind=Kind.DUPLICATE_NODE_ID,
            node_id=node_id,
            message=f"Node id '{node_id}' is used by {count} nodes",
            suggestion="Give every node a unique id.",
        )
        for node_id, count in counts.items() if count > 1
    ]


def check_start_node(graph: FlowGraphModel) -> List[ValidationError]:
    starts = graph.start_nodes()
    if not starts:
        return [ValidationError(
            kind=Kind.MISSING_START_NODE,
            message="Flow has no start node",
            suggestion="Add exactly one node of type 'start'.",
        )]
    errors = []
    if len(starts) > 1:
        errors.append(ValidationError(
            kind=Kind.MISSING_START_NODE,
            message=f"Flow has {len(starts)} start nodes; exactly one is required",
            node_id=starts[1].id,
            suggestion="Remove the extra start nodes.",
        ))
    start_ids = {node.id for node in starts}
    for edge in graph.edges:
        if edge.target in start_ids:
            errors.append(ValidationError(
                kind=Kind.MISSING_START_NODE,
                message=f"Start node '{edge.target}' must not have incoming edges",
                node_id=edge.target,
                edge_id=edge.id,
            ))
    return errors


def check_edge_endpoints(graph: FlowGraphModel) -> List[ValidationError]:
    known = set(graph.node_ids())
    errors = []
    for edge in graph.edges:
        for role, ref in (('source', edge.source), ('target', edge.target)):
            if ref not in known:
                errors.append(ValidationError(
                    kind=Kind.DANGLING_EDGE,
                    edge_id=edge.id,
                    message=f"Edge '{edge.id}' references non-existent {role} node: '{ref}'",
                    suggestion="Reconnect the edge or delete it.",
                ))
    return errors


def check_branching(graph: FlowGraphModel) -> List[ValidationError]:
    """At most one unconditioned edge per node; several edges only on conditional nodes."""
    types = graph.node_types()
    by_source = defaultdict(list)
    for edge in graph.edges:
        if edge.source in types:
            by_source[edge.source].append(edge)

    errors = []
    for source, edges in by_source.items():
        node_type = types[source]
        failure_edges = [e for e in edges if e.is_failure_path]
        regular = [e for e in edges if not e.is_failure_path]

        if failure_edges and node_type != 'api_webhook':
            for edge in failure_edges:
                errors.append(ValidationError(
                    kind=Kind.AMBIGUOUS_BRANCH, node_id=source, edge_id=edge.id,
                    message=f"Only api_webhook nodes have a failure path; '{source}' is {node_type}",
                ))
        elif len(failure_edges) > 1:
            errors.append(ValidationError(
                kind=Kind.AMBIGUOUS_BRANCH, node_id=source,
                message=f"Webhook '{source}' has {len(failure_edges)} failure edges; at most one is allowed",
            ))

        unconditioned = [e for e in regular if e.condition is None]
        if len(unconditioned) > 1:
            errors.append(ValidationError(
                kind=Kind.AMBIGUOUS_BRANCH, node_id=source,
                message=f"Node '{source}' has {len(unconditioned)} unconditioned outgoing edges",
                suggestion="Keep one default edge and give the others a condition.",
            ))
        if len(regular) > 1 and node_type != 'conditional':
            errors.append(ValidationError(
                kind=Kind.AMBIGUOUS_BRANCH, node_id=source,
                message=f"Only conditional nodes may branch; '{source}' ({node_type}) has {len(regular)} outgoing edges",
                suggestion="Route the branches through a conditional node.",
            ))
        if node_type != 'conditional':
            for edge in regular:
                if edge.condition is not None:
                    errors.append(ValidationError(
                        kind=Kind.AMBIGUOUS_BRANCH, node_id=source, edge_id=edge.id,
                        message=f"Edge '{edge.id}' carries condition '{edge.condition}' "
                                f"but its source '{source}' is not a conditional node",
                    ))
    return errors


def check_condition_actions(graph: FlowGraphModel) -> List[ValidationError]:
    """Each condition action is referenced by exactly one outgoing edge, and vice versa."""
    errors = []
    seen: Set[str] = set()
    for node in graph.nodes:
        if node.type != 'conditional' or node.id in seen:
            continue
        seen.add(node.id)
        actions = node.config.actions
        outgoing = [e for e in graph.outgoing(node.id) if not e.is_failure_path]
        for action in actions:
            count = sum(1 for e in outgoing if e.condition == action)
            if count != 1:
                errors.append(ValidationError(
                    kind=Kind.ORPHANED_CONDITION, node_id=node.id,
                    message=(f"Condition action '{action}' on '{node.id}' has no outgoing edge" if count == 0
                             else f"Condition action '{action}' on '{node.id}' is referenced by {count} edges"),
                    suggestion=f"Connect exactly one edge with condition='{action}'.",
                ))
        for edge in outgoing:
            if edge.condition is not None and edge.condition not in actions:
                errors.append(ValidationError(
                    kind=Kind.ORPHANED_CONDITION, node_id=node.id, edge_id=edge.id,
                    message=f"Edge '{edge.id}' references unknown action '{edge.condition}' on '{node.id}'",
                ))
    return errors


def validate_flow(graph: FlowGraphModel) -> List[ValidationError]:
    """
    Run all structural checks.

    Returns:
        Every error found; an empty list means the graph is valid.
    """
    errors: List[ValidationError] = []
    for check in (check_unique_ids, check_start_node, check_edge_endpoints,
                  check_branching, check_condition_actions):
        errors.extend(check(graph))
    if errors:
        logger.debug("Flow validation found %d error(s): %s", len(errors),
                     sorted({e.kind.value for e in errors}))
    return errors


def written_variables(graph: FlowGraphModel) -> Set[str]:
    """Variable names some node in the graph can write."""
    names: Set[str] = set(BUILTIN_VARIABLES)
    for node in graph.nodes:
        config = node.config
        names.add(node.id)
        if getattr(config, 'variable', None):
            names.add(config.variable)
        if node.type == 'lead_capture':
            for field in config.fields:
                names.add(field.name)
                if 'name' in field.name.lower():
                    names.update(NAME_ALIASES)
        elif node.type == 'survey':
            for index, question in enumerate(config.surveyConfig.questions):
                names.add(question.variable or f"{node.id}_q{index + 1}")
        elif node.type == 'api_webhook':
            names.update(config.apiConfig.responseMapping.keys())
        elif node.type == 'file_upload':
            names.add(f"{config.variable}_url")
        elif node.type == 'human_handoff':
            names.add('handoff_department')
    return names


def flow_warnings(graph: FlowGraphModel) -> List[ValidationError]:
    """Non-blocking authoring hints: unreachable nodes, dead ends, unknown variables, pass-through loops."""
    warnings: List[ValidationError] = []
    types: Dict[str, str] = graph.node_types()
    nx_graph = build_graph(types.keys(), graph.edges)

    starts = graph.start_nodes()
    if len(starts) == 1:
        for node_id in unreachable_nodes(nx_graph, starts[0].id):
            warnings.append(ValidationError(
                kind=Kind.UNREACHABLE_NODE, severity='warning', node_id=node_id,
                message=f"Node '{node_id}' cannot be reached from the start node",
            ))

    for node_id, node_type in types.items():
        if nx_graph.out_degree(node_id) == 0 and not NODE_TYPES[node_type].may_end:
            warnings.append(ValidationError(
                kind=Kind.DEAD_END, severity='warning', node_id=node_id,
                message=f"Node '{node_id}' ({node_type}) has no outgoing edge and cannot end a conversation",
            ))

    known = written_variables(graph)
    for node in graph.nodes:
        if node.type != 'conditional':
            continue
        for condition in node.config.conditions:
            if condition.variable not in known:
                warnings.append(ValidationError(
                    kind=Kind.UNKNOWN_VARIABLE, severity='warning', node_id=node.id,
                    message=f"Condition on '{node.id}' reads '{condition.variable}', which no node writes",
                ))

    pass_through = [node.id for node in graph.nodes if not _may_wait(node)]
    for loop in find_loops(nx_graph, pass_through):
        warnings.append(ValidationError(
            kind=Kind.PASS_THROUGH_LOOP, severity='warning', node_id=loop[0],
            message=f"Nodes {loop} form a loop that never waits for user input",
        ))
    return warnings


def _may_wait(node) -> bool:
    if node.type == 'message':
        return bool(node.config.variable)
    return NODE_TYPES[node.type].may_await_input
