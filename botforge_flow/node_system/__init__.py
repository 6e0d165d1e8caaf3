from typing import Iterable, List, Set

import networkx as nx

from botforge_flow.node_system.Node import Node, NodeContext, Capture
from botforge_flow.node_system.NodeStart import NodeStart
from botforge_flow.node_system.NodeMessage import NodeMessage
from botforge_flow.node_system.NodeQuestion import NodeQuestion
from botforge_flow.node_system.NodeAiResponse import NodeAiResponse
from botforge_flow.node_system.NodeLeadCapture import NodeLeadCapture
from botforge_flow.node_system.NodeSurvey import NodeSurvey
from botforge_flow.node_system.NodeFileUpload import NodeFileUpload
from botforge_flow.node_system.NodeAppointment import NodeAppointment
from botforge_flow.node_system.NodeApiWebhook import NodeApiWebhook
from botforge_flow.node_system.NodeHumanHandoff import NodeHumanHandoff
from botforge_flow.node_system.NodeAction import NodeAction
from botforge_flow.node_system.NodeConditional import NodeConditional


def build_graph(node_ids: Iterable[str], edges: Iterable) -> nx.DiGraph:
    """Create a directed graph of the given nodes; edges with an unknown endpoint are skipped."""
    graph = nx.DiGraph()
    graph.add_nodes_from(node_ids)
    for edge in edges:
        if edge.source in graph and edge.target in graph:
            graph.add_edge(edge.source, edge.target)
    return graph


def reachable_from(graph: nx.DiGraph, start: str) -> Set[str]:
    if start not in graph:
        return set()
    return {start} | nx.descendants(graph, start)


def unreachable_nodes(graph: nx.DiGraph, start: str) -> List[str]:
    reached = reachable_from(graph, start)
    return [node for node in graph.nodes if node not in reached]


def find_loops(graph: nx.DiGraph, nodes: Iterable[str]) -> List[List[str]]:
    """
    Loops that stay inside `nodes`, one per strongly connected component.

    Loops are legal in conversation flows; this is used for reporting only.
    """
    subgraph = graph.subgraph(nodes)
    loops = []
    for component in nx.strongly_connected_components(subgraph):
        if len(component) > 1 or any(subgraph.has_edge(n, n) for n in component):
            loops.append(sorted(component))
    return loops
