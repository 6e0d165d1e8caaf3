"""
botforge_flow - flow graph core of a visual chatbot builder.

Typed flow graphs and their validation, the node type registry, the
conversation traversal engine, plan-tier feature gating, sticky A/B variant
assignment and template instantiation.
"""

from botforge_flow.flow import build, create_node, load_flow, validate_graph
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.execution import ConversationDispatcher, EngineConfig, FlowStore, FlowTraversalEngine
from botforge_flow.authoring import FlowDraft
from botforge_flow.util.feature_gate import can_author, can_execute
from botforge_flow.util.graph_validator import flow_warnings, validate_flow
from botforge_flow.util.template_parser import interpolate
from botforge_flow.util.condition_evaluator import evaluate
from botforge_flow.experiments import assign
from botforge_flow.templates import instantiate

__all__ = [
    "build",
    "create_node",
    "load_flow",
    "validate_graph",
    "FlowGraphModel",
    "ConversationDispatcher",
    "EngineConfig",
    "FlowStore",
    "FlowTraversalEngine",
    "FlowDraft",
    "can_author",
    "can_execute",
    "flow_warnings",
    "validate_flow",
    "interpolate",
    "evaluate",
    "assign",
    "instantiate",
]
