"""
Node Type Registry - the single read-only catalogue of node types.

Each entry declares the config model a node of that type must satisfy,
the runtime class that executes it, whether it needs a paid plan, and the
category the authoring palette groups it under. The mapping is built once
at import time and cannot be mutated.
"""

import copy
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from botforge_flow.models.factory.Nodes import (
    ActionNodeModel,
    AiResponseNodeModel,
    ApiWebhookNodeModel,
    AppointmentNodeModel,
    BaseNodeModel,
    ConditionalNodeModel,
    FileUploadNodeModel,
    HumanHandoffNodeModel,
    LeadCaptureNodeModel,
    MessageNodeModel,
    NodeTypesModel,
    QuestionNodeModel,
    StartNodeModel,
    SurveyNodeModel,
)
from botforge_flow.node_system import (
    Node,
    NodeAction,
    NodeAiResponse,
    NodeApiWebhook,
    NodeAppointment,
    NodeConditional,
    NodeFileUpload,
    NodeHumanHandoff,
    NodeLeadCapture,
    NodeMessage,
    NodeQuestion,
    NodeStart,
    NodeSurvey,
)

logger = logging.getLogger(__name__)

CATEGORY_FLOW = 'flow'
CATEGORY_BASIC = 'basic'
CATEGORY_AI = 'ai'
CATEGORY_DATA = 'data'
CATEGORY_ACTION = 'action'


@dataclass(frozen=True)
class NodeTypeSpec:
    type: str
    title: str
    description: str
    category: str
    requires_pro: bool
    config_model: Type[BaseNodeModel]
    node_class: Type[Node]
    required_keys: Tuple[str, ...] = ()
    optional_keys: Tuple[str, ...] = ()
    may_await_input: bool = False
    # True when a node of this type with no outgoing edges ends the conversation cleanly
    may_end: bool = False
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def default_config(self) -> Dict[str, Any]:
        """A fresh config for a node dropped onto the canvas."""
        return copy.deepcopy(dict(self.defaults))


_CATALOGUE = (
    NodeTypeSpec(
        type=NodeTypesModel.START,
        title='Start',
        description='Conversation entry point',
        category=CATEGORY_FLOW,
        requires_pro=False,
        config_model=StartNodeModel,
        node_class=NodeStart,
        optional_keys=('content',),
        defaults={'content': 'Hello! How can I help you today?'},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.MESSAGE,
        title='Message',
        description='Send a message, optionally waiting for a free-text reply',
        category=CATEGORY_BASIC,
        requires_pro=False,
        config_model=MessageNodeModel,
        node_class=NodeMessage,
        optional_keys=('content', 'variable'),
        may_await_input=True,
        may_end=True,
        defaults={'content': 'Enter your message here...'},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.QUESTION,
        title='Question',
        description='Ask a question with predefined options',
        category=CATEGORY_BASIC,
        requires_pro=False,
        config_model=QuestionNodeModel,
        node_class=NodeQuestion,
        required_keys=('content', 'options'),
        optional_keys=('variable',),
        may_await_input=True,
        defaults={'content': 'What would you like to know?', 'options': ['Option 1', 'Option 2']},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.AI_RESPONSE,
        title='AI Response',
        description='Answer with an AI-generated response',
        category=CATEGORY_AI,
        requires_pro=True,
        config_model=AiResponseNodeModel,
        node_class=NodeAiResponse,
        optional_keys=('content', 'systemPrompt', 'variable', 'temperature', 'max_tokens'),
        may_await_input=True,
        may_end=True,
        defaults={'content': 'Ask me anything!', 'systemPrompt': 'You are a helpful assistant.'},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.LEAD_CAPTURE,
        title='Lead Capture',
        description='Collect contact information',
        category=CATEGORY_DATA,
        requires_pro=False,
        config_model=LeadCaptureNodeModel,
        node_class=NodeLeadCapture,
        required_keys=('fields',),
        optional_keys=('content',),
        may_await_input=True,
        may_end=True,
        defaults={
            'content': 'Please provide your contact information',
            'fields': [{'name': 'name', 'type': 'text', 'required': True}],
        },
    ),
    NodeTypeSpec(
        type=NodeTypesModel.SURVEY,
        title='Survey',
        description='Collect feedback with rating and text questions',
        category=CATEGORY_DATA,
        requires_pro=True,
        config_model=SurveyNodeModel,
        node_class=NodeSurvey,
        required_keys=('surveyConfig',),
        optional_keys=('content',),
        may_await_input=True,
        may_end=True,
        defaults={
            'surveyConfig': {
                'title': 'Quick feedback',
                'questions': [{'type': 'rating', 'question': 'How would you rate your experience?', 'required': True}],
                'collectNPS': False,
            },
        },
    ),
    NodeTypeSpec(
        type=NodeTypesModel.FILE_UPLOAD,
        title='File Upload',
        description='Let users upload documents or images',
        category=CATEGORY_DATA,
        requires_pro=True,
        config_model=FileUploadNodeModel,
        node_class=NodeFileUpload,
        optional_keys=('content', 'fileConfig', 'variable'),
        may_await_input=True,
        may_end=True,
        defaults={
            'content': 'Please upload your file',
            'fileConfig': {'allowedTypes': ['pdf', 'doc', 'jpg', 'png'], 'maxSize': 10, 'downloadable': False},
        },
    ),
    NodeTypeSpec(
        type=NodeTypesModel.APPOINTMENT,
        title='Appointment',
        description='Ask for a preferred appointment time',
        category=CATEGORY_ACTION,
        requires_pro=True,
        config_model=AppointmentNodeModel,
        node_class=NodeAppointment,
        optional_keys=('content', 'variable', 'duration', 'calendarUrl'),
        may_await_input=True,
        may_end=True,
        defaults={'content': 'When would you like to schedule your appointment?'},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.API_WEBHOOK,
        title='API Webhook',
        description='Call an external API',
        category=CATEGORY_ACTION,
        requires_pro=True,
        config_model=ApiWebhookNodeModel,
        node_class=NodeApiWebhook,
        required_keys=('apiConfig',),
        optional_keys=('content',),
        defaults={
            'apiConfig': {
                'url': 'https://api.example.com/webhook',
                'method': 'POST',
                'headers': {},
                'auth': {'type': 'none'},
                'timeout': 30,
            },
        },
    ),
    NodeTypeSpec(
        type=NodeTypesModel.HUMAN_HANDOFF,
        title='Human Handoff',
        description='Transfer the conversation to a human agent',
        category=CATEGORY_ACTION,
        requires_pro=True,
        config_model=HumanHandoffNodeModel,
        node_class=NodeHumanHandoff,
        optional_keys=('content', 'handoffConfig'),
        may_end=True,
        defaults={
            'content': 'Let me connect you with a human agent who can help you.',
            'handoffConfig': {'reason': '', 'priority': 'medium', 'department': 'support'},
        },
    ),
    NodeTypeSpec(
        type=NodeTypesModel.ACTION,
        title='Action',
        description='Trigger a custom action',
        category=CATEGORY_ACTION,
        requires_pro=True,
        config_model=ActionNodeModel,
        node_class=NodeAction,
        optional_keys=('content', 'actionType'),
        may_end=True,
        defaults={'content': 'Custom action', 'actionType': 'custom'},
    ),
    NodeTypeSpec(
        type=NodeTypesModel.CONDITIONAL,
        title='Conditional',
        description='Branch on conversation variables',
        category=CATEGORY_FLOW,
        requires_pro=True,
        config_model=ConditionalNodeModel,
        node_class=NodeConditional,
        required_keys=('conditions',),
        optional_keys=('fallbackMessage',),
        defaults={
            'conditions': [
                {'variable': 'last_user_input', 'operator': 'contains', 'value': 'yes', 'action': 'yes'},
            ],
        },
    ),
)

NODE_TYPES: Mapping[str, NodeTypeSpec] = MappingProxyType({spec.type: spec for spec in _CATALOGUE})


def get_node_type(node_type: str) -> NodeTypeSpec:
    try:
        return NODE_TYPES[node_type]
    except KeyError:
        raise ValueError(
            f"Unsupported node type: {node_type!r}. Available: {list(NODE_TYPES.keys())}"
        ) from None


def node_types(category: Optional[str] = None) -> List[NodeTypeSpec]:
    """Catalogue entries in palette order, optionally filtered by category."""
    return [spec for spec in NODE_TYPES.values() if category is None or spec.category == category]


def gated_node_types() -> frozenset:
    return frozenset(spec.type for spec in NODE_TYPES.values() if spec.requires_pro)


def create_node(node, debug: bool = False) -> Node:
    """
    Factory method to create the runtime node for a typed graph node.

    Args:
        node: A FlowNode from a loaded FlowGraphModel.
        debug: Enable per-node debug logging.

    Returns:
        Node instance bound to the node's frozen config.
    """
    spec = get_node_type(node.type)
    logger.debug("Creating node %s of type %s", node.id, node.type)
    return spec.node_class(config=node.config, node_id=node.id, node_type=node.type, debug=debug)
