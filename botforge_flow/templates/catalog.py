"""
Built-in chatbot templates.

Templates are plain JSON-shaped definitions validated into TemplateModel once
at import. Free-tier templates only use basic node types; branching flows
route through a conditional node and therefore need a pro plan.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping

from botforge_flow.models.template import TemplateModel
from botforge_flow.util.feature_gate import plan_rank
from botforge_flow.util.const import PLAN_PRO, PLAN_RANK

logger = logging.getLogger(__name__)

_TEMPLATE_DATA = [
    # Free tier: basic nodes only
    {
        'id': 'simple-welcome',
        'name': 'Simple Welcome Bot',
        'description': 'A basic welcome chatbot that greets visitors and provides company information.',
        'category': 'general',
        'difficulty': 'beginner',
        'icon': 'MessageCircle',
        'color': 'from-blue-500 to-cyan-500',
        'tags': ['welcome', 'greeting', 'basic', 'starter'],
        'flow': {
            'nodes': [
                {'id': 'start-1', 'type': 'start', 'position': {'x': 100, 'y': 100},
                 'config': {'label': 'Welcome Start',
                            'content': "Welcome to our website! I'm here to help you learn more about our company."}},
                {'id': 'question-1', 'type': 'question', 'position': {'x': 100, 'y': 250},
                 'config': {'label': 'What interests you?',
                            'content': 'What would you like to know about us?',
                            'options': ['About our company', 'Our services', 'Contact information',
                                        'Business hours'],
                            'variable': 'topic'}},
                {'id': 'message-1', 'type': 'message', 'position': {'x': 100, 'y': 400},
                 'config': {'label': 'Company Info',
                            'content': ("Here's what you asked about ({topic}): we're a growing company "
                                        "offering consulting, implementation and support. "
                                        "Reach us at hello@company.com, Monday to Friday, 9:00 AM - 6:00 PM.")}},
                {'id': 'question-2', 'type': 'question', 'position': {'x': 100, 'y': 550},
                 'config': {'label': 'Anything else?',
                            'content': 'Is there anything else I can help you with today?',
                            'options': ['Yes, I have another question', "No, that's all"]}},
                {'id': 'message-2', 'type': 'message', 'position': {'x': 100, 'y': 700},
                 'config': {'label': 'Goodbye',
                            'content': 'Thanks for visiting! Feel free to come back any time.'}},
            ],
            'edges': [
                {'id': 'e1', 'source': 'start-1', 'target': 'question-1'},
                {'id': 'e2', 'source': 'question-1', 'target': 'message-1'},
                {'id': 'e3', 'source': 'message-1', 'target': 'question-2'},
                {'id': 'e4', 'source': 'question-2', 'target': 'message-2'},
            ],
        },
    },
    {
        'id': 'lead-collection',
        'name': 'Lead Collection Bot',
        'description': 'Collect visitor names, emails and qualification answers.',
        'category': 'sales',
        'difficulty': 'beginner',
        'icon': 'Users',
        'color': 'from-green-500 to-emerald-500',
        'tags': ['leads', 'contact', 'sales'],
        'flow': {
            'nodes': [
                {'id': 'start-1', 'type': 'start',
                 'config': {'label': 'Welcome',
                            'content': "Hi there! I'd love to learn more about you and how we can help."}},
                {'id': 'lead-1', 'type': 'lead_capture',
                 'config': {'label': 'Get Name', 'content': "What's your name?",
                            'fields': [{'name': 'name', 'type': 'text', 'required': True}]}},
                {'id': 'message-1', 'type': 'message',
                 'config': {'label': 'Nice to meet you', 'content': 'Nice to meet you, {name}!'}},
                {'id': 'lead-2', 'type': 'lead_capture',
                 'config': {'label': 'Get Email',
                            'content': "What's your email address so we can stay in touch?",
                            'fields': [{'name': 'email', 'type': 'email', 'required': True}]}},
                {'id': 'question-1', 'type': 'question',
                 'config': {'label': 'Company Size', 'content': 'What size is your company?',
                            'options': ['Just me', '2-10 employees', '11-50 employees', '50+ employees'],
                            'variable': 'company_size'}},
                {'id': 'question-2', 'type': 'question',
                 'config': {'label': 'Main Challenge', 'content': "What's your biggest challenge right now?",
                            'options': ['Getting more customers', 'Saving time', 'Reducing costs',
                                        'Improving quality'],
                            'variable': 'main_challenge'}},
                {'id': 'message-2', 'type': 'message',
                 'config': {'label': 'Thank You',
                            'content': ("Thanks {name}! We'll be in touch at {email} with some ideas on how "
                                        "we can help with {main_challenge}. Have a great day!")}},
            ],
            'edges': [
                {'id': 'e1', 'source': 'start-1', 'target': 'lead-1'},
                {'id': 'e2', 'source': 'lead-1', 'target': 'message-1'},
                {'id': 'e3', 'source': 'message-1', 'target': 'lead-2'},
                {'id': 'e4', 'source': 'lead-2', 'target': 'question-1'},
                {'id': 'e5', 'source': 'question-1', 'target': 'question-2'},
                {'id': 'e6', 'source': 'question-2', 'target': 'message-2'},
            ],
        },
    },
    # Pro tier
    {
        'id': 'appointment-booking',
        'name': 'Appointment Scheduler',
        'description': 'Help customers book appointments and collect their contact details.',
        'category': 'business',
        'difficulty': 'intermediate',
        'icon': 'Calendar',
        'color': 'from-purple-500 to-pink-500',
        'tags': ['appointments', 'booking', 'scheduling'],
        'flow': {
            'nodes': [
                {'id': 'start-1', 'type': 'start',
                 'config': {'label': 'Appointment Start',
                            'content': "Hello! I'd be happy to help you schedule an appointment."}},
                {'id': 'question-1', 'type': 'question',
                 'config': {'label': 'Service Type',
                            'content': 'What type of appointment would you like to schedule?',
                            'options': ['Consultation', 'Product Demo', 'Support Session', 'Follow-up'],
                            'variable': 'service_type'}},
                {'id': 'lead-1', 'type': 'lead_capture',
                 'config': {'label': 'Contact Details', 'content': "Great choice! What's your name?",
                            'fields': [{'name': 'name', 'type': 'text', 'required': True},
                                       {'name': 'email', 'type': 'email', 'required': True},
                                       {'name': 'phone', 'type': 'phone', 'required': True}]}},
                {'id': 'appointment-1', 'type': 'appointment',
                 'config': {'label': 'Preferred Time',
                            'content': 'When would you like to meet? Tell me a day and time that suits you.',
                            'variable': 'preferred_time', 'duration': 30}},
                {'id': 'message-1', 'type': 'message',
                 'config': {'label': 'Confirmation',
                            'content': ("Perfect! Thanks {name}. I've noted your preferences: "
                                        "{service_type} at {preferred_time}. We'll confirm by email at {email}.")}},
            ],
            'edges': [
                {'id': 'e1', 'source': 'start-1', 'target': 'question-1'},
                {'id': 'e2', 'source': 'question-1', 'target': 'lead-1'},
                {'id': 'e3', 'source': 'lead-1', 'target': 'appointment-1'},
                {'id': 'e4', 'source': 'appointment-1', 'target': 'message-1'},
            ],
        },
    },
    {
        'id': 'ai-customer-support',
        'name': 'AI Customer Support',
        'description': 'AI-powered support that escalates to a human agent on request and collects feedback.',
        'category': 'support',
        'difficulty': 'advanced',
        'icon': 'HelpCircle',
        'color': 'from-indigo-500 to-purple-600',
        'tags': ['ai', 'support', 'escalation', 'survey'],
        'flow': {
            'nodes': [
                {'id': 'start-1', 'type': 'start',
                 'config': {'label': 'AI Support Start',
                            'content': ("Hello! I'm your AI assistant. I can help with questions, "
                                        "troubleshooting, and connect you with human support when needed.")}},
                {'id': 'ai-1', 'type': 'ai_response',
                 'config': {'label': 'AI Assistant',
                            'content': ("I'm here to help with any questions or issues you might have. "
                                        "What can I assist you with today?"),
                            'systemPrompt': ("You are a helpful customer support AI. Answer questions about "
                                             "products, troubleshoot issues, and escalate to humans when needed.")}},
                {'id': 'conditional-1', 'type': 'conditional',
                 'config': {'label': 'Escalation Check',
                            'conditions': [{'variable': 'last_user_input', 'operator': 'contains',
                                            'value': 'human', 'action': 'handoff'}]}},
                {'id': 'human-handoff-1', 'type': 'human_handoff',
                 'config': {'label': 'Connect to Human',
                            'content': ("I'll connect you with a human agent who can provide more "
                                        "specialized assistance."),
                            'handoffConfig': {'reason': 'Customer requested human assistance',
                                              'priority': 'medium', 'department': 'support'}}},
                {'id': 'survey-1', 'type': 'survey',
                 'config': {'label': 'Satisfaction Survey',
                            'surveyConfig': {
                                'title': 'How was your experience?',
                                'questions': [
                                    {'type': 'rating', 'question': 'How satisfied are you with the support?',
                                     'required': True, 'variable': 'satisfaction'},
                                    {'type': 'text', 'question': 'Any additional feedback?',
                                     'required': False, 'variable': 'feedback'},
                                ],
                            }}},
            ],
            'edges': [
                {'id': 'e1', 'source': 'start-1', 'target': 'ai-1'},
                {'id': 'e2', 'source': 'ai-1', 'target': 'conditional-1'},
                {'id': 'e3', 'source': 'conditional-1', 'target': 'human-handoff-1', 'condition': 'handoff'},
                {'id': 'e4', 'source': 'conditional-1', 'target': 'survey-1'},
            ],
        },
    },
    {
        'id': 'lead-qualification-pro',
        'name': 'Advanced Lead Qualification',
        'description': 'Lead qualification with conditional logic, CRM integration and demo scheduling.',
        'category': 'sales',
        'difficulty': 'advanced',
        'icon': 'Target',
        'color': 'from-green-500 to-teal-600',
        'tags': ['leads', 'qualification', 'automation', 'crm'],
        'flow': {
            'nodes': [
                {'id': 'start-1', 'type': 'start',
                 'config': {'label': 'Lead Qualification Start',
                            'content': "Welcome! Let's see how we can help your business grow."}},
                {'id': 'lead-1', 'type': 'lead_capture',
                 'config': {'label': 'Basic Info', 'content': "Let's start with some basic information.",
                            'fields': [{'name': 'name', 'type': 'text', 'required': True},
                                       {'name': 'email', 'type': 'email', 'required': True},
                                       {'name': 'company', 'type': 'text', 'required': True}]}},
                {'id': 'question-1', 'type': 'question',
                 'config': {'label': 'Company Size', 'content': 'How large is {company}?',
                            'options': ['1-10', '11-50', '51-200', 'Enterprise'],
                            'variable': 'company_size'}},
                {'id': 'conditional-1', 'type': 'conditional',
                 'config': {'label': 'Company Size Check',
                            'conditions': [{'variable': 'company_size', 'operator': 'equals',
                                            'value': 'Enterprise', 'action': 'enterprise_flow'}]}},
                {'id': 'api-1', 'type': 'api_webhook',
                 'config': {'label': 'CRM Integration',
                            'apiConfig': {'url': 'https://api.crm.com/leads', 'method': 'POST',
                                          'headers': {'Content-Type': 'application/json'},
                                          'auth': {'type': 'bearer'},
                                          'timeout': 10,
                                          'body': {'name': '{{ name }}', 'email': '{{ email }}',
                                                   'company': '{{ company }}', 'size': '{{ company_size }}'}}}},
                {'id': 'message-1', 'type': 'message',
                 'config': {'label': 'Enterprise Follow-up',
                            'content': "Thanks {name}! Our enterprise team will reach out to {email} shortly."}},
                {'id': 'appointment-1', 'type': 'appointment',
                 'config': {'label': 'Schedule Demo',
                            'content': "Let's schedule a personalized demo for your team. When suits you?",
                            'variable': 'demo_time'}},
            ],
            'edges': [
                {'id': 'e1', 'source': 'start-1', 'target': 'lead-1'},
                {'id': 'e2', 'source': 'lead-1', 'target': 'question-1'},
                {'id': 'e3', 'source': 'question-1', 'target': 'conditional-1'},
                {'id': 'e4', 'source': 'conditional-1', 'target': 'api-1', 'condition': 'enterprise_flow'},
                {'id': 'e5', 'source': 'conditional-1', 'target': 'appointment-1'},
                {'id': 'e6', 'source': 'api-1', 'target': 'message-1'},
                {'id': 'e7', 'source': 'api-1', 'target': 'appointment-1', 'sourceHandle': 'failure'},
            ],
        },
    },
]

TEMPLATES: Mapping[str, TemplateModel] = MappingProxyType({
    data['id']: TemplateModel.model_validate(data) for data in _TEMPLATE_DATA
})


def get_template(template_id: str) -> TemplateModel:
    try:
        return TEMPLATES[template_id]
    except KeyError:
        raise ValueError(f"Unknown template: {template_id!r}. Available: {list(TEMPLATES)}") from None


def available_templates(plan: str) -> List[TemplateModel]:
    """Templates whose every node type `plan` may author."""
    paid = plan_rank(plan) >= PLAN_RANK[PLAN_PRO]
    return [template for template in TEMPLATES.values() if paid or not template.requires_pro]
