from typing import Literal

# Plan tiers, lowest first
PLAN_FREE = 'free'
PLAN_PRO = 'pro'
PLAN_ENTERPRISE = 'enterprise'

PlanTier = Literal['free', 'pro', 'enterprise']

PLAN_RANK = {
    PLAN_FREE: 0,
    PLAN_PRO: 1,
    PLAN_ENTERPRISE: 2,
}

# None means unlimited
PLAN_LIMITS = {
    PLAN_FREE: {'max_chatbots': 1},
    PLAN_PRO: {'max_chatbots': None},
    PLAN_ENTERPRISE: {'max_chatbots': None},
}

# Product features outside the node catalogue that need a paid plan
PRO_FEATURES = frozenset({
    'whatsapp',
    'faq_upload',
})

# Outgoing edge handle reserved for the api_webhook failure path
HANDLE_FAILURE = 'failure'

# Variables written by the engine itself
VAR_LAST_USER_INPUT = 'last_user_input'
VAR_SELECTED_OPTION = 'selected_option'
VAR_API_STATUS = 'api_status'
VAR_AI_INTENT = 'ai_intent'

BUILTIN_VARIABLES = frozenset({
    VAR_LAST_USER_INPUT,
    VAR_SELECTED_OPTION,
    VAR_API_STATUS,
    VAR_AI_INTENT,
})

# A lead field whose name mentions "name" is mirrored under each of these
NAME_ALIASES = ('user_name', 'first_name', 'name', 'contact_name')

# Editor-side bindings that never belong in a persisted graph
AUTHORING_ONLY_KEYS = frozenset({
    'onEdit',
    'onDelete',
    'isSelected',
    'selected',
    'dragging',
})

# Output kinds surfaced to the delivery channel
OUTPUT_CONTENT = 'content'
OUTPUT_FALLBACK = 'fallback'
OUTPUT_UPGRADE_REQUIRED = 'upgrade_required'
OUTPUT_END = 'end'

# Item types yielded by a node's process() generator
NODE_EVENT_CONTENT = 'content'
NODE_EVENT_ROUTE = 'route'
NODE_EVENT_FAILURE = 'failure'

DEFAULT_FALLBACK_MESSAGE = "I'm sorry, I didn't quite get that. Could you rephrase?"
DEFAULT_INVALID_OPTION_MESSAGE = (
    "I didn't understand your selection. Please choose one of the available options."
)
DEFAULT_END_MESSAGE = "Thank you for chatting with me! Is there anything else I can help you with?"
DEFAULT_DEAD_END_MESSAGE = "This conversation can't continue from here. Please try again later."
DEFAULT_UPGRADE_MESSAGE = "This feature requires a Pro plan. Please upgrade to continue."
DEFAULT_WEBHOOK_FAILURE_MESSAGE = "We couldn't complete your request right now. Please try again later."
DEFAULT_HANDOFF_MESSAGE = "Let me connect you with a human agent who can help you."
DEFAULT_AI_SYSTEM_PROMPT = "You are a helpful AI assistant for a business chatbot."

# Upper bound on FAQ entries injected into an AI system prompt
MAX_FAQ_IN_PROMPT = 10
