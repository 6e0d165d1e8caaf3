import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from magic_llm.model import ModelChat

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import AiResponseNodeModel
from botforge_flow.node_system.Node import Capture, Node
from botforge_flow.util.const import (
    DEFAULT_AI_SYSTEM_PROMPT,
    MAX_FAQ_IN_PROMPT,
    VAR_AI_INTENT,
)

logger = logging.getLogger(__name__)


def search_faq(query: str, faq_entries: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Keyword match: the question contains the query, or a keyword and the query contain each other."""
    needle = (query or '').strip().lower()
    if not needle:
        return None
    for entry in faq_entries:
        if needle in str(entry.get('question', '')).lower():
            return entry
        for keyword in entry.get('keywords') or []:
            keyword = str(keyword).lower()
            if keyword and (keyword in needle or needle in keyword):
                return entry
    return None


def build_system_prompt(custom_prompt: Optional[str],
                        chatbot_context: str,
                        faq_entries: List[Dict[str, Any]],
                        variables: Dict[str, str]) -> str:
    prompt = custom_prompt or DEFAULT_AI_SYSTEM_PROMPT
    if chatbot_context:
        prompt += f"\n\nChatbot Context: {chatbot_context}"
    if faq_entries:
        prompt += "\n\nAvailable FAQ Information:\n"
        for index, faq in enumerate(faq_entries[:MAX_FAQ_IN_PROMPT], start=1):
            prompt += f"{index}. Q: {faq.get('question', '')}\n   A: {faq.get('answer', '')}\n"
        prompt += "\nUse this FAQ information to answer questions when relevant."
    if variables:
        prompt += f"\n\nConversation Variables: {json.dumps(dict(variables), ensure_ascii=False)}"
    return prompt


_GREETING = re.compile(r'\b(hello|hi|hey)\b')


def fallback_reply(user_input: str, user_name: str = '') -> Tuple[str, str, float]:
    """Canned reply used when no language model is available: (text, intent, confidence)."""
    text = (user_input or '').lower()
    suffix = f", {user_name}" if user_name else ''
    if _GREETING.search(text):
        return (f"Hello{suffix}! I'm here to help you. What can I do for you today?",
                'greeting', 0.95)
    if 'help' in text:
        return (f"I'd be happy to help you{suffix}! You can ask me about our services, "
                "pricing, or any other questions you might have.",
                'help_request', 0.9)
    if 'price' in text or 'cost' in text:
        return (f"Our pricing is very competitive{suffix}! We offer different plans to suit your needs. "
                "Would you like me to show you our pricing options?",
                'pricing_inquiry', 0.85)
    if 'thank' in text:
        return (f"You're very welcome{suffix}! Is there anything else I can help you with?",
                'gratitude', 0.9)
    return (f"I understand you're asking about \"{user_input}\"{suffix}. Let me help you with that. "
            "For the most accurate information, I'd recommend speaking with one of our team members "
            "who can provide detailed assistance.",
            'general_inquiry', 0.7)


class NodeAiResponse(Node):
    """
    Answers the user's next message with the configured MagicLLM client.

    Generated text wins. Without it (no client, a failed or empty generation)
    a matching FAQ entry is answered directly, else keyword intents decide.
    """
    AWAITS_INPUT = True

    def __init__(self, config: AiResponseNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.variable = config.variable
        self.extra_data = {}
        if config.temperature is not None:
            self.extra_data['temperature'] = config.temperature
        if config.max_tokens is not None:
            self.extra_data['max_tokens'] = config.max_tokens

    async def process(self, ctx):
        if self.config.content and self.config.systemPrompt:
            # With a separate system prompt, content is the opening line
            yield self.yield_content(ctx, self.config.content)

    async def generate(self, user_input: str, ctx) -> Optional[str]:
        client = ctx.llm_client
        if client is None:
            return None
        settings = ctx.settings
        system = build_system_prompt(
            self.config.systemPrompt or self.config.content,
            settings.chatbot_context,
            settings.faq_entries,
            ctx.variables,
        )
        chat = ModelChat(system)
        chat.add_user_message(user_input)
        try:
            response = await client.llm.async_generate(chat, **self.extra_data)
        except Exception as e:
            logger.error("NodeAiResponse:%s generation failed: %s", self.node_id, e)
            ctx.record(DebugEventType.LLM_GENERATION, node_id=self.node_id, success=False, error_message=str(e))
            return None
        content = getattr(response, 'content', None)
        ctx.record(DebugEventType.LLM_GENERATION, node_id=self.node_id, success=bool(content),
                   response_preview=(content or '')[:200])
        return content or None

    async def receive(self, event, ctx):
        user_input = event.value
        generated = await self.generate(user_input, ctx)
        faq = None if generated else search_faq(user_input, ctx.settings.faq_entries)
        if generated:
            reply, intent, confidence = generated, 'ai_generated', 0.8
        elif faq is not None:
            reply, intent, confidence = str(faq.get('answer', '')), 'faq_match', 0.9
        else:
            name = ctx.variables.get('user_name') or ctx.variables.get('first_name') or ctx.variables.get('name') or ''
            reply, intent, confidence = fallback_reply(user_input, name)
            logger.info("NodeAiResponse:%s used fallback intent %s", self.node_id, intent)

        ctx.variables[self.variable] = reply
        ctx.variables[VAR_AI_INTENT] = intent
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable, intent=intent)
        # Generated text is surfaced as-is, not interpolated
        output = self.output(ctx, '')
        output.content = reply
        return Capture(outputs=[output], intent=intent, confidence=confidence)
