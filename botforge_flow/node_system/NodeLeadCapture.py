import logging
import re
from typing import Optional

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import LeadCaptureNodeModel, LeadFieldModel
from botforge_flow.node_system.Node import Capture, Node
from botforge_flow.util.const import NAME_ALIASES

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PHONE_PATTERN = re.compile(r'^\+?[\d\s().\-]{7,20}$')

INVALID_VALUE_MESSAGES = {
    'email': "That doesn't look like a valid email address. Please try again.",
    'phone': "That doesn't look like a valid phone number. Please try again.",
    'number': "Please enter a number.",
    'text': "This field is required. Please enter a value.",
}


def validate_field_value(field: LeadFieldModel, value: str) -> Optional[str]:
    """Return an error message for `value`, or None when it is acceptable."""
    value = value.strip()
    if not value:
        return INVALID_VALUE_MESSAGES['text'] if field.required else None
    if field.type == 'email' and not EMAIL_PATTERN.match(value):
        return INVALID_VALUE_MESSAGES['email']
    if field.type == 'phone' and (not PHONE_PATTERN.match(value) or sum(c.isdigit() for c in value) < 7):
        return INVALID_VALUE_MESSAGES['phone']
    if field.type == 'number':
        try:
            float(value)
        except ValueError:
            return INVALID_VALUE_MESSAGES['number']
    return None


class NodeLeadCapture(Node):
    """
    Collects one declared field per turn. Progress lives in the conversation,
    under ctx.progress['field_index'].
    """
    AWAITS_INPUT = True

    def __init__(self, config: LeadCaptureNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.fields = list(config.fields)

    def prompt_for(self, field: LeadFieldModel) -> str:
        return f"Please enter your {field.prompt_label}:"

    def field_directive(self, field: LeadFieldModel) -> dict:
        return {'field': {'name': field.name, 'type': field.type, 'required': field.required}}

    async def process(self, ctx):
        ctx.progress['field_index'] = 0
        first = self.fields[0]
        if self.config.content:
            yield self.yield_content(ctx, self.config.content, **self.field_directive(first))
        else:
            yield self.yield_content(ctx, self.prompt_for(first), **self.field_directive(first))

    async def receive(self, event, ctx):
        index = ctx.progress.get('field_index', 0)
        field = self.fields[index]
        value = event.value.strip()
        error = validate_field_value(field, value)
        if error:
            ctx.record(DebugEventType.FALLBACK, node_id=self.node_id, reason='invalid_field', field=field.name)
            return Capture(
                accepted=False,
                complete=False,
                outputs=[self.fallback(ctx, error, **self.field_directive(field))],
            )

        ctx.variables[field.name] = value
        if 'name' in field.name.lower():
            for alias in NAME_ALIASES:
                ctx.variables[alias] = value
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=field.name)
        logger.debug("NodeLeadCapture:%s captured field %s", self.node_id, field.name)

        index += 1
        ctx.progress['field_index'] = index
        if index < len(self.fields):
            nxt = self.fields[index]
            return Capture(
                complete=False,
                outputs=[self.output(ctx, self.prompt_for(nxt), **self.field_directive(nxt))],
                intent='information_provided',
                confidence=0.9,
            )
        addressee = self.captured_name(ctx) or value
        thanks = self.output(ctx, f"Thank you, {addressee}!" if addressee else "Thank you!")
        return Capture(outputs=[thanks], intent='information_provided', confidence=0.9)

    def captured_name(self, ctx) -> Optional[str]:
        for field in self.fields:
            if 'name' in field.name.lower() and ctx.variables.get(field.name):
                return ctx.variables[field.name]
        return None
