from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import AppointmentNodeModel
from botforge_flow.node_system.Node import Capture, Node


class NodeAppointment(Node):
    """Asks for a preferred time and records the reply as given."""
    AWAITS_INPUT = True

    def __init__(self, config: AppointmentNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.variable = config.variable

    def directives(self):
        directive = {}
        if self.config.duration:
            directive['duration'] = self.config.duration
        if self.config.calendarUrl:
            directive['calendarUrl'] = self.config.calendarUrl
        return directive

    async def process(self, ctx):
        yield self.yield_content(
            ctx,
            self.config.content or "When would you like to schedule your appointment?",
            **self.directives(),
        )

    async def receive(self, event, ctx):
        preferred = event.value.strip()
        if not preferred:
            return Capture(accepted=False, complete=False,
                           outputs=[self.fallback(ctx, "Please tell me a date and time that works for you.")])
        ctx.variables[self.variable] = preferred
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable)
        return Capture(
            outputs=[self.output(ctx, f"Thanks! I've noted your preferred time: {preferred}.")],
            intent='appointment_requested',
            confidence=0.9,
        )
