import logging
from typing import Optional

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import SurveyNodeModel, SurveyQuestionModel
from botforge_flow.node_system.Node import Capture, Node

logger = logging.getLogger(__name__)

RATING_MIN = 1
RATING_MAX = 5


class NodeSurvey(Node):
    """Asks the survey questions one per turn; ctx.progress['question_index'] tracks position."""
    AWAITS_INPUT = True

    def __init__(self, config: SurveyNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        self.survey = config.surveyConfig
        self.questions = list(self.survey.questions)

    def variable_for(self, index: int) -> str:
        return self.questions[index].variable or f"{self.node_id}_q{index + 1}"

    def question_directive(self, index: int) -> dict:
        question = self.questions[index]
        directive = {
            'question': {
                'index': index,
                'type': question.type,
                'required': question.required,
            }
        }
        if question.type == 'rating':
            directive['question']['scale'] = [RATING_MIN, RATING_MAX]
        if question.options:
            directive['question']['options'] = list(question.options)
        return directive

    async def process(self, ctx):
        ctx.progress['question_index'] = 0
        intro = self.config.content or self.survey.title
        if intro:
            yield self.yield_content(ctx, intro, title=self.survey.title, collectNPS=self.survey.collectNPS)
        yield self.yield_content(ctx, self.questions[0].question, **self.question_directive(0))

    def check_answer(self, question: SurveyQuestionModel, answer: str) -> Optional[str]:
        if not answer:
            return "Please answer this question to continue." if question.required else None
        if question.type == 'rating':
            try:
                rating = int(answer)
            except ValueError:
                return f"Please answer with a number from {RATING_MIN} to {RATING_MAX}."
            if not RATING_MIN <= rating <= RATING_MAX:
                return f"Please answer with a number from {RATING_MIN} to {RATING_MAX}."
        if question.type == 'choice' and question.options:
            lowered = {o.lower() for o in question.options}
            if answer.lower() not in lowered:
                return "Please choose one of the available options."
        return None

    async def receive(self, event, ctx):
        index = ctx.progress.get('question_index', 0)
        question = self.questions[index]
        answer = event.value.strip()
        error = self.check_answer(question, answer)
        if error:
            ctx.record(DebugEventType.FALLBACK, node_id=self.node_id, reason='invalid_answer', question=index)
            return Capture(
                accepted=False,
                complete=False,
                outputs=[self.fallback(ctx, error, **self.question_directive(index))],
            )

        ctx.variables[self.variable_for(index)] = answer
        ctx.record(DebugEventType.INPUT_CAPTURED, node_id=self.node_id, variable=self.variable_for(index))
        index += 1
        ctx.progress['question_index'] = index
        if index < len(self.questions):
            return Capture(
                complete=False,
                outputs=[self.output(ctx, self.questions[index].question, **self.question_directive(index))],
            )
        logger.info("NodeSurvey:%s completed %d question(s)", self.node_id, len(self.questions))
        return Capture(
            outputs=[self.output(ctx, "Thank you for your feedback!")],
            intent='survey_completed',
            confidence=1.0,
        )
