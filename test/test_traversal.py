import os
import sys
from copy import deepcopy

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.execution.config import EngineConfig
from botforge_flow.execution.traversal_engine import FlowTraversalEngine
from botforge_flow.flow import build, load_flow
from botforge_flow.models.model_turn_result import ConversationStatus
from botforge_flow.util.const import DEFAULT_END_MESSAGE, DEFAULT_UPGRADE_MESSAGE
from botforge_flow.util.exceptions import FlowIntegrityError


SUPPORT_FLOW = {
    "nodes": [
        {"id": "start", "type": "start", "config": {"content": "Hi!"}},
        {"id": "ask", "type": "question",
         "config": {"content": "How can we help?",
                    "options": ["I'd like to speak with a human", "I have another question"]}},
        {"id": "route", "type": "conditional", "config": {"conditions": [
            {"variable": "selected_option", "operator": "Contains", "value": "human", "action": "handoff"},
            {"variable": "selected_option", "operator": "Contains", "value": "question", "action": "more"},
        ]}},
        {"id": "human_handoff_node", "type": "human_handoff",
         "config": {"content": "Connecting you to {handoff_department}..."}},
        {"id": "followup_node", "type": "message", "config": {"content": "Sure, ask away."}},
    ],
    "edges": [
        {"id": "e1", "source": "start", "target": "ask"},
        {"id": "e2", "source": "ask", "target": "route"},
        {"id": "e3", "source": "route", "target": "human_handoff_node", "condition": "handoff"},
        {"id": "e4", "source": "route", "target": "followup_node", "condition": "more"},
    ],
}

YES_NO_FLOW = {
    "nodes": [
        {"id": "start", "type": "start", "config": {}},
        {"id": "ask", "type": "message", "config": {"content": "Type yes or no", "variable": "answer"}},
        {"id": "route", "type": "conditional", "config": {
            "fallbackMessage": "Please answer yes or no.",
            "conditions": [
                {"variable": "last_user_input", "operator": "contains", "value": "yes", "action": "yes"},
            ]}},
        {"id": "great", "type": "message", "config": {"content": "Great!"}},
    ],
    "edges": [
        {"id": "e1", "source": "start", "target": "ask"},
        {"id": "e2", "source": "ask", "target": "route"},
        {"id": "e3", "source": "route", "target": "great", "condition": "yes"},
    ],
}

LEAD_FLOW = {
    "nodes": [
        {"id": "start", "type": "start", "config": {"content": "Welcome!"}},
        {"id": "lead", "type": "lead_capture", "config": {
            "content": "Let's get your details",
            "fields": [{"name": "name", "type": "text"}, {"name": "email", "type": "email"}],
        }},
        {"id": "bye", "type": "message", "config": {"content": "Thanks {name}, we'll email {email}."}},
    ],
    "edges": [
        {"id": "e1", "source": "start", "target": "lead"},
        {"id": "e2", "source": "lead", "target": "bye"},
    ],
}


def kinds(result):
    return [o.kind for o in result.outputs]


class TestSpeakWithHuman:
    """A question answer routed through a conditional to the handoff node."""

    def setup_method(self):
        self.engine = build(deepcopy(SUPPORT_FLOW))

    @pytest.mark.asyncio
    async def test_start_runs_until_question(self):
        state = self.engine.new_conversation(plan='pro')
        result = await self.engine.start(state)
        assert result.messages == ["Hi!", "How can we help?"]
        assert result.status == ConversationStatus.AWAITING_INPUT
        assert state.current_node_id == "ask"
        assert result.outputs[-1].directives["options"] == SUPPORT_FLOW["nodes"][1]["config"]["options"]

    @pytest.mark.asyncio
    async def test_human_option_reaches_handoff(self):
        state = self.engine.new_conversation(plan='pro')
        await self.engine.start(state)
        result = await self.engine.advance(state, {"option": "I'd like to speak with a human"})

        assert state.variables["selected_option"] == "I'd like to speak with a human"
        assert state.current_node_id == "human_handoff_node"
        assert "Connecting you to support..." in result.messages
        assert result.status == ConversationStatus.COMPLETED
        assert result.outputs[-1].kind == "end"
        assert result.outputs[-1].content == DEFAULT_END_MESSAGE
        assert state.visited == ["start", "ask", "route", "human_handoff_node"]

    @pytest.mark.asyncio
    async def test_free_text_reply_matches_option_by_containment(self):
        state = self.engine.new_conversation(plan='pro')
        await self.engine.start(state)
        result = await self.engine.advance(state, "another question")
        assert state.variables["selected_option"] == "I have another question"
        assert result.messages[:2] == ["You selected: I have another question", "Sure, ask away."]
        assert state.current_node_id == "followup_node"

    @pytest.mark.asyncio
    async def test_unmatched_reply_reprompts_with_options(self):
        state = self.engine.new_conversation(plan='pro')
        await self.engine.start(state)
        result = await self.engine.advance(state, "zzz")
        assert result.fallback is True
        assert kinds(result) == ["fallback"]
        assert result.outputs[0].directives["options"]
        assert state.current_node_id == "ask"
        assert result.status == ConversationStatus.AWAITING_INPUT

    def test_select_edge_first_match_wins(self):
        edge = self.engine.select_edge("route", {"selected_option": "human question"})
        assert edge.id == "e3"

    def test_select_edge_second_condition(self):
        edge = self.engine.select_edge("route", {"selected_option": "a question"})
        assert edge.id == "e4"

    def test_select_edge_no_match_without_default(self):
        assert self.engine.select_edge("route", {"selected_option": "nothing"}) is None

    def test_select_edge_uses_default_edge(self):
        flow = deepcopy(SUPPORT_FLOW)
        flow["nodes"].append({"id": "menu", "type": "message", "config": {"content": "Menu"}})
        flow["edges"].append({"id": "d1", "source": "route", "target": "menu"})
        engine = build(flow)
        assert engine.select_edge("route", {}).id == "d1"

    def test_select_edge_on_plain_node(self):
        assert self.engine.select_edge("ask", {}).id == "e2"
        assert self.engine.select_edge("followup_node", {}) is None


class TestConditionalFallback:
    """No matching condition and no default edge keeps the conversation in place."""

    def setup_method(self):
        self.engine = build(deepcopy(YES_NO_FLOW))

    @pytest.mark.asyncio
    async def test_no_match_stays_and_reevaluates(self):
        state = self.engine.new_conversation(plan='pro')
        await self.engine.start(state)

        result = await self.engine.advance(state, "maybe")
        assert state.variables["answer"] == "maybe"
        assert result.fallback is True
        assert result.messages == ["Please answer yes or no."]
        assert state.current_node_id == "route"
        assert result.status == ConversationStatus.AWAITING_INPUT

        result = await self.engine.advance(state, "yes please")
        assert result.messages[0] == "Great!"
        assert state.current_node_id == "great"
        assert result.status == ConversationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_engine_fallback_message_when_node_has_none(self):
        flow = deepcopy(YES_NO_FLOW)
        del flow["nodes"][2]["config"]["fallbackMessage"]
        engine = build(flow, config={"fallback_message": "Say that again?"})
        state = engine.new_conversation(plan='pro')
        await engine.start(state)
        result = await engine.advance(state, "no")
        assert result.messages == ["Say that again?"]


class TestLeadCapture:

    def setup_method(self):
        self.engine = build(deepcopy(LEAD_FLOW))

    @pytest.mark.asyncio
    async def test_collects_fields_in_order(self):
        state = self.engine.new_conversation()
        result = await self.engine.start(state)
        assert result.messages == ["Welcome!", "Let's get your details"]
        assert result.outputs[-1].directives["field"]["name"] == "name"

        result = await self.engine.advance(state, "Ada")
        assert result.messages == ["Please enter your email:"]
        assert state.variables["user_name"] == "Ada"
        assert state.current_node_id == "lead"

        result = await self.engine.advance(state, "not-an-email")
        assert result.fallback is True
        assert "valid email" in result.messages[0]
        assert "email" not in state.variables

        result = await self.engine.advance(state, "ada@example.com")
        assert result.messages[:2] == ["Thank you, Ada!", "Thanks Ada, we'll email ada@example.com."]
        assert result.status == ConversationStatus.COMPLETED
        assert result.intent == "information_provided"

    @pytest.mark.asyncio
    async def test_progress_is_per_conversation(self):
        first = self.engine.new_conversation()
        second = self.engine.new_conversation()
        await self.engine.start(first)
        await self.engine.start(second)
        await self.engine.advance(first, "Ada")
        result = await self.engine.advance(second, "Grace")
        assert result.messages == ["Please enter your email:"]
        assert first.variables["name"] == "Ada"
        assert second.variables["name"] == "Grace"


class TestEndStates:

    @pytest.mark.asyncio
    async def test_question_without_edge_is_dead_end(self):
        flow = {
            "nodes": [
                {"id": "s", "type": "start", "config": {}},
                {"id": "q", "type": "question", "config": {"content": "Pick", "options": ["Yes", "No"]}},
            ],
            "edges": [{"id": "e1", "source": "s", "target": "q"}],
        }
        engine = build(flow)
        state = engine.new_conversation()
        await engine.start(state)
        result = await engine.advance(state, "yes")
        assert result.status == ConversationStatus.DEAD_END
        assert result.fallback is True
        assert result.outputs[-1].kind == "fallback"

    @pytest.mark.asyncio
    async def test_finished_conversation_ignores_events(self):
        flow = {
            "nodes": [
                {"id": "s", "type": "start", "config": {}},
                {"id": "m", "type": "message", "config": {"content": "Bye"}},
            ],
            "edges": [{"id": "e1", "source": "s", "target": "m"}],
        }
        engine = build(flow, config={"end_message": "The end."})
        state = engine.new_conversation()
        result = await engine.start(state)
        assert result.messages == ["Bye", "The end."]
        assert state.is_finished

        result = await engine.advance(state, "hello?")
        assert result.outputs == []
        assert result.status == ConversationStatus.COMPLETED
        assert state.messages_count == 0

    @pytest.mark.asyncio
    async def test_advance_before_start_is_rejected(self):
        engine = build(deepcopy(LEAD_FLOW))
        state = engine.new_conversation()
        with pytest.raises(ValueError):
            await engine.advance(state, "hi")

    @pytest.mark.asyncio
    async def test_start_twice_is_rejected(self):
        engine = build(deepcopy(LEAD_FLOW))
        state = engine.new_conversation()
        await engine.start(state)
        with pytest.raises(ValueError):
            await engine.start(state)


class TestIntegrity:

    def test_invalid_graph_is_refused(self):
        flow = deepcopy(SUPPORT_FLOW)
        flow["edges"].append({"id": "bad", "source": "followup_node", "target": "ghost"})
        with pytest.raises(FlowIntegrityError):
            FlowTraversalEngine(load_flow(flow))

    @pytest.mark.asyncio
    async def test_pass_through_loop_is_aborted(self):
        flow = {
            "nodes": [
                {"id": "s", "type": "start", "config": {}},
                {"id": "a", "type": "message", "config": {"content": "A"}},
                {"id": "b", "type": "action", "config": {"content": "B"}},
            ],
            "edges": [
                {"id": "e1", "source": "s", "target": "a"},
                {"id": "e2", "source": "a", "target": "b"},
                {"id": "e3", "source": "b", "target": "a"},
            ],
        }
        engine = build(flow, config=EngineConfig(max_auto_steps=5))
        state = engine.new_conversation(plan='pro')
        with pytest.raises(FlowIntegrityError) as exc:
            await engine.start(state)
        assert exc.value.node_id in ("a", "b")


class TestPlanGate:
    """A graph saved on a paid plan does not run gated nodes after a downgrade."""

    def setup_method(self):
        self.flow = {
            "nodes": [
                {"id": "s", "type": "start", "config": {"content": "Hello"}},
                {"id": "ai", "type": "ai_response",
                 "config": {"content": "Ask me anything", "systemPrompt": "Be brief."}},
            ],
            "edges": [{"id": "e1", "source": "s", "target": "ai"}],
        }
        self.engine = build(self.flow)

    @pytest.mark.asyncio
    async def test_downgraded_plan_gets_upgrade_required(self):
        state = self.engine.new_conversation(plan='free')
        result = await self.engine.start(state)
        assert result.status == ConversationStatus.UPGRADE_REQUIRED
        assert result.outputs[-1].kind == "upgrade_required"
        assert result.outputs[-1].content == DEFAULT_UPGRADE_MESSAGE
        assert state.current_node_id == "ai"
        assert "ai" not in state.visited

        result = await self.engine.advance(state, "hi")
        assert result.status == ConversationStatus.UPGRADE_REQUIRED

    @pytest.mark.asyncio
    async def test_upgrade_resumes_on_next_event(self):
        state = self.engine.new_conversation(plan='free')
        await self.engine.start(state)
        state.plan = 'pro'

        result = await self.engine.advance(state, "hi")
        assert result.messages == ["Ask me anything"]
        assert result.status == ConversationStatus.AWAITING_INPUT

        result = await self.engine.advance(state, "hello there")
        assert result.intent == "greeting"
        assert result.confidence == pytest.approx(0.95)
        assert state.variables["ai_intent"] == "greeting"
        assert result.status == ConversationStatus.COMPLETED


class TestSurveyAndUpload:

    def setup_method(self):
        self.flow = {
            "nodes": [
                {"id": "s", "type": "start", "config": {}},
                {"id": "survey", "type": "survey", "config": {"surveyConfig": {
                    "title": "Quick feedback",
                    "questions": [
                        {"type": "rating", "question": "Rate us", "variable": "rating"},
                        {"type": "text", "question": "Anything else?", "required": False},
                    ],
                }}},
                {"id": "upload", "type": "file_upload",
                 "config": {"content": "Send a receipt", "fileConfig": {"allowedTypes": ["pdf"], "maxSize": 1}}},
            ],
            "edges": [
                {"id": "e1", "source": "s", "target": "survey"},
                {"id": "e2", "source": "survey", "target": "upload"},
            ],
        }
        self.engine = build(self.flow)

    @pytest.mark.asyncio
    async def test_rating_must_be_in_range(self):
        state = self.engine.new_conversation(plan='pro')
        result = await self.engine.start(state)
        assert result.messages == ["Quick feedback", "Rate us"]

        result = await self.engine.advance(state, "9")
        assert result.fallback is True
        assert "from 1 to 5" in result.messages[0]

        result = await self.engine.advance(state, "4")
        assert state.variables["rating"] == "4"
        assert result.messages == ["Anything else?"]

        result = await self.engine.advance(state, "")
        assert state.variables["survey_q2"] == ""
        assert result.messages[:2] == ["Thank you for your feedback!", "Send a receipt"]
        assert state.current_node_id == "upload"

    @pytest.mark.asyncio
    async def test_file_upload_checks_type_and_size(self):
        state = self.engine.new_conversation(plan='pro')
        await self.engine.start(state)
        await self.engine.advance(state, "5")
        await self.engine.advance(state, "great")

        result = await self.engine.advance(state, {"file": {"name": "photo.png", "size": 100}})
        assert result.fallback is True
        assert "isn't supported" in result.messages[0]

        result = await self.engine.advance(state, {"file": {"name": "big.pdf", "size": 5 * 1024 * 1024}})
        assert "too large" in result.messages[0]

        result = await self.engine.advance(
            state, {"file": {"name": "receipt.PDF", "size": 2048, "url": "https://files.example.com/r"}})
        assert result.messages[0] == "File received: receipt.PDF"
        assert state.variables["uploaded_file"] == "receipt.PDF"
        assert state.variables["uploaded_file_url"] == "https://files.example.com/r"
        assert result.status == ConversationStatus.COMPLETED


class TestDebugTrace:

    @pytest.mark.asyncio
    async def test_trace_records_path_and_conditions(self):
        engine = build(deepcopy(SUPPORT_FLOW), debug=True)
        state = engine.new_conversation(plan='pro')
        await engine.start(state)
        await engine.advance(state, "human")

        summary = state.trace.get_summary()
        assert summary.visited_nodes == ["start", "ask", "route", "human_handoff_node"]
        assert [e["edge_id"] for e in summary.traversed_edges] == ["e1", "e2", "e3"]
        assert summary.conditions[0]["result"] is True
        assert summary.errors == []

    @pytest.mark.asyncio
    async def test_debug_flag_in_flow_json(self):
        flow = deepcopy(SUPPORT_FLOW)
        flow["debug"] = True
        engine = build(flow)
        assert engine.new_conversation().trace is not None
        assert build(deepcopy(SUPPORT_FLOW)).new_conversation().trace is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
