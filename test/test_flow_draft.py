import os
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.authoring import FlowDraft
from botforge_flow.models.validation import ValidationErrorKind as Kind
from botforge_flow.templates import get_template
from botforge_flow.util.exceptions import FeatureGateError


class TestFlowDraft:

    def setup_method(self):
        self.draft = FlowDraft(plan="free")
        self.start = self.draft.add_node("start", node_id="start")
        self.ask = self.draft.add_node("question", {"content": "Pick one", "options": ["A", "B"]}, node_id="ask")

    def test_new_nodes_start_from_registry_defaults(self):
        node_id = self.draft.add_node("message")
        assert node_id.startswith("message-")
        assert self.draft.node(node_id)["config"]["content"] == "Enter your message here..."

    def test_gated_node_is_refused_on_free_plan(self):
        with pytest.raises(FeatureGateError):
            self.draft.add_node("ai_response")
        assert len(self.draft.node_ids) == 2

    def test_connecting_to_gated_node_is_refused(self):
        graph = FlowDraft(plan="pro")
        graph.add_node("start", node_id="s")
        graph.add_node("conditional", node_id="c")
        free = FlowDraft.from_graph(graph.to_graph(), plan="free")
        with pytest.raises(FeatureGateError):
            free.connect("s", "c")

    def test_invalid_config_is_rejected(self):
        with pytest.raises(ValidationError):
            self.draft.add_node("question", {"content": "Pick", "options": []})
        with pytest.raises(ValidationError):
            self.draft.update_node(self.ask, {"options": []})
        assert self.draft.node(self.ask)["config"]["options"] == ["A", "B"]

    def test_duplicate_node_id(self):
        with pytest.raises(ValueError):
            self.draft.add_node("message", node_id="ask")

    def test_authoring_bindings_are_stripped(self):
        node_id = self.draft.add_node("message", {"content": "Hi", "onEdit": "fn", "isSelected": True,
                                                   "onDelete": lambda: None})
        config = self.draft.node(node_id)["config"]
        assert set(config) == {"content"}

    def test_update_node_merges_and_moves(self):
        self.draft.update_node(self.ask, {"variable": "choice", "position": {"x": 5, "y": 10}})
        node = self.draft.node(self.ask)
        assert node["config"]["variable"] == "choice"
        assert node["config"]["content"] == "Pick one"
        assert node["position"] == {"x": 5, "y": 10}

    def test_node_returns_a_copy(self):
        self.draft.node(self.ask)["config"]["options"].append("C")
        assert self.draft.node(self.ask)["config"]["options"] == ["A", "B"]

    def test_remove_node_drops_touching_edges(self):
        done = self.draft.add_node("message", {"content": "Done"}, node_id="done")
        e1 = self.draft.connect(self.start, self.ask)
        e2 = self.draft.connect(self.ask, done)
        assert sorted(self.draft.remove_node(self.ask)) == sorted([e1, e2])
        assert self.draft.edge_ids == []

    def test_unknown_ids(self):
        with pytest.raises(KeyError):
            self.draft.connect(self.start, "ghost")
        with pytest.raises(KeyError):
            self.draft.disconnect("edge-missing")
        with pytest.raises(KeyError):
            self.draft.remove_node("ghost")

    def test_save_valid_draft(self):
        self.draft.connect(self.start, self.ask)
        result = self.draft.save()
        assert result.saved is True
        assert [n.id for n in result.graph.nodes] == ["start", "ask"]
        assert result.to_dict()["errors"] == []

    def test_save_blocked_by_errors(self):
        self.draft.add_node("start", node_id="start-2")
        result = self.draft.save()
        assert result.saved is False
        assert result.graph is None
        assert Kind.MISSING_START_NODE in [e.kind for e in result.errors]

    def test_warnings_do_not_block_save(self):
        self.draft.add_node("message", {"content": "Nobody links here"}, node_id="island")
        self.draft.connect(self.start, self.ask)
        assert any(w.kind == Kind.UNREACHABLE_NODE for w in self.draft.warnings())
        assert self.draft.save().saved is True


class TestDraftMessages:

    def setup_method(self):
        self.draft = FlowDraft(plan="pro")

    def test_editor_message_sequence(self):
        start = self.draft.dispatch({"action": "add_node", "node_type": "start", "node_id": "s"})
        hook = self.draft.dispatch({"action": "add_node", "node_type": "api_webhook", "node_id": "api",
                                    "config": {"apiConfig": {"url": "https://example.com/hook"}}})
        ok = self.draft.dispatch({"action": "add_node", "type": "message", "node_id": "ok"})
        oops = self.draft.dispatch({"action": "add_node", "node_type": "message", "node_id": "oops",
                                    "config": {"content": "Something went wrong"}})
        self.draft.dispatch({"action": "connect", "source": start, "target": hook, "edge_id": "e1"})
        self.draft.dispatch({"action": "connect", "source": hook, "target": ok, "edge_id": "e2"})
        self.draft.dispatch({"action": "connect", "source": hook, "target": oops, "edge_id": "e3",
                             "sourceHandle": "failure"})
        self.draft.dispatch({"action": "edit_node", "node_id": ok, "changes": {"content": "All set"}})

        assert self.draft.validate() == []
        saved = self.draft.save()
        assert saved.graph.get_node("ok").config.content == "All set"
        assert [e.id for e in saved.graph.edges if e.is_failure_path] == ["e3"]

        self.draft.dispatch({"action": "disconnect", "edge_id": "e3"})
        self.draft.dispatch({"action": "delete_node", "node_id": "oops"})
        assert self.draft.node_ids == ["s", "api", "ok"]

    def test_failure_edge_from_non_webhook_is_invalid(self):
        self.draft.add_node("start", node_id="s")
        self.draft.add_node("message", {"content": "Hi"}, node_id="m")
        self.draft.connect("s", "m")
        self.draft.connect_failure("m", "s")
        assert Kind.AMBIGUOUS_BRANCH in [e.kind for e in self.draft.validate()]

    def test_unsupported_action(self):
        with pytest.raises(ValueError):
            self.draft.dispatch({"action": "explode"})


class TestDraftFromTemplate:

    def test_free_template_on_free_plan(self):
        draft = FlowDraft.from_template(get_template("lead-collection"), plan="free")
        assert len(draft.node_ids) == 7
        assert "lead-1" not in draft.node_ids
        assert draft.save().saved is True

    def test_paid_template_is_gated_on_free_plan(self):
        with pytest.raises(FeatureGateError):
            FlowDraft.from_template(get_template("ai-customer-support"), plan="free")

    def test_paid_template_on_pro_plan(self):
        draft = FlowDraft.from_template(get_template("lead-qualification-pro"), plan="pro")
        assert draft.validate() == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
