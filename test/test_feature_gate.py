import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.flow import load_flow
from botforge_flow.registry import NODE_TYPES, gated_node_types, get_node_type, node_types
from botforge_flow.util.exceptions import FeatureGateError
from botforge_flow.util.feature_gate import (
    can_author,
    can_create_chatbot,
    can_execute,
    can_use_feature,
    ensure_can_author,
    gated_node_ids,
    max_chatbots,
)

FREE_TYPES = {"start", "message", "question", "lead_capture"}


class TestFeatureGate:

    def test_free_plan_may_author_basic_nodes(self):
        for node_type in FREE_TYPES:
            assert can_author(node_type, "free") is True

    def test_free_plan_may_not_author_ai_response(self):
        assert can_author("ai_response", "free") is False

    def test_every_gated_type_is_blocked_on_free(self):
        assert gated_node_types() == set(NODE_TYPES) - FREE_TYPES
        for node_type in gated_node_types():
            assert can_author(node_type, "free") is False
            assert can_execute(node_type, "free") is False

    def test_paid_plans_unlock_everything(self):
        for plan in ("pro", "enterprise"):
            for node_type in NODE_TYPES:
                assert can_author(node_type, plan) is True
                assert can_execute(node_type, plan) is True

    def test_authoring_and_execution_agree(self):
        for node_type in NODE_TYPES:
            for plan in ("free", "pro", "enterprise"):
                assert can_author(node_type, plan) == can_execute(node_type, plan)

    def test_ensure_can_author_raises(self):
        with pytest.raises(FeatureGateError) as exc:
            ensure_can_author("conditional", "free")
        assert exc.value.node_type == "conditional"
        assert exc.value.plan == "free"
        ensure_can_author("conditional", "pro")

    def test_unknown_plan_and_type(self):
        with pytest.raises(ValueError):
            can_author("message", "platinum")
        with pytest.raises(ValueError):
            can_execute("start", "gold")
        with pytest.raises(ValueError):
            can_author("teleport", "pro")

    def test_product_features(self):
        assert can_use_feature("whatsapp", "free") is False
        assert can_use_feature("faq_upload", "pro") is True
        assert can_use_feature("survey", "free") is False
        assert can_use_feature("message", "free") is True
        assert can_use_feature("analytics", "free") is True

    def test_chatbot_limits(self):
        assert max_chatbots("free") == 1
        assert max_chatbots("pro") is None
        assert can_create_chatbot("free", 0) is True
        assert can_create_chatbot("free", 1) is False
        assert can_create_chatbot("enterprise", 250) is True

    def test_gated_node_ids_in_graph(self):
        graph = load_flow({
            "nodes": [
                {"id": "s", "type": "start", "config": {}},
                {"id": "ai", "type": "ai_response", "config": {}},
                {"id": "m", "type": "message", "config": {"content": "Hi"}},
            ],
            "edges": [],
        })
        assert gated_node_ids(graph, "free") == ["ai"]
        assert gated_node_ids(graph, "pro") == []


class TestRegistry:

    def test_catalogue_is_read_only(self):
        with pytest.raises(TypeError):
            NODE_TYPES["custom"] = NODE_TYPES["message"]

    def test_defaults_are_copies(self):
        first = get_node_type("question").default_config()
        first["options"].append("Option 3")
        assert get_node_type("question").default_config()["options"] == ["Option 1", "Option 2"]

    def test_defaults_validate_against_config_model(self):
        for spec in NODE_TYPES.values():
            spec.config_model.model_validate(spec.default_config())

    def test_filter_by_category(self):
        assert [spec.type for spec in node_types("flow")] == ["start", "conditional"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
