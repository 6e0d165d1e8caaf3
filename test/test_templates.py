import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.flow import build
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.model_turn_result import ConversationStatus
from botforge_flow.templates import TEMPLATES, available_templates, get_template, instantiate
from botforge_flow.util.graph_validator import validate_flow


class TestTemplateCatalog:

    @pytest.mark.parametrize("template_id", list(TEMPLATES))
    def test_every_template_is_valid(self, template_id):
        assert validate_flow(get_template(template_id).flow) == []

    def test_free_plan_sees_only_free_templates(self):
        ids = [t.id for t in available_templates("free")]
        assert ids == ["simple-welcome", "lead-collection"]
        assert all(not t.requires_pro for t in available_templates("free"))

    def test_paid_plans_see_everything(self):
        assert len(available_templates("pro")) == len(TEMPLATES)
        assert len(available_templates("enterprise")) == len(TEMPLATES)

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            get_template("does-not-exist")

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            TEMPLATES["mine"] = TEMPLATES["simple-welcome"]


class TestInstantiate:

    def setup_method(self):
        self.template = get_template("lead-qualification-pro")
        self.before = self.template.flow.to_json()

    def test_structure_is_preserved_with_fresh_ids(self):
        graph = instantiate(self.template)
        source = self.template.flow
        assert len(graph.nodes) == len(source.nodes)
        assert len(graph.edges) == len(source.edges)

        mapping = {}
        for old, new in zip(source.nodes, graph.nodes):
            assert new.type == old.type
            assert new.id != old.id
            assert new.position == old.position
            mapping[old.id] = new.id
        assert len(set(mapping.values())) == len(mapping)

        for old, new in zip(source.edges, graph.edges):
            assert new.id != old.id
            assert new.source == mapping[old.source]
            assert new.target == mapping[old.target]
            assert new.condition == old.condition
            assert new.sourceHandle == old.sourceHandle

    def test_instances_do_not_collide(self):
        first, second = instantiate(self.template), instantiate(self.template)
        assert not {n.id for n in first.nodes} & {n.id for n in second.nodes}
        assert not {e.id for e in first.edges} & {e.id for e in second.edges}

    def test_template_is_not_modified(self):
        instantiate(self.template)
        assert self.template.flow.to_json() == self.before

    def test_instance_is_valid(self):
        assert validate_flow(instantiate(self.template)) == []

    def test_graph_with_repeated_id_is_rejected(self):
        graph = FlowGraphModel.model_validate({
            "nodes": [
                {"id": "a", "type": "start", "config": {}},
                {"id": "a", "type": "message", "config": {"content": "Hi"}},
            ],
            "edges": [],
        })
        with pytest.raises(ValueError):
            instantiate(graph)

    def test_edge_to_unknown_node_is_rejected(self):
        graph = FlowGraphModel.model_validate({
            "nodes": [{"id": "a", "type": "start", "config": {}}],
            "edges": [{"id": "e1", "source": "a", "target": "ghost"}],
        })
        with pytest.raises(ValueError):
            instantiate(graph)


class TestTemplateConversation:

    @pytest.mark.asyncio
    async def test_simple_welcome_runs_on_free_plan(self):
        engine = build(instantiate(get_template("simple-welcome")))
        state = engine.new_conversation(plan="free")
        result = await engine.start(state)
        assert result.messages[0].startswith("Welcome to our website!")

        result = await engine.advance(state, "Our services")
        assert state.variables["topic"] == "Our services"
        assert "(Our services)" in result.messages[1]

        result = await engine.advance(state, {"option": "No, that's all"})
        assert result.messages[1] == "Thanks for visiting! Feel free to come back any time."
        assert result.status == ConversationStatus.COMPLETED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
