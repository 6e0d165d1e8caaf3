import asyncio
import os
import sys

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from botforge_flow.flow import build
from botforge_flow.models.model_turn_result import ConversationStatus
from botforge_flow.node_system.NodeApiWebhook import lookup_path
from botforge_flow.util.const import DEFAULT_WEBHOOK_FAILURE_MESSAGE


ORDER = {"data": {"order": {"status": "shipped", "items": [{"id": 7}, {"id": 9}]}}}


def webhook_flow(url, timeout=None, with_failure_path=True, auth=None):
    api_config = {
        "url": url,
        "method": "post",
        "auth": auth or {"type": "bearer", "token": "secret-token"},
        "body": {"email": "{{ email }}", "source": "bot"},
        "responseMapping": {
            "order_status": "data.order.status",
            "first_item": "data.order.items.0.id",
            "missing": "data.nope",
        },
    }
    if timeout is not None:
        api_config["timeout"] = timeout
    flow = {
        "nodes": [
            {"id": "start", "type": "start", "config": {}},
            {"id": "ask", "type": "message", "config": {"content": "Your email?", "variable": "email"}},
            {"id": "api", "type": "api_webhook", "config": {"apiConfig": api_config}},
            {"id": "ok", "type": "message", "config": {"content": "Your order is {order_status}"}},
            {"id": "sorry", "type": "message", "config": {"content": "Our system is busy"}},
        ],
        "edges": [
            {"id": "e1", "source": "start", "target": "ask"},
            {"id": "e2", "source": "ask", "target": "api"},
            {"id": "e3", "source": "api", "target": "ok"},
        ],
    }
    if with_failure_path:
        flow["edges"].append({"id": "e4", "source": "api", "target": "sorry", "sourceHandle": "failure"})
    else:
        flow["nodes"].pop()
    return flow


def make_app():
    app = web.Application()
    app["requests"] = []

    async def orders(request):
        app["requests"].append({"headers": dict(request.headers), "json": await request.json()})
        return web.json_response(ORDER)

    async def slow(request):
        await asyncio.sleep(1.0)
        return web.json_response(ORDER)

    async def broken(request):
        return web.json_response({"error": "boom"}, status=500)

    async def not_modified(request):
        return web.Response(status=304)

    app.router.add_post("/orders", orders)
    app.router.add_post("/slow", slow)
    app.router.add_post("/broken", broken)
    app.router.add_post("/not-modified", not_modified)
    return app


async def run_to_webhook(engine, email="ada@example.com"):
    state = engine.new_conversation(plan='pro')
    await engine.start(state)
    result = await engine.advance(state, email)
    return state, result


class TestApiWebhookNode:

    def setup_method(self):
        self.app = make_app()

    @pytest.mark.asyncio
    async def test_success_maps_response_into_variables(self):
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/orders")), timeout=5))
            state, result = await run_to_webhook(engine)

        assert result.failure is None
        assert state.variables["api_status"] == "200"
        assert state.variables["order_status"] == "shipped"
        assert state.variables["first_item"] == "7"
        assert "missing" not in state.variables
        assert result.messages[0] == "Your order is shipped"
        assert state.current_node_id == "ok"

        sent = self.app["requests"][0]
        assert sent["json"] == {"email": "ada@example.com", "source": "bot"}
        assert sent["headers"]["Authorization"] == "Bearer secret-token"

    @pytest.mark.asyncio
    async def test_api_key_auth_header(self):
        auth = {"type": "api_key", "token": "k-123", "header": "X-Shop-Key"}
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/orders")), auth=auth))
            await run_to_webhook(engine)
        headers = self.app["requests"][0]["headers"]
        assert headers["X-Shop-Key"] == "k-123"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_timeout_takes_failure_edge(self):
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/slow")), timeout=0.2))
            state, result = await run_to_webhook(engine)

        assert result.failure is not None
        assert result.failure.reason == "timeout"
        assert result.failure.message == "No response within 0.2 seconds"
        assert result.messages[0] == "Our system is busy"
        assert state.current_node_id == "sorry"
        assert "api_status" not in state.variables
        assert result.status == ConversationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_engine_default_timeout_applies(self):
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/slow"))),
                           config={"default_webhook_timeout": 0.2})
            _state, result = await run_to_webhook(engine)
        assert result.failure.reason == "timeout"

    @pytest.mark.asyncio
    async def test_http_error_without_failure_edge_halts(self):
        async with TestServer(self.app) as server:
            flow = webhook_flow(str(server.make_url("/broken")), timeout=5, with_failure_path=False)
            engine = build(flow)
            state, result = await run_to_webhook(engine)

        assert result.failure.reason == "http_status"
        assert result.failure.status_code == 500
        assert state.variables["api_status"] == "500"
        assert result.status == ConversationStatus.HALTED
        assert result.fallback is True
        assert result.messages == [DEFAULT_WEBHOOK_FAILURE_MESSAGE]

        after = await engine.advance(state, "hello?")
        assert after.outputs == []

    @pytest.mark.asyncio
    async def test_redirect_status_takes_failure_edge(self):
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/not-modified")), timeout=5))
            state, result = await run_to_webhook(engine)

        assert result.failure.reason == "http_status"
        assert result.failure.status_code == 304
        assert state.variables["api_status"] == "304"
        assert "order_status" not in state.variables
        assert state.current_node_id == "sorry"

    @pytest.mark.asyncio
    async def test_webhook_events_in_trace(self):
        async with TestServer(self.app) as server:
            engine = build(webhook_flow(str(server.make_url("/broken")), timeout=5), debug=True)
            state, _result = await run_to_webhook(engine)
        summary = state.trace.get_summary()
        assert summary.webhook_calls == 1
        assert summary.webhook_failures == 1
        assert [e["edge_id"] for e in summary.traversed_edges][-1] == "e4"


class TestLookupPath:

    def test_nested_dicts_and_lists(self):
        assert lookup_path(ORDER, "data.order.items.1.id") == 9

    def test_missing_segments(self):
        assert lookup_path(ORDER, "data.order.items.5.id") is None
        assert lookup_path(ORDER, "data.order.status.x") is None
        assert lookup_path(None, "data") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
