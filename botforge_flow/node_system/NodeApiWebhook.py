import asyncio
import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import aiohttp

from botforge_flow.debug.events import DebugEventType
from botforge_flow.models.factory.Nodes import ApiWebhookNodeModel
from botforge_flow.node_system.Node import Node
from botforge_flow.util.const import VAR_API_STATUS
from botforge_flow.util.template_parser import interpolate, interpolate_output, render_body

logger = logging.getLogger(__name__)


def lookup_path(data: Any, path: str) -> Any:
    """Follow a dotted path ("data.items.0.id") through dicts and lists."""
    current = data
    for part in path.split('.'):
        if isinstance(current, dict):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(current, list):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return None
        else:
            return None
    return current


class NodeApiWebhook(Node):
    """
    Calls an external HTTP endpoint when traversal enters the node.

    The configured timeout bounds the whole request. A timeout, a non-2xx
    status or a connection error is reported as a failure item and never retried.
    """

    def __init__(self, config: ApiWebhookNodeModel, **kwargs):
        super().__init__(config=config, **kwargs)
        api = config.apiConfig
        self.api = api
        self.method = api.method

    def timeout_for(self, ctx) -> float:
        if self.api.timeout is not None:
            return float(self.api.timeout)
        return float(ctx.settings.default_webhook_timeout)

    def directives(self):
        # Credentials never leave the engine
        return {'apiConfig': self.api.model_dump(mode='json', include={'url', 'method', 'headers', 'timeout'})}

    def build_request(self, variables: Dict[str, str]) -> Dict[str, Any]:
        headers = {'Accept': 'application/json', **interpolate_output(dict(self.api.headers), variables)}
        kwargs: Dict[str, Any] = {
            'method': self.method,
            'url': interpolate(self.api.url, variables),
            'headers': headers,
        }
        auth = self.api.auth
        if auth.type == 'bearer' and auth.token:
            headers['Authorization'] = f"Bearer {auth.token}"
        elif auth.type == 'api_key' and auth.token:
            headers[auth.header] = auth.token
        elif auth.type == 'basic' and auth.username is not None:
            kwargs['auth'] = aiohttp.BasicAuth(auth.username, auth.password or '')

        if self.method != 'GET':
            body = render_body(self.api.body, variables) if self.api.body is not None else dict(variables)
            if isinstance(body, (dict, list)):
                kwargs['json'] = body
            else:
                kwargs['data'] = body
        return kwargs

    async def fetch(self, session: aiohttp.ClientSession, request: Dict[str, Any]):
        parts = urlsplit(request['url'])
        safe_url = f"{parts.scheme}://{parts.netloc}{parts.path}"
        logger.info("NodeApiWebhook:%s %s %s", self.node_id, self.method, safe_url)
        if self.debug:
            logger.debug("NodeApiWebhook:%s headers_keys=%s", self.node_id, list(request['headers'].keys()))

        async with session.request(**request) as response:
            if self.debug:
                logger.debug("NodeApiWebhook:%s response status=%s", self.node_id, response.status)
            if not 200 <= response.status < 300:
                raise aiohttp.ClientResponseError(response.request_info, response.history,
                                                  status=response.status, message=response.reason or "")
            text = await response.text()
            try:
                payload = json.loads(text) if text else None
            except ValueError:
                payload = text
            return response.status, payload

    def apply_mapping(self, payload: Any, ctx) -> None:
        for variable, path in self.api.responseMapping.items():
            value = lookup_path(payload, path)
            if value is None:
                logger.debug("NodeApiWebhook:%s response has no value at %s", self.node_id, path)
                continue
            if isinstance(value, (dict, list)):
                value = json.dumps(value)
            ctx.variables[variable] = str(value)

    async def process(self, ctx):
        if self.config.content:
            yield self.yield_content(ctx, self.config.content, **self.directives())

        request = self.build_request(ctx.variables)
        timeout = self.timeout_for(ctx)
        ctx.record(DebugEventType.WEBHOOK_CALLED, node_id=self.node_id, method=self.method,
                   url=urlsplit(request['url']).path, timeout=timeout)
        failure: Optional[dict] = None
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                status, payload = await self.fetch(session, request)
        except asyncio.TimeoutError:
            failure = self.yield_failure('timeout', f"No response within {timeout:g} seconds")
        except aiohttp.ClientResponseError as e:
            ctx.variables[VAR_API_STATUS] = str(e.status)
            failure = self.yield_failure('http_status', f"Endpoint returned HTTP {e.status}", status_code=e.status)
        except aiohttp.ClientError as e:
            failure = self.yield_failure('connection', f"{type(e).__name__}: {e}")

        if failure is not None:
            detail = failure['content']
            logger.error("NodeApiWebhook:%s call failed (%s): %s", self.node_id, detail.reason, detail.message)
            ctx.record(DebugEventType.WEBHOOK_FAILED, node_id=self.node_id,
                       reason=detail.reason, message=detail.message, status_code=detail.status_code)
            yield failure
            return

        ctx.variables[VAR_API_STATUS] = str(status)
        self.apply_mapping(payload, ctx)
        logger.info("NodeApiWebhook:%s request completed with status %s", self.node_id, status)
