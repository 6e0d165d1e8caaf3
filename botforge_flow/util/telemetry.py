import functools
import inspect
import time
import logging

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = {"api_key", "private_key", "authorization", "password", "token", "bearer", "secret"}


def _redact(value, extra_keys=()):
    """Recursively redact sensitive keys in nested structures."""
    keys = SENSITIVE_KEYS | {k.lower() for k in extra_keys}
    if isinstance(value, dict):
        return {k: ("***" if str(k).lower() in keys else _redact(v, extra_keys)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v, extra_keys) for v in value]
    if isinstance(value, tuple):
        return tuple(_redact(v, extra_keys) for v in value)
    return value


def flow_telemetry(func):
    """
    Wrap a node's `process` async generator with timing and debug logging.

    Applied automatically to every Node subclass that defines `process`.
    """
    qualname = func.__qualname__.split('.')[0]
    if not inspect.isasyncgenfunction(func):
        raise TypeError(f"Function {qualname} is not an async generator. "
                        f"flow_telemetry can only be applied to async generator functions.")

    @functools.wraps(func)
    async def wrapper(self, ctx, *args, **kwargs):
        debug = self.get_debug()
        start_time = time.monotonic()
        logger.info("Entering %s:%s", qualname, self.node_id)
        if debug:
            logger.debug("Node %s:%s config: %s", qualname, self.node_id,
                         _redact(self.config.model_dump(mode='json')))
        count = 0
        async for item in func(self, ctx, *args, **kwargs):
            count += 1
            yield item
        execution_time = time.monotonic() - start_time
        logger.info("%s:%s execution time: %.4f seconds", qualname, self.node_id, execution_time)
        if debug:
            logger.debug("Node %s:%s produced %d item(s)", qualname, self.node_id, count)

    return wrapper
