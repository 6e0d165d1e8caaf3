import json
import logging
from typing import Any, Dict, Optional

from magic_llm import MagicLLM

logger = logging.getLogger(__name__)


def build_llm_client(settings: Optional[Dict[str, Any]]) -> Optional[MagicLLM]:
    """
    Create the MagicLLM client used by ai_response nodes.

    Returns None when no settings are given or the client cannot be built;
    AI nodes then answer with their keyword fallback.
    """
    if not settings:
        return None
    args = dict(settings)
    api_info = args.pop('api_info', None)
    try:
        if isinstance(api_info, str) and api_info:
            api_info = json.loads(api_info)
        if isinstance(api_info, dict):
            args.update(api_info)
        # MagicLLM uses `private_key` but many configs provide `api_key`
        if 'api_key' in args and 'private_key' not in args:
            args['private_key'] = args['api_key']
        client = MagicLLM(**args)
    except Exception as e:
        logger.error("Failed to initialize MagicLLM client engine=%s model=%s: %s",
                     settings.get('engine'), settings.get('model'), e)
        return None
    logger.info("MagicLLM client initialized engine=%s model=%s", settings.get('engine'), settings.get('model'))
    return client
