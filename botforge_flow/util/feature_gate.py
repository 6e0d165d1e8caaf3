"""
Feature Gate - plan-tier checks for node types and product features.

The same rule is applied at two call sites: the authoring surface
(`can_author`) and the traversal engine (`can_execute`), so a graph saved on
a paid plan does not silently run gated nodes after a downgrade.
"""

import logging
from typing import List, Optional

from botforge_flow.registry import NODE_TYPES, get_node_type
from botforge_flow.util.const import PLAN_LIMITS, PLAN_PRO, PLAN_RANK, PRO_FEATURES
from botforge_flow.util.exceptions import FeatureGateError

logger = logging.getLogger(__name__)


def plan_rank(plan: str) -> int:
    try:
        return PLAN_RANK[plan]
    except KeyError:
        raise ValueError(f"Unknown plan tier: {plan!r}. Available: {list(PLAN_RANK)}") from None


def _allowed(node_type: str, plan: str) -> bool:
    spec = get_node_type(node_type)
    rank = plan_rank(plan)
    return not spec.requires_pro or rank >= PLAN_RANK[PLAN_PRO]


def can_author(node_type: str, plan: str) -> bool:
    """Whether an account on `plan` may place or connect a node of `node_type`."""
    return _allowed(node_type, plan)


def can_execute(node_type: str, plan: str) -> bool:
    """Whether a conversation owned by an account on `plan` may run a node of `node_type`."""
    return _allowed(node_type, plan)


def ensure_can_author(node_type: str, plan: str) -> None:
    if not can_author(node_type, plan):
        logger.warning("Blocked authoring of %s on plan %s", node_type, plan)
        raise FeatureGateError(node_type, plan)


def gated_node_ids(graph, plan: str) -> List[str]:
    """Ids of nodes in `graph` that `plan` may not execute."""
    return [node.id for node in graph.nodes if not can_execute(node.type, plan)]


def can_use_feature(feature: str, plan: str) -> bool:
    """Node types and named product features ("whatsapp", "faq_upload") share one rule."""
    if feature in NODE_TYPES:
        return can_author(feature, plan)
    if feature in PRO_FEATURES:
        return plan_rank(plan) >= PLAN_RANK[PLAN_PRO]
    plan_rank(plan)
    return True


def max_chatbots(plan: str) -> Optional[int]:
    plan_rank(plan)
    return PLAN_LIMITS[plan]['max_chatbots']


def can_create_chatbot(plan: str, existing_count: int) -> bool:
    limit = max_chatbots(plan)
    return limit is None or existing_count < limit
