"""
A/B Variant Selector.

Assignment hashes (test_id, user_identifier) into [0, 1) so the same pair
always lands on the same variant, across calls and process restarts.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Optional, Union

from botforge_flow.models.ab_test import ABTestModel, ABTestSummary, VariantResultModel
from botforge_flow.models.factory.FlowGraphModel import FlowGraphModel
from botforge_flow.models.model_conversation_log import ConversationOutcome

logger = logging.getLogger(__name__)

Variant = Literal['A', 'B']

_HASH_SPACE = 2 ** 64


def hash_fraction(user_identifier: str, test_id: str) -> float:
    """Map the pair onto [0, 1) using the first 8 bytes of its SHA-256 digest."""
    digest = hashlib.sha256(f"{test_id}:{user_identifier}".encode('utf-8')).digest()
    return int.from_bytes(digest[:8], 'big') / _HASH_SPACE


def assign(user_identifier: str, test_id: str, traffic_split: float) -> Variant:
    """
    Sticky variant for one user in one test: 'A' when the hash falls below
    `traffic_split`, else 'B'.

    Raises:
        ValueError: traffic_split is not strictly between 0 and 1.
    """
    if not 0 < traffic_split < 1:
        raise ValueError(f"traffic_split must be in (0, 1), got {traffic_split!r}")
    return 'A' if hash_fraction(str(user_identifier), str(test_id)) < traffic_split else 'B'


def is_eligible(test: ABTestModel) -> bool:
    """Only running tests assign new conversations."""
    return test.is_running


@dataclass(frozen=True)
class VariantAssignment:
    test_id: str
    variant: Variant
    flow: FlowGraphModel


def select_variant(test: ABTestModel, user_identifier: str) -> Optional[VariantAssignment]:
    if not is_eligible(test):
        logger.debug("A/B test %s is %s; no assignment", test.id, test.status.value)
        return None
    variant = assign(user_identifier, test.id, test.traffic_split)
    logger.info("A/B test %s assigned variant %s", test.id, variant)
    return VariantAssignment(test_id=test.id, variant=variant, flow=test.variant_flow(variant).flow)


def _field(record: Union[ConversationOutcome, Mapping[str, Any]], name: str, default=None):
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def summarize_results(results: Iterable[Union[ConversationOutcome, Mapping[str, Any]]],
                      test: Optional[ABTestModel] = None) -> ABTestSummary:
    """
    Aggregate outcome records per variant.

    Conversion rate is a percentage. The winner is the variant with the higher
    conversion rate; a tie, or a variant with no conversations, has no winner.
    `improvement` is the difference in conversion-rate points.
    """
    buckets = {'A': [], 'B': []}
    for record in results:
        variant = _field(record, 'variant')
        if variant in buckets:
            buckets[variant].append(record)

    variants = {}
    for variant, records in buckets.items():
        count = len(records)
        conversions = sum(1 for r in records if _field(r, 'goal_achieved', False))
        durations = [float(_field(r, 'session_duration', 0) or 0) for r in records]
        values = [float(_field(r, 'conversion_value', 0) or 0) for r in records]
        variants[variant] = VariantResultModel(
            conversations=count,
            conversions=conversions,
            conversion_rate=(conversions / count * 100) if count else 0.0,
            avg_session_duration=(sum(durations) / count) if count else 0.0,
            total_conversion_value=sum(values),
        )

    rate_a, rate_b = variants['A'].conversion_rate, variants['B'].conversion_rate
    winner: Optional[Variant] = None
    if variants['A'].conversations and variants['B'].conversations and rate_a != rate_b:
        winner = 'A' if rate_a > rate_b else 'B'

    goal_reached = False
    if test is not None and winner is not None:
        goal_reached = variants[winner].conversion_rate >= test.goal_target

    return ABTestSummary(
        test_id=test.id if test is not None else None,
        variants=variants,
        winner=winner,
        improvement=abs(rate_a - rate_b) if winner else 0.0,
        goal_reached=goal_reached,
    )
