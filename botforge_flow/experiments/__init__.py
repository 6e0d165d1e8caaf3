from botforge_flow.experiments.variant_selector import (
    VariantAssignment,
    assign,
    hash_fraction,
    is_eligible,
    select_variant,
    summarize_results,
)

__all__ = [
    "VariantAssignment",
    "assign",
    "hash_fraction",
    "is_eligible",
    "select_variant",
    "summarize_results",
]
