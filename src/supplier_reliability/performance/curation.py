"""
Product curation gating

Helpers the product-aggregation layer uses to turn supplier listings into
tracker ids and to fold a supplier's reliability into a product's own
quality score.
"""

import re

from supplier_reliability.kernel.errors import ValidationError
from supplier_reliability.performance.scoring import round_half_up

NEUTRAL_SUPPLIER_SCORE = 75
DEFAULT_SUPPLIER_WEIGHT = 0.3

_PLATFORM_PREFIXES = {"aliexpress": "ali"}
# Platforms whose supplier ids omit the location
_NAME_ONLY_PLATFORMS = {"aliexpress"}

_WHITESPACE = re.compile(r"\s+")


def build_supplier_id(platform: str, name: str, location: str = "") -> str:
    """
    Stable tracker id for a supplier listed on a platform

    Examples:
        >>> build_supplier_id("spocket", "Luxe Home", "United States")
        'spocket_luxe_home_united_states'
        >>> build_supplier_id("aliexpress", "Golden Thread Co", "CN")
        'ali_golden_thread_co'
    """
    if not platform or not platform.strip():
        raise ValidationError("Platform cannot be empty")
    if not name or not name.strip():
        raise ValidationError("Supplier name cannot be empty")

    key = platform.strip().lower()
    parts = [_PLATFORM_PREFIXES.get(key, key), name.strip()]
    if key not in _NAME_ONLY_PLATFORMS and location and location.strip():
        parts.append(location.strip())
    return _WHITESPACE.sub("_", "_".join(parts)).lower()


def supplier_score_or_neutral(score: int | None) -> int:
    """Unknown suppliers are neither rewarded nor punished"""
    return NEUTRAL_SUPPLIER_SCORE if score is None else score


def blend_product_score(
    product_score: float,
    supplier_score: int | None,
    supplier_weight: float = DEFAULT_SUPPLIER_WEIGHT,
) -> int:
    """
    Weighted blend of a product's quality score and its supplier's score

    Args:
        product_score: Product quality score on 0-100
        supplier_score: Supplier composite score, None for unknown suppliers
        supplier_weight: Share of the supplier score in the blend (0-1)

    Returns:
        Blended score, rounded and capped at 100
    """
    if not 0.0 <= supplier_weight <= 1.0:
        raise ValidationError(f"Supplier weight must be within [0, 1], got {supplier_weight}")

    blended = (
        product_score * (1.0 - supplier_weight)
        + supplier_score_or_neutral(supplier_score) * supplier_weight
    )
    return max(0, min(100, round_half_up(blended)))
