"""Margin health tiers and the presentation tokens paired with them."""
from __future__ import annotations

import enum
from typing import Dict

from ..config import DANGER_MARGIN_THRESHOLD, HEALTHY_MARGIN_THRESHOLD


class MarginTier(str, enum.Enum):
    healthy = "healthy"
    acceptable = "acceptable"
    danger = "danger"


# Tier -> (text color token, badge token)
_TIER_TOKENS: Dict[MarginTier, tuple[str, str]] = {
    MarginTier.healthy: ("text-green-600", "bg-green-50 text-green-700"),
    MarginTier.acceptable: ("text-yellow-600", "bg-yellow-50 text-yellow-700"),
    MarginTier.danger: ("text-red-600", "bg-red-50 text-red-700"),
}


def classify_margin(margin: float) -> MarginTier:
    """Map a margin percentage to its tier.

    ``danger`` coincides exactly with ``JobWithMargin.margin_danger``.
    """
    if margin >= HEALTHY_MARGIN_THRESHOLD:
        return MarginTier.healthy
    if margin >= DANGER_MARGIN_THRESHOLD:
        return MarginTier.acceptable
    return MarginTier.danger


def margin_color(margin: float) -> str:
    return _TIER_TOKENS[classify_margin(margin)][0]


def margin_badge_class(margin: float) -> str:
    return _TIER_TOKENS[classify_margin(margin)][1]


def describe_tier(margin: float) -> Dict[str, str]:
    """Tier label plus its display tokens, as embedded in API payloads."""
    tier = classify_margin(margin)
    color, badge = _TIER_TOKENS[tier]
    return {"tier": tier.value, "color": color, "badge": badge}
