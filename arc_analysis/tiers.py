# arc_analysis/tiers.py
"""Recency tiers for completed arcs."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from models import Arc, ArcTier, is_valid_chapter_marker

logger = structlog.get_logger(__name__)

MIDDLE_TIER_SIZE = 2


def determine_arc_tier(index: int, total_completed: int) -> ArcTier:
    """Return the tier of the completed arc at ``index`` (oldest first)."""
    if index >= total_completed - 1:
        return ArcTier.RECENT
    if index >= total_completed - 1 - MIDDLE_TIER_SIZE:
        return ArcTier.MIDDLE
    return ArcTier.OLD


def _marker_key(value: int | None) -> int:
    return value if is_valid_chapter_marker(value) else 0

def order_completed_arcs(arcs: Sequence[Arc]) -> list[Arc]:
    """Completed, titled arcs in completion order."""
    completed: list[Arc] = []
    for arc in arcs:
        if not arc.is_completed:
            continue
        if not arc.title or not arc.title.strip():
            logger.warning("Found completed arc with no title, skipping", arc_id=arc.id)
            continue
        completed.append(arc)
    return sorted(
        completed,
        key=lambda a: (_marker_key(a.ended_at_chapter), _marker_key(a.started_at_chapter)),
    )


def assign_tiers(arcs: Sequence[Arc]) -> list[tuple[Arc, ArcTier]]:
    ordered = order_completed_arcs(arcs)
    total = len(ordered)
    return [(arc, determine_arc_tier(i, total)) for i, arc in enumerate(ordered)]
