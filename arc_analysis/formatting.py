# arc_analysis/formatting.py
"""Render arc summaries and narrative analyses as brief sections."""

from __future__ import annotations

from collections.abc import Sequence

from config import settings
from models import (
    ArcSummary,
    ArcTier,
    EmotionalPayoffReport,
    ForeshadowingReport,
    PacingReport,
    SymbolismReport,
)
from prompt_renderer import render_prompt

NEAR_PAYOFF_MIN_AGE = 5
RECENT_FORESHADOWING_AGE = 3
MAX_LISTED_FORESHADOWING = 3


def format_arc_context_for_prompt(summaries: Sequence[ArcSummary]) -> str:
    """Render tiered arc summaries, most detailed first."""
    return render_prompt(
        "arc_history.j2",
        {
            "recent": [s for s in summaries if s.tier == ArcTier.RECENT],
            "middle": [s for s in summaries if s.tier == ArcTier.MIDDLE],
            "old": [s for s in summaries if s.tier == ArcTier.OLD],
        },
    )


def format_foreshadowing(report: ForeshadowingReport, chapter_count: int) -> str | None:
    if not report.active and not report.overdue:
        return None
    next_chapter = chapter_count + 1
    overdue_after = settings.OVERDUE_FORESHADOWING_CHAPTERS
    near_payoff = [
        f
        for f in report.active
        if NEAR_PAYOFF_MIN_AGE <= next_chapter - f.introduced_chapter < overdue_after
    ]
    recent = [
        f
        for f in report.active
        if next_chapter - f.introduced_chapter <= RECENT_FORESHADOWING_AGE
    ]
    return render_prompt(
        "foreshadowing.j2",
        {
            "near_payoff": near_payoff[:MAX_LISTED_FORESHADOWING],
            "overdue": report.overdue[:MAX_LISTED_FORESHADOWING],
            "overdue_after": overdue_after,
            "next_chapter": next_chapter,
            "needs_fresh_hint": not recent and chapter_count > 3,
        },
    )


def format_emotional_payoffs(report: EmotionalPayoffReport) -> str | None:
    if not report.recent_payoffs and not report.upcoming_opportunities:
        return None
    return render_prompt("emotional_payoffs.j2", {"report": report})


def format_pacing(report: PacingReport) -> str | None:
    if not report.chapter_pacing and not report.rhythm:
        return None
    return render_prompt("pacing.j2", {"report": report})


def format_symbolism(report: SymbolismReport) -> str | None:
    if not report.elements and not report.motif_evolution:
        return None
    return render_prompt("symbolism.j2", {"report": report})
