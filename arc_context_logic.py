# arc_context_logic.py
"""
Public operations of the ArcLoom engine.

Callers hand in an immutable ``NovelState`` snapshot; nothing here mutates it.
Analyses share one ``AnalysisCache``: pass your own to control its lifetime,
otherwise a process-wide cache built from settings is used.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from arc_analysis import (
    AnalysisCache,
    default_cache_from_settings,
)
from arc_analysis import boundaries as _boundaries
from arc_analysis import formatting as _formatting
from arc_analysis import narrative_analyses as _narrative
from arc_analysis import summarizer as _summarizer
from arc_analysis import tiers as _tiers
from models import (
    Arc,
    ArcMembership,
    ArcSummary,
    ArcTier,
    ArcValidationResult,
    Chapter,
    Character,
    EmotionalPayoffReport,
    ForeshadowingReport,
    NovelState,
    PacingReport,
    SymbolismReport,
)
from prompt_assembly import (
    AssembledBrief,
    BriefAssembler,
    BriefRequest,
    CompressionStats,
    ContextSection,
)
from prompt_assembly import compressor as _compressor

_default_cache: AnalysisCache | None = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> AnalysisCache:
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = default_cache_from_settings()
        return _default_cache


def _resolve_cache(cache: AnalysisCache | None) -> AnalysisCache:
    # An empty cache is falsy, so compare against None explicitly.
    return cache if cache is not None else get_default_cache()


def reset_default_cache() -> None:
    """Forget the process-wide cache (used by tests and after settings changes)."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = None


def resolve_arc_chapters(
    arc: Arc, chapters: Sequence[Chapter], arcs: Sequence[Arc]
) -> list[Chapter]:
    return _boundaries.resolve_arc_chapters(arc, chapters, arcs)


def resolve_all_arc_chapters(
    chapters: Sequence[Chapter], arcs: Sequence[Arc]
) -> ArcMembership:
    return _boundaries.resolve_all(chapters, arcs)


def validate_arc_state(
    arc: Arc, chapters: Sequence[Chapter], arcs: Sequence[Arc]
) -> ArcValidationResult:
    return _boundaries.validate_arc_state(arc, chapters, arcs)


def validate_all_arc_states(novel: NovelState) -> tuple[NovelState, list[str], int]:
    return _boundaries.validate_all_arc_states(novel)


def determine_arc_tier(index: int, total: int) -> ArcTier:
    return _tiers.determine_arc_tier(index, total)


def summarize_arc(
    arc: Arc,
    chapters: Sequence[Chapter],
    characters: Sequence[Character],
    tier: ArcTier,
    arcs: Sequence[Arc] | None = None,
) -> ArcSummary:
    return _summarizer.summarize_arc(arc, chapters, characters, tier, arcs)


def analyze_all_arc_contexts(
    novel: NovelState, cache: AnalysisCache | None = None
) -> list[ArcSummary]:
    return _summarizer.analyze_all_arc_contexts(novel, _resolve_cache(cache))


def format_arc_context_for_prompt(summaries: Sequence[ArcSummary]) -> str:
    return _formatting.format_arc_context_for_prompt(summaries)


def analyze_foreshadowing(
    novel: NovelState, cache: AnalysisCache | None = None
) -> ForeshadowingReport:
    return _narrative.analyze_foreshadowing(novel, _resolve_cache(cache))


def analyze_emotional_payoffs(
    novel: NovelState, cache: AnalysisCache | None = None
) -> EmotionalPayoffReport:
    return _narrative.analyze_emotional_payoffs(novel, _resolve_cache(cache))


def analyze_pacing(novel: NovelState, cache: AnalysisCache | None = None) -> PacingReport:
    return _narrative.analyze_pacing(novel, _resolve_cache(cache))


def analyze_symbolism(
    novel: NovelState, cache: AnalysisCache | None = None
) -> SymbolismReport:
    return _narrative.analyze_symbolism(novel, _resolve_cache(cache))


def compress_sections(
    sections: Sequence[ContextSection], max_length: int
) -> tuple[str, CompressionStats]:
    return _compressor.compress_sections(sections, max_length)


def build_generation_brief(
    novel: NovelState,
    request: BriefRequest | None = None,
    cache: AnalysisCache | None = None,
) -> AssembledBrief:
    """Assemble the full brief for the next chapter of ``novel``."""
    assembler = BriefAssembler(cache=_resolve_cache(cache))
    return assembler.assemble(novel, request)
