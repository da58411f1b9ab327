"""Arc boundary resolution, tiering, summaries and narrative analyses."""

from .boundaries import (
    BoundaryCorrectionStrategy,
    NoCorrectionStrategy,
    TypicalArcLengthStrategy,
    resolve_all,
    resolve_arc_chapters,
    validate_all_arc_states,
    validate_arc_state,
)
from .cache import AnalysisCache, default_cache_from_settings, state_fingerprint
from .formatting import (
    format_arc_context_for_prompt,
    format_emotional_payoffs,
    format_foreshadowing,
    format_pacing,
    format_symbolism,
)
from .narrative_analyses import (
    analyze_emotional_payoffs,
    analyze_foreshadowing,
    analyze_pacing,
    analyze_symbolism,
)
from .summarizer import analyze_all_arc_contexts, summarize_arc
from .tiers import assign_tiers, determine_arc_tier, order_completed_arcs

__all__ = [
    "AnalysisCache",
    "BoundaryCorrectionStrategy",
    "NoCorrectionStrategy",
    "TypicalArcLengthStrategy",
    "analyze_all_arc_contexts",
    "analyze_emotional_payoffs",
    "analyze_foreshadowing",
    "analyze_pacing",
    "analyze_symbolism",
    "assign_tiers",
    "default_cache_from_settings",
    "determine_arc_tier",
    "format_arc_context_for_prompt",
    "format_emotional_payoffs",
    "format_foreshadowing",
    "format_pacing",
    "format_symbolism",
    "order_completed_arcs",
    "resolve_all",
    "resolve_arc_chapters",
    "state_fingerprint",
    "summarize_arc",
    "validate_all_arc_states",
    "validate_arc_state",
]
