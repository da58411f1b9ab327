"""Central package for ArcLoom data models."""

from .analysis_models import (
    ArcMembership,
    ArcOverlap,
    ArcSummary,
    ArcTier,
    ArcValidationResult,
    CharacterDevelopment,
    ChapterPacing,
    ElementPriority,
    EmotionalPayoff,
    EmotionalPayoffReport,
    ForeshadowingElement,
    ForeshadowingReport,
    MotifEvolution,
    PacingReport,
    PayoffOpportunity,
    PlotThread,
    RhythmPattern,
    SymbolicElement,
    SymbolismReport,
    TensionCurve,
    TensionLevel,
    UnresolvedElement,
)
from .story_models import (
    Arc,
    ArcChecklistItem,
    ArcStatus,
    Chapter,
    Character,
    LogicAudit,
    NovelState,
    Relationship,
    Scene,
    is_valid_chapter_marker,
)

__all__ = [
    "Arc",
    "ArcChecklistItem",
    "ArcStatus",
    "Chapter",
    "Character",
    "LogicAudit",
    "NovelState",
    "Relationship",
    "Scene",
    "is_valid_chapter_marker",
    "ArcTier",
    "TensionLevel",
    "ElementPriority",
    "TensionCurve",
    "CharacterDevelopment",
    "PlotThread",
    "UnresolvedElement",
    "ArcSummary",
    "ArcValidationResult",
    "ArcOverlap",
    "ArcMembership",
    "ForeshadowingElement",
    "ForeshadowingReport",
    "EmotionalPayoff",
    "PayoffOpportunity",
    "EmotionalPayoffReport",
    "ChapterPacing",
    "RhythmPattern",
    "PacingReport",
    "SymbolicElement",
    "MotifEvolution",
    "SymbolismReport",
]
