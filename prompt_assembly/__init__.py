"""Brief assembly: providers, compression and the assembler."""

from .compressor import (
    SECTION_PRIORITY_RULES,
    classify_section,
    compress,
    compress_sections,
    split_into_sections,
)
from .context_models import AssembledBrief, BriefRequest, CompressionStats, ContextSection
from .context_orchestrator import BriefAssembler, default_providers
from .context_providers import (
    ArcHistoryProvider,
    ChapterTransitionProvider,
    CharacterCodexProvider,
    ContextProvider,
    CurrentArcProvider,
    NarrativeAnalysisProvider,
    RecentChaptersProvider,
    TaskProvider,
)

__all__ = [
    "SECTION_PRIORITY_RULES",
    "AssembledBrief",
    "ArcHistoryProvider",
    "BriefAssembler",
    "BriefRequest",
    "ChapterTransitionProvider",
    "CharacterCodexProvider",
    "CompressionStats",
    "ContextProvider",
    "ContextSection",
    "CurrentArcProvider",
    "NarrativeAnalysisProvider",
    "RecentChaptersProvider",
    "TaskProvider",
    "classify_section",
    "compress",
    "compress_sections",
    "default_providers",
    "split_into_sections",
]
