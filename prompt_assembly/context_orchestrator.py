# prompt_assembly/context_orchestrator.py
"""Gather sections from providers and compress them into a brief."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from arc_analysis import AnalysisCache
from config import settings
from models import NovelState

from .compressor import compress_sections
from .context_models import AssembledBrief, BriefRequest, ContextSection
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

logger = structlog.get_logger(__name__)


def default_providers(cache: AnalysisCache | None = None) -> list[ContextProvider]:
    return [
        TaskProvider(),
        ChapterTransitionProvider(),
        RecentChaptersProvider(),
        CurrentArcProvider(),
        CharacterCodexProvider(),
        NarrativeAnalysisProvider(cache),
        ArcHistoryProvider(cache),
    ]


class BriefAssembler:
    """Run the configured providers and fit their sections into the budget."""

    def __init__(
        self,
        providers: Sequence[ContextProvider] | None = None,
        cache: AnalysisCache | None = None,
        max_length: int | None = None,
    ) -> None:
        self.cache = cache
        self.providers = list(providers) if providers is not None else default_providers(cache)
        self.max_length = max_length if max_length is not None else settings.MAX_BRIEF_LENGTH

    def gather(self, request: BriefRequest, novel: NovelState) -> list[ContextSection]:
        sections: list[ContextSection] = []
        for provider in self.providers:
            try:
                produced = provider.get_sections(request, novel)
            except Exception as exc:
                logger.warning(
                    "Context provider error",
                    provider=provider.source,
                    error=str(exc),
                    exc_info=True,
                )
                continue
            if not isinstance(produced, list):
                logger.warning(
                    "Invalid context provider result",
                    provider=provider.source,
                    result_type=type(produced).__name__,
                )
                continue
            sections.extend(s for s in produced if s.text)
        return sections

    def assemble(self, novel: NovelState, request: BriefRequest | None = None) -> AssembledBrief:
        """Return the brief for ``request`` over ``novel``."""
        request = request or BriefRequest()
        max_length = request.max_length if request.max_length is not None else self.max_length
        sections = self.gather(request, novel)
        text, stats = compress_sections(sections, max_length)
        logger.info(
            "Built generation brief",
            novel_id=novel.id,
            sections=len(sections),
            length=stats.compressed_length,
            tokens=stats.compressed_tokens,
        )
        return AssembledBrief(text=text, sections=sections, stats=stats)
