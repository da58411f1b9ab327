# prompt_assembly/context_providers.py
"""Context provider classes for assembling generation briefs."""

from __future__ import annotations

import structlog

from arc_analysis import (
    AnalysisCache,
    analyze_all_arc_contexts,
    analyze_emotional_payoffs,
    analyze_foreshadowing,
    analyze_pacing,
    analyze_symbolism,
    format_arc_context_for_prompt,
    format_emotional_payoffs,
    format_foreshadowing,
    format_pacing,
    format_symbolism,
    resolve_arc_chapters,
)
from config import settings
from models import NovelState

from .context_models import BriefRequest, ContextSection

logger = structlog.get_logger(__name__)


class ContextProvider:
    """Base interface for all context providers."""

    source: str = "base"

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        """Return brief sections for the given request."""
        raise NotImplementedError


class TaskProvider(ContextProvider):
    """Role, task, constraints and output format. Never truncated."""

    source = "task"

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        next_chapter = request.chapter_number or len(novel.chapters) + 1
        sections = [
            ContextSection("role", f"ROLE: {request.role}", 10, False),
            ContextSection(
                "task",
                f"[TASK]\n{request.task}\nNovel: {novel.title or novel.id}"
                + (f" ({novel.genre})" if novel.genre else "")
                + f"\nChapter to write: {next_chapter}",
                10,
                False,
            ),
        ]
        if request.constraints:
            lines = "\n".join(f"- {c}" for c in request.constraints)
            sections.append(
                ContextSection("constraints", f"[CONSTRAINTS]\n{lines}", 10, False)
            )
        if request.output_format:
            sections.append(
                ContextSection(
                    "output_format", f"[OUTPUT FORMAT]\n{request.output_format}", 10, False
                )
            )
        return sections


class ChapterTransitionProvider(ContextProvider):
    """How the previous chapter ended, so the next one picks up cleanly."""

    source = "chapter_transition"

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        chapters = novel.sorted_chapters
        if not chapters:
            return []
        last = chapters[-1]
        tail = (last.content or last.summary)[-settings.CHAPTER_TRANSITION_TAIL_CHARS :]
        if not tail.strip():
            return []
        text = (
            f"[CHAPTER TRANSITION]\nChapter {last.number} ({last.title}) ended with:\n"
            f"{tail.strip()}\nContinue directly from this moment."
        )
        return [ContextSection("chapter_transition", text, 10, False)]


class RecentChaptersProvider(ContextProvider):
    source = "recent_chapters"

    def __init__(self, count: int | None = None) -> None:
        self.count = count or settings.RECENT_CHAPTER_COUNT

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        recent = novel.sorted_chapters[-self.count :]
        if not recent:
            return []
        lines = ["[RECENT CHAPTERS]"]
        for chapter in recent:
            lines.append(f"Ch {chapter.number}: {chapter.title}")
            if chapter.summary:
                lines.append(chapter.summary)
            audit = chapter.logic_audit
            if audit is not None and audit.resulting_value:
                lines.append(
                    f"Value shift: {audit.starting_value} → {audit.resulting_value} "
                    f"({audit.causality_type})"
                )
        return [ContextSection("recent_chapters", "\n".join(lines), 9, True)]


class CurrentArcProvider(ContextProvider):
    source = "current_arc"

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        arc = novel.active_arc
        if arc is None:
            return []
        chapters = resolve_arc_chapters(arc, novel.chapters, novel.arcs)
        lines = ["[CURRENT ARC]", f'Arc: "{arc.title}"']
        if arc.description:
            lines.append(f"Description: {arc.description}")
        if chapters:
            lines.append(
                f"Chapters so far: {chapters[0].number}-{chapters[-1].number} "
                f"({len(chapters)} written)"
            )
        else:
            lines.append("Chapters so far: none")
        if arc.target_chapters and arc.target_chapters > 0:
            lines.append(f"Target length: {arc.target_chapters} chapters")
        open_items = [item for item in arc.checklist if not item.completed]
        if open_items:
            lines.append("Open checklist:")
            lines.extend(f"  - {item.label}" for item in open_items)
        return [ContextSection("current_arc", "\n".join(lines), 8, True)]


class CharacterCodexProvider(ContextProvider):
    source = "character_codex"

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        if not novel.characters:
            return []
        names = {c.id: c.name for c in novel.characters if c.id}
        lines = ["[CHARACTER CODEX]"]
        for character in novel.characters:
            entry = f"- {character.name}"
            if character.current_cultivation:
                entry += f" ({character.current_cultivation})"
            if character.notes:
                entry += f": {character.notes}"
            lines.append(entry)
            relations = [
                f"{rel.type} of {names[rel.character_id]}"
                for rel in character.relationships
                if rel.character_id in names
            ]
            if relations:
                lines.append(f"  Relationships: {', '.join(relations)}")
        return [ContextSection("character_codex", "\n".join(lines), 8, True)]


class ArcHistoryProvider(ContextProvider):
    """Tiered summaries of every completed arc."""

    source = "arc_history"

    def __init__(self, cache: AnalysisCache | None = None) -> None:
        self.cache = cache

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        summaries = analyze_all_arc_contexts(novel, self.cache)
        text = "[COMPLETED ARCS]\n" + format_arc_context_for_prompt(summaries)
        return [ContextSection("arc_history", text, 3, True)]


class NarrativeAnalysisProvider(ContextProvider):
    """Foreshadowing, emotional payoff, pacing and symbolism guidance."""

    source = "narrative_analysis"

    def __init__(self, cache: AnalysisCache | None = None) -> None:
        self.cache = cache

    def get_sections(
        self, request: BriefRequest, novel: NovelState
    ) -> list[ContextSection]:
        rendered = {
            "foreshadowing": format_foreshadowing(
                analyze_foreshadowing(novel, self.cache), len(novel.chapters)
            ),
            "emotional_payoffs": format_emotional_payoffs(
                analyze_emotional_payoffs(novel, self.cache)
            ),
            "pacing": format_pacing(analyze_pacing(novel, self.cache)),
            "symbolism": format_symbolism(analyze_symbolism(novel, self.cache)),
        }
        return [
            ContextSection(name, text, 4, True)
            for name, text in rendered.items()
            if text
        ]
