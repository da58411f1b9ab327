# arc_analysis/summarizer.py
"""Tiered summaries of completed arcs."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import structlog

from config import settings
from models import (
    Arc,
    ArcSummary,
    ArcTier,
    Chapter,
    Character,
    CharacterDevelopment,
    ElementPriority,
    NovelState,
    PlotThread,
    TensionCurve,
    TensionLevel,
    UnresolvedElement,
    is_valid_chapter_marker,
)
from models.analysis_models import PRIORITY_RANK, TENSION_RANK
from utils.text_processing import (
    clip,
    contains_any,
    split_sentences,
    text_contains_character_name,
)

from .boundaries import resolve_arc_chapters
from .cache import AnalysisCache, state_fingerprint
from .keyword_tables import (
    BREAKTHROUGH_KEYWORDS,
    CHANGE_KEYWORDS,
    CONFLICT_KEYWORDS,
    CULTIVATION_KEYWORDS,
    MILESTONE_KEYWORDS,
    QUESTION_PATTERNS,
    SETUP_KEYWORDS,
    TENSION_LEVELS,
    KeywordTable,
    first_matching_category,
)
from .tiers import assign_tiers

logger = structlog.get_logger(__name__)

ARC_SUMMARIES_NAMESPACE = "arc_summaries"
FINAL_CHAPTER_WINDOW = 3
MAX_CHANGES_PER_CHARACTER = 5
MAX_RELATIONSHIPS_PER_CHARACTER = 5


def _chapter_text(chapter: Chapter) -> str:
    return f"{chapter.content} {chapter.summary}"


def tension_level(text: str, table: KeywordTable = TENSION_LEVELS) -> TensionLevel:
    """Classify ``text`` as low/medium/high/peak tension.

    The ``low`` row of the table only documents calm vocabulary; text that
    matches nothing stronger is low as well.
    """
    return TensionLevel(first_matching_category(text, table, TensionLevel.LOW.value))


def analyze_tension_curve(chapters: Sequence[Chapter]) -> TensionCurve:
    if not chapters:
        return TensionCurve()

    def edge_level(chapter: Chapter) -> TensionLevel:
        if chapter.logic_audit is not None:
            audit = chapter.logic_audit
            return tension_level(f"{audit.the_friction} {audit.resulting_value}")
        return tension_level(_chapter_text(chapter))

    peak_chapter: int | None = None
    highest = TensionLevel.LOW
    for chapter in chapters:
        level = tension_level(_chapter_text(chapter))
        if TENSION_RANK[level] > TENSION_RANK[highest]:
            highest = level
            peak_chapter = chapter.number

    if highest not in (TensionLevel.HIGH, TensionLevel.PEAK):
        peak_chapter = None

    return TensionCurve(
        start_level=edge_level(chapters[0]),
        end_level=edge_level(chapters[-1]),
        peak_chapter=peak_chapter,
    )


def _development_for(
    character: Character,
    chapters: Sequence[Chapter],
    characters: Sequence[Character],
) -> CharacterDevelopment | None:
    appearances = [
        ch
        for ch in chapters
        if text_contains_character_name(f"{ch.content} {ch.summary} {ch.title}", character.name)
    ]
    if not appearances:
        return None

    changes: list[str] = []
    for chapter in appearances:
        for sentence in split_sentences(chapter.summary):
            if text_contains_character_name(sentence, character.name) and contains_any(
                sentence, CHANGE_KEYWORDS
            ):
                trimmed = clip(sentence.strip(), 200)
                if len(trimmed) > 20 and trimmed not in changes:
                    changes.append(trimmed)
        audit = chapter.logic_audit
        if audit is not None:
            audit_text = f"{audit.the_choice} {audit.resulting_value}"
            if text_contains_character_name(audit_text, character.name) and contains_any(
                audit_text, CHANGE_KEYWORDS
            ):
                change = clip(audit.resulting_value, 200)
                if len(change) > 10 and change not in changes:
                    changes.append(change)

    by_id = {c.id: c for c in characters if c.id}
    mentions: Counter[str] = Counter()
    for chapter in appearances:
        text = _chapter_text(chapter)
        for rel in character.relationships:
            target = by_id.get(rel.character_id)
            if target is not None and text_contains_character_name(text, target.name):
                mentions[f"{rel.type} with {target.name}"] += 1
    relationships = [key for key, _ in mentions.most_common(MAX_RELATIONSHIPS_PER_CHARACTER)]

    power_progression = _power_progression(character, chapters, appearances[-1])

    if not changes and not relationships and not power_progression:
        return None
    return CharacterDevelopment(
        character_name=character.name,
        changes=changes[:MAX_CHANGES_PER_CHARACTER],
        relationships=relationships,
        power_progression=power_progression,
    )


def _power_progression(
    character: Character, chapters: Sequence[Chapter], last_appearance: Chapter
) -> str | None:
    if not character.current_cultivation.strip():
        return None
    arc_text = " ".join(_chapter_text(ch) for ch in chapters)
    if not contains_any(arc_text, CULTIVATION_KEYWORDS):
        return None
    if not text_contains_character_name(arc_text, character.name):
        return None

    for sentence in split_sentences(_chapter_text(last_appearance)):
        if text_contains_character_name(sentence, character.name) and contains_any(
            sentence, BREAKTHROUGH_KEYWORDS
        ):
            return clip(sentence.strip(), 150)
    audit = last_appearance.logic_audit
    if audit is not None and "breakthrough" in audit.resulting_value.lower():
        return clip(audit.resulting_value, 150)
    return f"Power progression: {character.current_cultivation}"


def extract_character_development(
    arc: Arc, chapters: Sequence[Chapter], characters: Sequence[Character]
) -> list[CharacterDevelopment]:
    if not chapters or not characters:
        return []
    development: list[CharacterDevelopment] = []
    for character in characters:
        if not character.name:
            continue
        try:
            entry = _development_for(character, chapters, characters)
        except Exception as exc:
            logger.error(
                "Error extracting character development",
                character=character.name,
                arc_title=arc.title,
                error=str(exc),
                exc_info=True,
            )
            continue
        if entry is not None:
            development.append(entry)
    return development


def _marker_or(value: int | None, fallback: int | None) -> int | None:
    return value if is_valid_chapter_marker(value) else fallback


def _is_open_conflict(chapter: Chapter) -> bool:
    audit = chapter.logic_audit
    return (
        audit is not None
        and audit.causality_type == "But"
        and contains_any(audit.resulting_value, CONFLICT_KEYWORDS)
    )


def extract_plot_threads(arc: Arc, chapters: Sequence[Chapter]) -> list[PlotThread]:
    threads = [
        PlotThread(
            description=item.label,
            status="resolved" if item.completed else "unresolved",
            introduced_in=_marker_or(
                item.source_chapter_number, _marker_or(arc.started_at_chapter, 1)
            ),
        )
        for item in arc.checklist
    ]
    for chapter in chapters:
        if _is_open_conflict(chapter):
            threads.append(
                PlotThread(
                    description=clip(chapter.logic_audit.resulting_value, 200),
                    status="unresolved",
                    introduced_in=chapter.number,
                )
            )
    return threads


def _checklist_priority(
    source_chapter: int | None, start: int | None, end: int | None
) -> ElementPriority:
    if not is_valid_chapter_marker(source_chapter) or not is_valid_chapter_marker(end):
        return ElementPriority.MEDIUM
    if source_chapter >= end:
        return ElementPriority.HIGH
    start = _marker_or(start, 1)
    ratio = (source_chapter - start) / (end - start + 1)
    if ratio > 0.7:
        return ElementPriority.HIGH
    if ratio > 0.4:
        return ElementPriority.MEDIUM
    return ElementPriority.LOW


def extract_unresolved_elements(
    arc: Arc,
    chapters: Sequence[Chapter],
    limit: int | None = None,
) -> list[UnresolvedElement]:
    """Open questions and loose ends an arc hands to its successors, ranked."""
    limit = limit or settings.MAX_UNRESOLVED_ELEMENTS
    unresolved: list[UnresolvedElement] = []

    start = _marker_or(
        arc.started_at_chapter, chapters[0].number if chapters else None
    )
    end = _marker_or(arc.ended_at_chapter, chapters[-1].number if chapters else None)
    for item in arc.checklist:
        if item.completed:
            continue
        unresolved.append(
            UnresolvedElement(
                element=item.label,
                priority=_checklist_priority(item.source_chapter_number, start, end),
                source="checklist",
            )
        )

    final_chapters = list(chapters[-FINAL_CHAPTER_WINDOW:])
    for position, chapter in enumerate(final_chapters):
        if not chapter.content:
            continue
        priority = (
            ElementPriority.HIGH
            if position == len(final_chapters) - 1
            else ElementPriority.MEDIUM
        )
        content = chapter.content.lower()
        for pattern in QUESTION_PATTERNS:
            for match in list(pattern.finditer(content))[:2]:
                unresolved.append(
                    UnresolvedElement(
                        element=match.group(0).strip(), priority=priority, source="question"
                    )
                )

    if chapters and _is_open_conflict(chapters[-1]):
        unresolved.append(
            UnresolvedElement(
                element=clip(chapters[-1].logic_audit.resulting_value, 150),
                priority=ElementPriority.HIGH,
                source="conflict",
            )
        )

    for chapter in final_chapters:
        if not chapter.content:
            continue
        text = f"{chapter.content} {chapter.summary}".lower()
        sentences = split_sentences(chapter.summary or chapter.content)
        for keyword in SETUP_KEYWORDS:
            if keyword not in text:
                continue
            sentence = next((s for s in sentences if keyword in s.lower()), None)
            if sentence and len(sentence.strip()) > 20:
                unresolved.append(
                    UnresolvedElement(
                        element=clip(sentence.strip(), 150),
                        priority=ElementPriority.MEDIUM,
                        source="setup",
                    )
                )

    unresolved.sort(key=lambda u: PRIORITY_RANK[u.priority], reverse=True)
    return unresolved[:limit]


def generate_outcome(arc: Arc, chapters: Sequence[Chapter]) -> str:
    max_chars = settings.ARC_OUTCOME_MAX_CHARS
    if not chapters:
        return "Arc completed but no chapters found."
    last = chapters[-1]
    if last.logic_audit is not None:
        return clip(
            f"Arc concluded with: {last.logic_audit.resulting_value}. {last.summary}",
            max_chars,
        )
    if last.summary:
        return clip(last.summary, max_chars)
    return clip(arc.description, max_chars)


def _digest(chapter: Chapter, max_chars: int | None = None) -> str:
    body = chapter.summary or chapter.title
    if max_chars is not None:
        body = clip(body, max_chars)
    return f"Ch {chapter.number}: {body}"


def summarize_arc(
    arc: Arc,
    all_chapters: Sequence[Chapter],
    characters: Sequence[Character],
    tier: ArcTier,
    all_arcs: Sequence[Arc] | None = None,
) -> ArcSummary:
    """Summarize ``arc`` at the detail level of ``tier``."""
    chapters = resolve_arc_chapters(arc, all_chapters, all_arcs)
    digests: list[str] = []
    key_events: list[str] = []
    development: list[CharacterDevelopment] = []
    threads: list[PlotThread] = []
    unresolved: list[UnresolvedElement] = []
    unresolved_summary: str | None = None

    if tier == ArcTier.RECENT:
        digests = [_digest(ch) for ch in chapters]
        key_events = [
            f"{ch.logic_audit.starting_value} → {ch.logic_audit.resulting_value} "
            f"({ch.logic_audit.causality_type})"
            for ch in chapters
            if ch.logic_audit is not None
        ][: settings.MAX_RECENT_KEY_EVENTS]
    elif tier == ArcTier.MIDDLE:
        if chapters:
            limit = settings.MIDDLE_DIGEST_MAX_CHARS
            first, last = chapters[0], chapters[-1]
            middle = chapters[len(chapters) // 2]
            digests.append(_digest(first, limit))
            if middle.number not in (first.number, last.number):
                digests.append(_digest(middle, limit))
            if last.number != first.number:
                digests.append(_digest(last, limit))
        key_events = [
            ch.logic_audit.resulting_value
            for ch in chapters
            if ch.logic_audit is not None
            and (
                ch.logic_audit.causality_type == "But"
                or contains_any(ch.logic_audit.resulting_value, MILESTONE_KEYWORDS)
            )
        ][: settings.MAX_MIDDLE_KEY_EVENTS]
    else:
        digests = [f"Arc consisted of {len(chapters)} chapters."]

    if tier != ArcTier.OLD:
        development = extract_character_development(arc, chapters, characters)
        threads = extract_plot_threads(arc, chapters)
        ranked = extract_unresolved_elements(arc, chapters)
        if tier == ArcTier.RECENT:
            unresolved = ranked
        else:
            high_count = sum(1 for u in ranked if u.priority == ElementPriority.HIGH)
            if high_count:
                unresolved_summary = f"{high_count} high-priority unresolved elements"

    return ArcSummary(
        arc_id=arc.id,
        title=arc.title,
        tier=tier,
        description=arc.description,
        chapter_count=len(chapters),
        chapter_digests=digests,
        key_events=key_events,
        character_development=development,
        plot_threads=threads,
        tension_curve=analyze_tension_curve(chapters),
        unresolved_elements=unresolved,
        unresolved_summary=unresolved_summary,
        outcome=generate_outcome(arc, chapters),
    )


def _fallback_summary(arc: Arc, tier: ArcTier) -> ArcSummary:
    return ArcSummary(
        arc_id=arc.id,
        title=arc.title or "Untitled Arc",
        tier=tier,
        description=arc.description or "No description available",
        outcome="Error analyzing arc",
    )


def _summarize_all(novel: NovelState) -> list[ArcSummary]:
    summaries: list[ArcSummary] = []
    for arc, tier in assign_tiers(novel.arcs):
        try:
            summaries.append(
                summarize_arc(arc, novel.chapters, novel.characters, tier, novel.arcs)
            )
        except Exception as exc:
            logger.error(
                "Error analyzing arc",
                arc_id=arc.id,
                arc_title=arc.title,
                error=str(exc),
                exc_info=True,
            )
            summaries.append(_fallback_summary(arc, tier))
    return summaries


def analyze_all_arc_contexts(
    novel: NovelState, cache: AnalysisCache | None = None
) -> list[ArcSummary]:
    """Tiered summaries of every completed arc, oldest first."""
    if cache is None:
        return _summarize_all(novel)
    key = state_fingerprint(novel, ARC_SUMMARIES_NAMESPACE)
    return cache.get_or_compute(key, lambda: _summarize_all(novel))
