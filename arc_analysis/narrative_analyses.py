# arc_analysis/narrative_analyses.py
"""Heuristic craft analyses run alongside the arc summaries.

Each analysis is a pure function of the novel state. The public ``analyze_*``
wrappers add a cache lookup under the analysis' own namespace and replace a
failing computation with a safe default report, which is never cached.
"""

from __future__ import annotations

import statistics
from collections.abc import Callable
from typing import TypeVar

import structlog

from config import settings
from models import (
    ChapterPacing,
    EmotionalPayoff,
    EmotionalPayoffReport,
    ForeshadowingElement,
    ForeshadowingReport,
    MotifEvolution,
    NovelState,
    PacingReport,
    PayoffOpportunity,
    RhythmPattern,
    SymbolicElement,
    SymbolismReport,
    is_valid_chapter_marker,
)
from utils.text_processing import clip, split_sentences, text_contains_character_name

from .cache import AnalysisCache, state_fingerprint
from .keyword_tables import (
    DEFAULT_SYMBOL_MEANING,
    FORESHADOWING_PATTERNS,
    INTENSITY_INDICATORS,
    PACING_INDICATORS,
    PAYOFF_PATTERNS,
    SYMBOL_MEANINGS,
    SYMBOLIC_OBJECTS,
    CuePattern,
    cue_match,
    first_matching_category,
    whole_word_scores,
)

logger = structlog.get_logger(__name__)

ReportT = TypeVar("ReportT")

FORESHADOWING_NAMESPACE = "foreshadowing"
EMOTIONAL_PAYOFFS_NAMESPACE = "emotional_payoffs"
PACING_NAMESPACE = "pacing"
SYMBOLISM_NAMESPACE = "symbolism"

PAYOFF_WINDOW = 5
PACING_WINDOW = 10
RHYTHM_WINDOW = 6
SYMBOL_MERGE_DISTANCE = 3

# (stage, recommended payoff, intensity, reason, recommended pacing)
ARC_STAGES = {
    "Beginning": (
        "revelation",
        2,
        "Early revelations can hook readers and set up emotional journey",
        "fast",
    ),
    "Early": (
        "transformation",
        3,
        "Character growth moments create emotional connection in early arc",
        "medium",
    ),
    "Middle": (
        "victory",
        4,
        "Mid-arc victories build momentum, but should be earned and meaningful",
        "medium",
    ),
    "Late": (
        "sacrifice",
        5,
        "High-intensity payoffs appropriate as arc approaches climax",
        "fast",
    ),
}


def _text(chapter) -> str:
    return f"{chapter.content} {chapter.summary}"


def active_arc_stage(novel: NovelState) -> str | None:
    """Stage of the active arc, measured in chapters since it started."""
    arc = novel.active_arc
    if arc is None:
        return None
    elapsed = 0
    if is_valid_chapter_marker(arc.started_at_chapter):
        elapsed = max(0, len(novel.chapters) - arc.started_at_chapter)
    if elapsed == 0:
        return "Beginning"
    if elapsed <= 2:
        return "Early"
    if elapsed <= 5:
        return "Middle"
    return "Late"


def _first_cue_sentence(text: str, pattern: CuePattern) -> str | None:
    for sentence in split_sentences(text):
        has_keyword, has_clue = cue_match(sentence, pattern)
        if has_keyword or has_clue:
            return sentence.strip()
    return None


def _cached_analysis(
    namespace: str,
    novel: NovelState,
    cache: AnalysisCache | None,
    compute: Callable[[NovelState], ReportT],
    fallback: Callable[[], ReportT],
) -> ReportT:
    key = state_fingerprint(novel, namespace)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached
    try:
        report = compute(novel)
    except Exception as exc:
        logger.error(
            "Narrative analysis failed",
            analysis=namespace,
            novel_id=novel.id,
            error=str(exc),
            exc_info=True,
        )
        return fallback()
    if cache is not None:
        cache.set(key, report)
    return report


# --- Foreshadowing ---


def compute_foreshadowing(novel: NovelState) -> ForeshadowingReport:
    chapters = novel.sorted_chapters
    elements: list[ForeshadowingElement] = []
    for chapter in chapters:
        text = _text(chapter)
        for kind, pattern in FORESHADOWING_PATTERNS.items():
            has_keyword, has_clue = cue_match(text, pattern)
            if not (has_keyword or has_clue):
                continue
            sentence = _first_cue_sentence(text, pattern)
            if not sentence:
                continue
            if has_keyword and has_clue:
                subtlety = "obvious"
            elif has_keyword:
                subtlety = "subtle"
            else:
                subtlety = "very_subtle"
            elements.append(
                ForeshadowingElement(
                    type=kind,
                    content=clip(sentence, 300),
                    introduced_chapter=chapter.number,
                    subtlety=subtlety,
                )
            )

    latest = chapters[-1].number if chapters else 0
    overdue_after = settings.OVERDUE_FORESHADOWING_CHAPTERS
    active = [e for e in elements if e.paid_off_chapter is None]
    overdue = [e for e in active if latest - e.introduced_chapter >= overdue_after]
    density = len(elements) / len(chapters) if chapters else 0.0
    subtle_count = sum(1 for e in elements if e.subtlety in ("subtle", "very_subtle"))

    recommendations: list[str] = []
    if len(overdue) > 3:
        recommendations.append(
            f"There are {len(overdue)} foreshadowing elements that have been active for "
            f"{overdue_after}+ chapters without payoff. Consider resolving some in the next arc."
        )
    if not active and len(chapters) > 5:
        recommendations.append(
            "No active foreshadowing detected. Consider adding subtle foreshadowing to build anticipation."
        )
    if subtle_count < len(active) * 0.3:
        recommendations.append(
            "Most foreshadowing is obvious. Consider adding more subtle foreshadowing "
            "(symbolic objects, repeated imagery, environmental cues)."
        )
    if density < 0.5:
        recommendations.append(
            "Low foreshadowing density. Consider weaving more foreshadowing elements throughout chapters."
        )
    if density > 2.0:
        recommendations.append(
            "Very high foreshadowing density. Ensure payoffs are happening regularly to maintain reader trust."
        )

    return ForeshadowingReport(
        active=active,
        overdue=overdue,
        recommendations=recommendations,
        density=round(density, 2),
        subtle_count=subtle_count,
    )


def analyze_foreshadowing(
    novel: NovelState, cache: AnalysisCache | None = None
) -> ForeshadowingReport:
    return _cached_analysis(
        FORESHADOWING_NAMESPACE,
        novel,
        cache,
        compute_foreshadowing,
        lambda: ForeshadowingReport(
            recommendations=["Error analyzing foreshadowing. Please try again."]
        ),
    )


# --- Emotional payoffs ---


def payoff_intensity(text: str) -> int:
    return int(first_matching_category(text, INTENSITY_INDICATORS, "3"))


def _reader_impact(intensity: int) -> str:
    if intensity >= 4:
        strength = "strong"
    elif intensity >= 3:
        strength = "moderate"
    else:
        strength = "mild"
    return f"Expected {strength} emotional impact"


def compute_emotional_payoffs(novel: NovelState) -> EmotionalPayoffReport:
    chapters = novel.sorted_chapters
    latest = chapters[-1].number if chapters else 0
    payoffs: list[EmotionalPayoff] = []
    for chapter in chapters[-PAYOFF_WINDOW:]:
        text = _text(chapter)
        for kind, pattern in PAYOFF_PATTERNS.items():
            has_keyword, has_clue = cue_match(text, pattern)
            if not (has_keyword or has_clue):
                continue
            sentence = _first_cue_sentence(text, pattern)
            if not sentence:
                continue
            intensity = payoff_intensity(text)
            payoffs.append(
                EmotionalPayoff(
                    type=kind,
                    description=clip(sentence, 300),
                    chapter_number=chapter.number,
                    intensity=intensity,
                    characters_involved=[
                        c.name
                        for c in novel.characters
                        if text_contains_character_name(text, c.name)
                    ],
                    reader_impact=_reader_impact(intensity),
                )
            )

    recent = [p for p in payoffs if latest - p.chapter_number <= PAYOFF_WINDOW]
    score = statistics.fmean(p.intensity for p in recent) if recent else 3.0

    opportunities: list[PayoffOpportunity] = []
    stage = active_arc_stage(novel)
    if stage is not None:
        kind, intensity, reason, _ = ARC_STAGES[stage]
        opportunities.append(
            PayoffOpportunity(
                arc_stage=stage,
                recommended_type=kind,
                suggested_intensity=intensity,
                reason=reason,
            )
        )

    recommendations: list[str] = []
    if not recent and len(chapters) > 5:
        recommendations.append(
            "No recent emotional payoff moments detected. Consider adding meaningful emotional "
            "moments (revelations, victories, losses, transformations) to create reader satisfaction."
        )
    if score < 2.5:
        recommendations.append(
            "Recent emotional payoffs have low intensity. Consider increasing emotional stakes "
            "and intensity for stronger reader engagement."
        )
    if score > 4.5:
        recommendations.append(
            "Very high emotional intensity in recent payoffs. Consider varying intensity - include "
            "some quieter emotional moments to prevent reader fatigue."
        )
    if len(recent) >= 5 and len({p.type for p in recent}) < 3:
        recommendations.append(
            "Recent payoffs lack diversity. Consider varying payoff types (revelations, victories, "
            "losses, transformations) for richer emotional journey."
        )

    return EmotionalPayoffReport(
        recent_payoffs=recent[-PAYOFF_WINDOW:],
        upcoming_opportunities=opportunities,
        intensity_score=round(score, 1),
        recommendations=recommendations,
    )


def analyze_emotional_payoffs(
    novel: NovelState, cache: AnalysisCache | None = None
) -> EmotionalPayoffReport:
    return _cached_analysis(
        EMOTIONAL_PAYOFFS_NAMESPACE,
        novel,
        cache,
        compute_emotional_payoffs,
        lambda: EmotionalPayoffReport(
            recommendations=["Error analyzing emotional payoffs. Please try again."]
        ),
    )


# --- Pacing ---


def _words(text: str) -> int:
    return len((text or "").split())


def dominant_pacing_type(text: str) -> str:
    """Most frequent pacing register, or ``mixed`` when the top two are close."""
    scores = whole_word_scores(text, PACING_INDICATORS)
    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    top_type, top = ranked[0]
    runner_up = ranked[1][1]
    if top > 0 and runner_up > 0 and (top - runner_up) / top < 0.2:
        return "mixed"
    return top_type


def chapter_pacing(chapter) -> ChapterPacing:
    scenes = chapter.scenes
    scene_count = len(scenes) or 1
    if scenes:
        total_words = sum(_words(scene.content) for scene in scenes)
    else:
        total_words = _words(chapter.content)
    average = total_words / scene_count

    variation = "low"
    if len(scenes) > 2 and average > 0:
        lengths = [_words(scene.content) for scene in scenes]
        spread = (max(lengths) - min(lengths)) / average
        if spread > 0.5:
            variation = "high"
        elif spread > 0.2:
            variation = "medium"

    return ChapterPacing(
        chapter_number=chapter.number,
        scene_count=scene_count,
        average_scene_length=round(average),
        variation=variation,
        dominant_type=dominant_pacing_type(_text(chapter)),
    )


def chapter_rhythm(chapter) -> str:
    text = _text(chapter)
    word_total = len(text.split())
    sentences = split_sentences(text)
    avg_sentence = word_total / len(sentences) if sentences else 15
    if avg_sentence < 12 and word_total < 3000:
        return "fast"
    if avg_sentence > 20 or word_total > 6000:
        return "slow"
    return "medium"


def compute_pacing(novel: NovelState) -> PacingReport:
    chapters = novel.sorted_chapters
    per_chapter = [chapter_pacing(ch) for ch in chapters[-PACING_WINDOW:]]

    rhythm: list[RhythmPattern] = []
    if len(chapters) >= 3:
        window = chapters[-RHYTHM_WINDOW:]
        sequence = [chapter_rhythm(ch) for ch in window]
        joined = " → ".join(sequence)
        rhythm.append(
            RhythmPattern(
                chapters=f"Ch {window[0].number}-{window[-1].number}",
                pattern=joined,
                description=(
                    f"{len(sequence)} chapters analyzed. Pattern: {joined}"
                    if len(sequence) >= 4
                    else f"Recent pacing pattern: {joined}"
                ),
            )
        )

    issues: list[str] = []
    recommendations: list[str] = []

    if len(per_chapter) >= 5:
        last_types = {p.dominant_type for p in per_chapter[-5:]}
        if len(last_types) == 1:
            issues.append(
                f'Last 5 chapters all have "{per_chapter[-1].dominant_type}" pacing type. '
                "Consider varying pacing for better rhythm."
            )
            recommendations.append(
                "Alternate pacing types: action scenes → dialogue scenes → reflection moments → description/atmosphere."
            )

    low_variation = sum(1 for p in per_chapter if p.variation == "low")
    if len(per_chapter) >= 3 and low_variation > len(per_chapter) * 0.7:
        issues.append(
            "Most chapters have low pacing variation. Chapters feel flat without rhythm changes."
        )
        recommendations.append(
            "Vary pacing within chapters: mix fast action beats with slower reflection or dialogue beats."
        )

    stage = active_arc_stage(novel)
    arc = novel.active_arc
    if stage is not None and arc is not None and is_valid_chapter_marker(arc.started_at_chapter) and per_chapter:
        recommendations.append(
            f"Current arc stage: {stage}. Recommended pacing: {ARC_STAGES[stage][3]}."
        )

    if rhythm:
        beats = rhythm[-1].pattern.split(" → ")
        if len(beats) >= 3 and len(set(beats)) == 1:
            issues.append(
                "Recent chapters show monotonous pacing rhythm. Alternating pacing creates better reader engagement."
            )
            recommendations.append(
                "Alternate pacing: follow fast chapters with slower ones, action with reflection, tension with release."
            )

    return PacingReport(
        chapter_pacing=per_chapter[-5:],
        rhythm=rhythm,
        issues=issues,
        recommendations=recommendations,
    )


def analyze_pacing(novel: NovelState, cache: AnalysisCache | None = None) -> PacingReport:
    return _cached_analysis(
        PACING_NAMESPACE,
        novel,
        cache,
        compute_pacing,
        lambda: PacingReport(issues=["Error analyzing pacing. Please try again."]),
    )


# --- Symbolism ---


def symbol_meaning(sentence: str) -> str:
    return first_matching_category(sentence, SYMBOL_MEANINGS, DEFAULT_SYMBOL_MEANING)


def compute_symbolism(novel: NovelState) -> SymbolismReport:
    chapters = novel.sorted_chapters
    # one record per merged symbol: name, first chapter, chapters, meanings
    found: list[dict] = []
    for chapter in chapters:
        text = _text(chapter)
        lowered = text.lower()
        for name in SYMBOLIC_OBJECTS:
            if name not in lowered:
                continue
            sentence = next(
                (s for s in split_sentences(text) if name in s.lower()), None
            )
            if sentence is None:
                continue
            meaning = symbol_meaning(sentence)
            existing = next(
                (
                    s
                    for s in found
                    if s["name"] == name
                    and abs(s["first"] - chapter.number) <= SYMBOL_MERGE_DISTANCE
                ),
                None,
            )
            if existing is None:
                found.append(
                    {
                        "name": name,
                        "first": chapter.number,
                        "chapters": [chapter.number],
                        "meanings": [meaning],
                    }
                )
            elif chapter.number not in existing["chapters"]:
                existing["chapters"].append(chapter.number)
                existing["meanings"].append(meaning)

    elements = [
        SymbolicElement(
            name=s["name"],
            symbolic_meaning=s["meanings"][0],
            first_appeared_chapter=s["first"],
            chapters_appeared=s["chapters"],
        )
        for s in found
    ]
    evolution = [
        MotifEvolution(
            motif=s["name"],
            first_appeared_chapter=s["first"],
            chapters_appeared=s["chapters"],
            evolution=[
                f"Ch {number}: {meaning}"
                for number, meaning in zip(s["chapters"], s["meanings"])
            ],
            current_meaning=s["meanings"][-1],
        )
        for s in found
    ]

    density = len(elements) / len(chapters) if chapters else 0.0
    recommendations: list[str] = []
    if not elements and len(chapters) > 5:
        recommendations.append(
            "No symbolic elements detected. Consider adding symbolic objects, imagery, or actions that carry deeper meaning."
        )
    if density < 0.3 and len(chapters) > 5:
        recommendations.append(
            "Low symbolism density. Consider weaving more symbolic elements (objects, colors, natural imagery) throughout chapters."
        )
    if density > 1.5:
        recommendations.append(
            "High symbolism density. Ensure symbols have clear meaning and evolve over time rather than just appearing frequently."
        )
    static = [m for m in evolution if len(m.evolution) <= 1]
    if elements and len(static) > len(elements) * 0.5:
        recommendations.append(
            "Many symbols appear without evolution. Consider having symbols gain new meaning or layers as the story progresses."
        )

    return SymbolismReport(
        elements=elements[-20:],
        motif_evolution=evolution[-10:],
        density=round(density, 1),
        recommendations=recommendations,
    )


def analyze_symbolism(
    novel: NovelState, cache: AnalysisCache | None = None
) -> SymbolismReport:
    return _cached_analysis(
        SYMBOLISM_NAMESPACE,
        novel,
        cache,
        compute_symbolism,
        lambda: SymbolismReport(
            recommendations=["Error analyzing symbolism. Please try again."]
        ),
    )
