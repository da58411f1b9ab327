# models/analysis_models.py
"""Structured results produced by the arc analyses."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .story_models import Arc, Chapter


class ArcTier(str, Enum):
    """Detail level assigned to a completed arc by recency."""

    RECENT = "recent"
    MIDDLE = "middle"
    OLD = "old"


class TensionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    PEAK = "peak"


class ElementPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {
    ElementPriority.HIGH: 3,
    ElementPriority.MEDIUM: 2,
    ElementPriority.LOW: 1,
}

TENSION_RANK = {
    TensionLevel.LOW: 0,
    TensionLevel.MEDIUM: 1,
    TensionLevel.HIGH: 2,
    TensionLevel.PEAK: 3,
}


class TensionCurve(BaseModel):
    start_level: TensionLevel = TensionLevel.MEDIUM
    end_level: TensionLevel = TensionLevel.MEDIUM
    peak_chapter: int | None = None


class CharacterDevelopment(BaseModel):
    character_name: str
    changes: list[str] = Field(default_factory=list)
    relationships: list[str] = Field(default_factory=list)
    power_progression: str | None = None


class PlotThread(BaseModel):
    description: str
    status: str  # resolved | ongoing | unresolved
    introduced_in: int


class UnresolvedElement(BaseModel):
    element: str
    priority: ElementPriority
    source: str  # checklist | question | conflict | setup

    @property
    def label(self) -> str:
        prefix = {
            ElementPriority.HIGH: "[HIGH PRIORITY]",
            ElementPriority.MEDIUM: "[MEDIUM]",
        }.get(self.priority, "")
        return f"{prefix} {self.element}".strip()


class ArcSummary(BaseModel):
    """Tiered digest of one completed arc."""

    arc_id: str
    title: str
    tier: ArcTier
    description: str = ""
    chapter_count: int = 0
    chapter_digests: list[str] = Field(default_factory=list)
    key_events: list[str] = Field(default_factory=list)
    character_development: list[CharacterDevelopment] = Field(default_factory=list)
    plot_threads: list[PlotThread] = Field(default_factory=list)
    tension_curve: TensionCurve = Field(default_factory=TensionCurve)
    unresolved_elements: list[UnresolvedElement] = Field(default_factory=list)
    unresolved_summary: str | None = None
    outcome: str = ""


class ArcValidationResult(BaseModel):
    arc: Arc
    issues: list[str] = Field(default_factory=list)
    was_repaired: bool = False


class ArcOverlap(BaseModel):
    """A chapter claimed by more than one arc during resolution."""

    chapter_number: int
    kept_arc_id: str
    dropped_arc_id: str


class ArcMembership(BaseModel):
    """Chapters owned by every arc after resolution."""

    chapters_by_arc: dict[str, list[Chapter]] = Field(default_factory=dict)
    overlaps: list[ArcOverlap] = Field(default_factory=list)
    # chapters no arc resolved to, e.g. the gap left by a corrected start
    unowned_chapters: list[int] = Field(default_factory=list)

    def arc_for_chapter(self, chapter_number: int) -> str | None:
        for arc_id, chapters in self.chapters_by_arc.items():
            if any(ch.number == chapter_number for ch in chapters):
                return arc_id
        return None


# --- Sibling narrative analyses ---


class ForeshadowingElement(BaseModel):
    type: str
    content: str
    introduced_chapter: int
    subtlety: str  # obvious | subtle | very_subtle
    paid_off_chapter: int | None = None


class ForeshadowingReport(BaseModel):
    active: list[ForeshadowingElement] = Field(default_factory=list)
    overdue: list[ForeshadowingElement] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    density: float = 0.0
    subtle_count: int = 0


class EmotionalPayoff(BaseModel):
    type: str
    description: str
    chapter_number: int
    intensity: int = 3
    characters_involved: list[str] = Field(default_factory=list)
    reader_impact: str = ""


class PayoffOpportunity(BaseModel):
    arc_stage: str
    recommended_type: str
    suggested_intensity: int
    reason: str


class EmotionalPayoffReport(BaseModel):
    recent_payoffs: list[EmotionalPayoff] = Field(default_factory=list)
    upcoming_opportunities: list[PayoffOpportunity] = Field(default_factory=list)
    intensity_score: float = 3.0
    recommendations: list[str] = Field(default_factory=list)


class ChapterPacing(BaseModel):
    chapter_number: int
    scene_count: int
    average_scene_length: int
    variation: str  # low | medium | high
    dominant_type: str  # action | dialogue | reflection | description | mixed


class RhythmPattern(BaseModel):
    chapters: str
    pattern: str
    description: str


class PacingReport(BaseModel):
    chapter_pacing: list[ChapterPacing] = Field(default_factory=list)
    rhythm: list[RhythmPattern] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class SymbolicElement(BaseModel):
    name: str
    symbolic_meaning: str
    first_appeared_chapter: int
    chapters_appeared: list[int] = Field(default_factory=list)


class MotifEvolution(BaseModel):
    motif: str
    first_appeared_chapter: int
    chapters_appeared: list[int] = Field(default_factory=list)
    evolution: list[str] = Field(default_factory=list)
    current_meaning: str = ""


class SymbolismReport(BaseModel):
    elements: list[SymbolicElement] = Field(default_factory=list)
    motif_evolution: list[MotifEvolution] = Field(default_factory=list)
    density: float = 0.0
    recommendations: list[str] = Field(default_factory=list)
