# models/story_models.py
"""Read-only story records supplied by the persistence layer."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class StoryRecord(BaseModel):
    """Base model for immutable story snapshots.

    Accepts both snake_case and the camelCase keys used by the editor's JSON
    exports.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ArcStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class LogicAudit(StoryRecord):
    """Per-chapter record of value change and causal link."""

    starting_value: str = ""
    the_friction: str = ""
    the_choice: str = ""
    resulting_value: str = ""
    causality_type: Literal["Therefore", "But", "Neutral"] = "Neutral"


class Scene(StoryRecord):
    number: int = 1
    title: str = ""
    content: str = ""
    summary: str = ""


class Chapter(StoryRecord):
    """A written chapter. Never owned by an arc directly."""

    id: str = ""
    number: int = Field(gt=0)
    title: str = ""
    content: str = ""
    summary: str = ""
    logic_audit: LogicAudit | None = None
    scenes: tuple[Scene, ...] = ()
    created_at: int = 0


class ArcChecklistItem(StoryRecord):
    id: str = ""
    label: str
    completed: bool = False
    source_chapter_number: int | None = None


class Arc(StoryRecord):
    """A narrative segment whose chapter membership is derived, not stored."""

    id: str
    title: str = ""
    description: str = ""
    status: ArcStatus = ArcStatus.ACTIVE
    started_at_chapter: int | None = None
    ended_at_chapter: int | None = None
    target_chapters: int | None = None
    checklist: tuple[ArcChecklistItem, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.status == ArcStatus.COMPLETED


class Relationship(StoryRecord):
    character_id: str
    type: str = "Acquaintance"


class Character(StoryRecord):
    id: str = ""
    name: str
    current_cultivation: str = ""
    relationships: tuple[Relationship, ...] = ()
    notes: str = ""


class NovelState(StoryRecord):
    """Snapshot of a novel handed to the engine."""

    id: str
    title: str = ""
    genre: str = ""
    chapters: tuple[Chapter, ...] = ()
    arcs: tuple[Arc, ...] = Field(default=(), alias="plotLedger")
    characters: tuple[Character, ...] = Field(default=(), alias="characterCodex")
    updated_at: int = 0

    @property
    def active_arc(self) -> Arc | None:
        return next((a for a in self.arcs if a.status == ArcStatus.ACTIVE), None)

    @property
    def sorted_chapters(self) -> list[Chapter]:
        return sorted(self.chapters, key=lambda ch: ch.number)


def is_valid_chapter_marker(value: int | None) -> bool:
    """Return ``True`` for a usable (positive) chapter boundary."""
    return isinstance(value, int) and value > 0
