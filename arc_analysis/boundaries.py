# arc_analysis/boundaries.py
"""Resolve which chapters belong to which arc.

Arc metadata written by authors and by earlier generation runs is often
incomplete: starts are missing, ends were never recorded, or a later arc was
opened at the wrong chapter. Resolution never raises; every inference is
logged as a warning and an arc that resolves to nothing yields ``[]``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from config import settings
from models import (
    Arc,
    ArcMembership,
    ArcOverlap,
    ArcValidationResult,
    Chapter,
    NovelState,
    is_valid_chapter_marker,
)

logger = structlog.get_logger(__name__)


class BoundaryCorrectionStrategy(ABC):
    """Decides how far an open arc's start is pushed past its predecessor.

    Only consulted when the previous arc has no usable end marker.
    Implementations must never move a start earlier.
    """

    @abstractmethod
    def correct_start(
        self,
        start: int,
        arc_index: int,
        prev_arc: Arc,
        chapters: Sequence[Chapter],
    ) -> int:
        raise NotImplementedError


class TypicalArcLengthStrategy(BoundaryCorrectionStrategy):
    """Assume the previous arc ran for a typical number of chapters."""

    def __init__(
        self,
        typical_arc_length: int | None = None,
        large_novel_threshold: int | None = None,
        window: int = 2,
    ) -> None:
        self.typical_arc_length = typical_arc_length or settings.TYPICAL_ARC_LENGTH
        self.large_novel_threshold = (
            large_novel_threshold or settings.LARGE_NOVEL_CHAPTER_THRESHOLD
        )
        self.window = window

    def correct_start(
        self,
        start: int,
        arc_index: int,
        prev_arc: Arc,
        chapters: Sequence[Chapter],
    ) -> int:
        prev_start = (
            prev_arc.started_at_chapter
            if is_valid_chapter_marker(prev_arc.started_at_chapter)
            else 1
        )

        if not prev_arc.is_completed:
            # Two open arcs at once; assume the older one is a typical length.
            if is_valid_chapter_marker(prev_arc.started_at_chapter):
                return max(start, prev_start + self.typical_arc_length)
            return start

        total = len(chapters)
        if (
            arc_index == 1
            and prev_start == 1
            and start >= total - 1
            and total >= self.large_novel_threshold
        ):
            corrected = max(start, self.typical_arc_length + 1)
            logger.warning(
                "Second arc starts at the end of the novel; assuming the first arc has typical length.",
                original_start=start,
                corrected_start=corrected,
            )
            return corrected

        before = [ch.number for ch in chapters if prev_start <= ch.number < start]
        low = self.typical_arc_length - self.window
        high = self.typical_arc_length + self.window
        if low <= len(before) <= high:
            return max(start, max(before) + 1)
        return max(start, prev_start + self.typical_arc_length)


class NoCorrectionStrategy(BoundaryCorrectionStrategy):
    def correct_start(
        self,
        start: int,
        arc_index: int,
        prev_arc: Arc,
        chapters: Sequence[Chapter],
    ) -> int:
        return start


def _start_key(arc: Arc) -> int:
    return arc.started_at_chapter if is_valid_chapter_marker(arc.started_at_chapter) else 0


def _sort_arcs(arcs: Sequence[Arc]) -> list[Arc]:
    return sorted(arcs, key=_start_key)


def _neighbours(arc: Arc, all_arcs: Sequence[Arc]) -> tuple[int, Arc | None, Arc | None]:
    ordered = _sort_arcs(all_arcs)
    index = next((i for i, a in enumerate(ordered) if a.id == arc.id), -1)
    if index < 0:
        return -1, None, None
    prev_arc = ordered[index - 1] if index > 0 else None
    next_arc = ordered[index + 1] if index < len(ordered) - 1 else None
    return index, prev_arc, next_arc


def _in_range(chapters: Sequence[Chapter], start: int, end: int | None) -> list[Chapter]:
    if end is None:
        return [ch for ch in chapters if ch.number >= start]
    return [ch for ch in chapters if start <= ch.number <= end]


def _infer_start(
    arc: Arc,
    chapters: list[Chapter],
    all_arcs: Sequence[Arc],
    strategy: BoundaryCorrectionStrategy,
    typical_arc_length: int,
) -> int:
    start = 0
    _, prev_arc, _ = _neighbours(arc, all_arcs) if all_arcs else (-1, None, None)
    if prev_arc is not None:
        if prev_arc.is_completed and is_valid_chapter_marker(prev_arc.ended_at_chapter):
            start = prev_arc.ended_at_chapter + 1
        elif is_valid_chapter_marker(prev_arc.started_at_chapter):
            prev_chapters = resolve_arc_chapters(prev_arc, chapters, all_arcs, strategy)
            if prev_chapters:
                start = max(ch.number for ch in prev_chapters) + 1
            else:
                start = prev_arc.started_at_chapter + typical_arc_length
    if start <= 0:
        start = 1
    logger.warning(
        "Arc has no usable start chapter; inferred one.",
        arc_id=arc.id,
        arc_title=arc.title,
        recorded_start=arc.started_at_chapter,
        inferred_start=start,
    )
    return start


def resolve_arc_chapters(
    arc: Arc,
    all_chapters: Sequence[Chapter],
    all_arcs: Sequence[Arc] | None = None,
    strategy: BoundaryCorrectionStrategy | None = None,
) -> list[Chapter]:
    """Return the chapters owned by ``arc``, ordered by number."""
    if not all_chapters:
        return []
    strategy = strategy or TypicalArcLengthStrategy()
    all_arcs = list(all_arcs or ())
    chapters = sorted(all_chapters, key=lambda ch: ch.number)
    typical = getattr(strategy, "typical_arc_length", settings.TYPICAL_ARC_LENGTH)

    if is_valid_chapter_marker(arc.started_at_chapter):
        start = arc.started_at_chapter
    else:
        start = _infer_start(arc, chapters, all_arcs, strategy, typical)

    end = arc.ended_at_chapter if is_valid_chapter_marker(arc.ended_at_chapter) else None
    index, prev_arc, next_arc = _neighbours(arc, all_arcs)

    if arc.is_completed:
        if end is not None:
            resolved = _in_range(chapters, start, end)
        elif (
            next_arc is not None
            and is_valid_chapter_marker(next_arc.started_at_chapter)
            and next_arc.started_at_chapter > start
        ):
            resolved = _in_range(chapters, start, next_arc.started_at_chapter - 1)
        else:
            resolved = _in_range(chapters, start, chapters[-1].number)
    elif end is None:
        actual_start = start
        actual_end: int | None = None
        if len(all_arcs) > 1 and index >= 0:
            if prev_arc is not None:
                if prev_arc.is_completed and is_valid_chapter_marker(
                    prev_arc.ended_at_chapter
                ):
                    actual_start = max(actual_start, prev_arc.ended_at_chapter + 1)
                else:
                    actual_start = strategy.correct_start(start, index, prev_arc, chapters)
                    if actual_start != start:
                        logger.warning(
                            "Pushed open arc start past its predecessor.",
                            arc_id=arc.id,
                            arc_title=arc.title,
                            original_start=start,
                            corrected_start=actual_start,
                        )
            if (
                next_arc is not None
                and is_valid_chapter_marker(next_arc.started_at_chapter)
                and next_arc.started_at_chapter > actual_start
            ):
                actual_end = next_arc.started_at_chapter - 1
        resolved = _in_range(chapters, actual_start, actual_end)
    else:
        resolved = _in_range(chapters, start, end)

    if not resolved:
        logger.warning(
            "Arc resolved to no chapters.",
            arc_id=arc.id,
            arc_title=arc.title,
            start=start,
            end=end,
            available=[ch.number for ch in chapters],
        )
    else:
        logger.debug(
            "Resolved arc chapters",
            arc_id=arc.id,
            chapters=[ch.number for ch in resolved],
        )
    return resolved


def resolve_all(
    all_chapters: Sequence[Chapter],
    all_arcs: Sequence[Arc],
    strategy: BoundaryCorrectionStrategy | None = None,
) -> ArcMembership:
    """Resolve every arc, giving each chapter to at most one arc.

    Arcs are processed in start order; a chapter already claimed by an earlier
    arc is removed from the later one and the conflict is recorded. Chapters
    that end up in no arc are listed in ``unowned_chapters``.
    """
    membership = ArcMembership()
    owner: dict[int, str] = {}
    for arc in _sort_arcs(all_arcs):
        kept: list[Chapter] = []
        for chapter in resolve_arc_chapters(arc, all_chapters, all_arcs, strategy):
            claimed_by = owner.get(chapter.number)
            if claimed_by is not None:
                membership.overlaps.append(
                    ArcOverlap(
                        chapter_number=chapter.number,
                        kept_arc_id=claimed_by,
                        dropped_arc_id=arc.id,
                    )
                )
                logger.warning(
                    "Chapter claimed by more than one arc; keeping the earlier arc.",
                    chapter_number=chapter.number,
                    kept_arc_id=claimed_by,
                    dropped_arc_id=arc.id,
                )
                continue
            owner[chapter.number] = arc.id
            kept.append(chapter)
        membership.chapters_by_arc[arc.id] = kept

    if all_arcs:
        membership.unowned_chapters = sorted(
            {ch.number for ch in all_chapters if ch.number not in owner}
        )
    if membership.unowned_chapters:
        logger.warning(
            "Chapters not covered by any arc.",
            chapter_numbers=membership.unowned_chapters,
        )
    return membership


def validate_arc_state(
    arc: Arc,
    all_chapters: Sequence[Chapter],
    all_arcs: Sequence[Arc],
    default_target: int | None = None,
) -> ArcValidationResult:
    """Check ``arc`` for inconsistent markers and return a repaired copy."""
    default_target = default_target or settings.DEFAULT_ARC_TARGET_CHAPTERS
    issues: list[str] = []
    updates: dict[str, int] = {}
    chapter_total = len(all_chapters)

    def current() -> Arc:
        return arc.model_copy(update=updates)

    start = arc.started_at_chapter
    if start is not None and (start <= 0 or start > chapter_total + 1):
        if start <= 0:
            issues.append(
                f'Arc "{arc.title}" has invalid startedAtChapter {start} (must be > 0)'
            )
        else:
            issues.append(
                f'Arc "{arc.title}" has startedAtChapter {start} but only {chapter_total} chapters exist'
            )
        resolved = resolve_arc_chapters(arc, all_chapters, all_arcs)
        if resolved:
            updates["started_at_chapter"] = min(ch.number for ch in resolved)
            issues.append(
                f"Auto-repaired: Set startedAtChapter to {updates['started_at_chapter']} (first chapter in arc)"
            )
        else:
            updates["started_at_chapter"] = chapter_total + 1
            issues.append(
                f"Auto-repaired: Set startedAtChapter to {chapter_total + 1} (next chapter)"
            )

    repaired = current()
    end = repaired.ended_at_chapter
    if repaired.is_completed and end is not None:
        if end <= 0:
            issues.append(
                f'Arc "{arc.title}" has invalid endedAtChapter {end} (must be > 0)'
            )
            resolved = resolve_arc_chapters(repaired, all_chapters, all_arcs)
            if resolved:
                updates["ended_at_chapter"] = max(ch.number for ch in resolved)
                issues.append(
                    f"Auto-repaired: Set endedAtChapter to {updates['ended_at_chapter']} (last chapter in arc)"
                )
            else:
                updates["ended_at_chapter"] = chapter_total
                issues.append(
                    f"Auto-repaired: Set endedAtChapter to {chapter_total} (current chapter count)"
                )
        elif (
            is_valid_chapter_marker(repaired.started_at_chapter)
            and end < repaired.started_at_chapter
        ):
            issues.append(
                f'Arc "{arc.title}" has endedAtChapter {end} < startedAtChapter {repaired.started_at_chapter}'
            )
            resolved = resolve_arc_chapters(repaired, all_chapters, all_arcs)
            if resolved:
                updates["ended_at_chapter"] = max(ch.number for ch in resolved)
                issues.append(
                    f"Auto-repaired: Set endedAtChapter to {updates['ended_at_chapter']} (last chapter in arc)"
                )

    repaired = current()
    if is_valid_chapter_marker(repaired.started_at_chapter) and is_valid_chapter_marker(
        repaired.ended_at_chapter
    ):
        overlapping = [
            other
            for other in all_arcs
            if other.id != arc.id
            and is_valid_chapter_marker(other.started_at_chapter)
            and is_valid_chapter_marker(other.ended_at_chapter)
            and not (
                repaired.ended_at_chapter < other.started_at_chapter
                or repaired.started_at_chapter > other.ended_at_chapter
            )
        ]
        if overlapping:
            names = ", ".join(f'"{other.title}"' for other in overlapping)
            issues.append(f'Arc "{arc.title}" overlaps with: {names}')

    if repaired.target_chapters is not None and repaired.target_chapters <= 0:
        issues.append(
            f'Arc "{arc.title}" has invalid targetChapters {arc.target_chapters} (must be > 0)'
        )
        resolved = resolve_arc_chapters(repaired, all_chapters, all_arcs)
        updates["target_chapters"] = max(len(resolved), default_target)
        issues.append(
            f"Auto-repaired: Set targetChapters to {updates['target_chapters']}"
        )

    for issue in issues:
        logger.warning("Arc validation", arc_id=arc.id, issue=issue)

    return ArcValidationResult(arc=current(), issues=issues, was_repaired=bool(updates))


def validate_all_arc_states(
    novel: NovelState,
) -> tuple[NovelState, list[str], int]:
    """Validate every arc of ``novel``; returns ``(repaired copy, issues, repairs)``."""
    issues: list[str] = []
    repairs_made = 0
    validated: list[Arc] = []
    for arc in novel.arcs:
        result = validate_arc_state(arc, novel.chapters, novel.arcs)
        if result.was_repaired:
            repairs_made += 1
        issues.extend(result.issues)
        validated.append(result.arc)

    if repairs_made:
        logger.info(
            "Repaired arc metadata",
            novel_id=novel.id,
            repairs_made=repairs_made,
            issue_count=len(issues),
        )
    return novel.model_copy(update={"arcs": tuple(validated)}), issues, repairs_made
