# prompt_assembly/compressor.py
"""Fit prioritized brief sections into a fixed character budget.

Two greedy passes over the sections sorted by priority: the first keeps every
section that fits whole, the second trims the truncatable leftovers at a
sentence or line boundary. The joined result never exceeds the budget.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

import structlog

from config import settings
from core.token_estimation import count_tokens

from .context_models import CompressionStats, ContextSection

logger = structlog.get_logger(__name__)

SEPARATOR = "\n"

# (markers, priority, can_truncate); the first rule with a marker in the text wins.
SECTION_PRIORITY_RULES: tuple[tuple[tuple[str, ...], int, bool], ...] = (
    (("ROLE:", "[TASK]", "[OUTPUT FORMAT]", "[CONSTRAINTS", "CHAPTER TRANSITION"), 10, False),
    (("[RECENT CHAPTERS]",), 9, True),
    (("[CHARACTER CODEX", "[CURRENT ARC]"), 8, True),
    (("[STORY CONTEXT]", "[ACTIVE PLOT THREADS]", "[FACE GRAPH"), 7, True),
    (("[WORLD BIBLE", "[CURRENT STORY STATE]"), 6, True),
    (("[CHARACTER DEVELOPMENT", "[STORY PROGRESSION]"), 5, True),
    (("FORESHADOWING", "EMOTIONAL PAYOFF", "PACING", "SYMBOLISM"), 4, True),
    (("[COMPLETED ARCS]", "[PREVIOUS ARC CONTEXT", "[CHAPTER SUMMARY"), 3, True),
    (("[GENRE CONVENTIONS]", "[LITERARY PRINCIPLES]"), 2, True),
)
DEFAULT_SECTION_PRIORITY = 5

_SECTION_BREAK_RE = re.compile(r"\n\s*\n")


def classify_section(text: str) -> tuple[int, bool]:
    """Return ``(priority, can_truncate)`` for a block of brief text."""
    for markers, priority, can_truncate in SECTION_PRIORITY_RULES:
        if any(marker in text for marker in markers):
            return priority, can_truncate
    return DEFAULT_SECTION_PRIORITY, True


def split_into_sections(text: str) -> list[ContextSection]:
    """Split a finished brief on blank lines and classify each block."""
    sections: list[ContextSection] = []
    for index, block in enumerate(_SECTION_BREAK_RE.split(text or "")):
        if not block.strip():
            continue
        priority, can_truncate = classify_section(block)
        sections.append(
            ContextSection(
                name=f"block_{index}",
                text=block,
                priority=priority,
                can_truncate=can_truncate,
            )
        )
    return sections


def truncate_at_boundary(text: str, available: int) -> str:
    """Cut ``text`` to ``available`` chars, preferring a natural break."""
    cut = text[:available]
    if len(cut) < len(text):
        last_sentence = max(cut.rfind("."), cut.rfind("!"), cut.rfind("?"))
        if last_sentence > available * settings.SENTENCE_BREAK_MIN_RATIO:
            return cut[: last_sentence + 1]
        last_line = cut.rfind("\n")
        if last_line > available * settings.LINE_BREAK_MIN_RATIO:
            return cut[:last_line]
    return cut


def _compress(
    sections: Sequence[ContextSection], max_length: int
) -> tuple[list[str], int, int]:
    if max_length < 0:
        raise ValueError("max_length must be non-negative")

    marker = settings.TRUNCATION_MARKER
    reserve = max(settings.TRUNCATION_RESERVE, len(marker))
    min_available = settings.MIN_TRUNCATED_SECTION_LENGTH
    stop_at = max_length * settings.BRIEF_FILL_STOP_RATIO

    # Stable; at equal priority whole-or-nothing sections go first.
    ordered = sorted(
        (s for s in sections if s.text),
        key=lambda s: (s.priority, not s.can_truncate),
        reverse=True,
    )
    kept: dict[int, str] = {}
    overflow: list[int] = []
    total = 0

    for index, section in enumerate(ordered):
        separator = len(SEPARATOR) if kept else 0
        if total + separator + len(section.text) <= max_length:
            kept[index] = section.text
            total += separator + len(section.text)
        else:
            overflow.append(index)

    truncated = 0
    for index in overflow:
        if total >= stop_at:
            break
        section = ordered[index]
        if not section.can_truncate:
            logger.debug("Dropped non-truncatable section", section=section.name)
            continue
        separator = len(SEPARATOR) if kept else 0
        available = max_length - total - separator - reserve
        if available < min_available:
            break
        piece = truncate_at_boundary(section.text, available) + marker
        kept[index] = piece
        total += separator + len(piece)
        truncated += 1

    pieces = [kept[index] for index in sorted(kept)]
    return pieces, truncated, len(ordered) - len(pieces)


def compress(sections: Sequence[ContextSection], max_length: int) -> list[str]:
    """Return the texts that fit ``max_length`` when joined, highest priority first."""
    pieces, _, _ = _compress(sections, max_length)
    return pieces


def compress_sections(
    sections: Sequence[ContextSection], max_length: int | None = None
) -> tuple[str, CompressionStats]:
    """Join ``sections`` within ``max_length`` characters and report what changed."""
    if max_length is None:
        max_length = settings.MAX_BRIEF_LENGTH
    if max_length < 0:
        raise ValueError("max_length must be non-negative")

    original = SEPARATOR.join(s.text for s in sections if s.text)
    original_count = sum(1 for s in sections if s.text)
    if len(original) <= max_length:
        tokens = count_tokens(original)
        return original, CompressionStats(
            original_length=len(original),
            compressed_length=len(original),
            original_section_count=original_count,
            compressed_section_count=original_count,
            original_tokens=tokens,
            compressed_tokens=tokens,
        )

    pieces, truncated, dropped = _compress(sections, max_length)
    text = SEPARATOR.join(pieces)
    stats = CompressionStats(
        original_length=len(original),
        compressed_length=len(text),
        original_section_count=original_count,
        compressed_section_count=len(pieces),
        truncated_section_count=truncated,
        dropped_section_count=dropped,
        original_tokens=count_tokens(original),
        compressed_tokens=count_tokens(text),
    )

    log = (
        logger.warning
        if stats.compression_ratio < settings.COMPRESSION_WARNING_RATIO
        else logger.info
    )
    log(
        "Compressed brief to fit budget",
        original_length=stats.original_length,
        compressed_length=stats.compressed_length,
        ratio=round(stats.compression_ratio, 3),
        truncated_sections=truncated,
        dropped_sections=dropped,
        original_tokens=stats.original_tokens,
        compressed_tokens=stats.compressed_tokens,
    )
    return text, stats
