# utils/__init__.py
"""General utility functions for the ArcLoom engine."""

from __future__ import annotations

from .logging import close_logging, setup_logging
from .text_processing import (
    NameType,
    classify_name,
    clip,
    contains_any,
    count_whole_words,
    name_variations,
    split_sentences,
    text_contains_character_name,
    word_count,
)

__all__ = [
    "NameType",
    "classify_name",
    "clip",
    "contains_any",
    "count_whole_words",
    "name_variations",
    "split_sentences",
    "text_contains_character_name",
    "word_count",
    "close_logging",
    "setup_logging",
]
