"""Text helpers shared by the arc analyses."""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

# Words that appear in descriptive names but also in ordinary prose.
COMMON_NAME_WORDS = frozenset(
    {
        "ancient", "spirit", "tree", "forest", "mountain", "river", "lake", "sea",
        "ocean", "king", "queen", "prince", "princess", "emperor", "empress",
        "lord", "lady", "master", "elder", "disciple", "sect", "clan", "tribe",
        "village", "city", "sword", "blade", "spear", "bow", "arrow", "shield",
        "armor", "dragon", "phoenix", "tiger", "wolf", "bear", "eagle", "snake",
        "fire", "water", "earth", "wind", "thunder", "lightning", "ice", "shadow",
        "gold", "silver", "iron", "steel", "jade", "crystal", "diamond", "divine",
        "celestial", "heavenly", "immortal", "mortal", "demon", "devil",
        "cultivation", "qi", "realm", "technique", "art", "way", "path", "dao",
        "young", "old", "great", "grand", "supreme", "ultimate", "eternal",
        "north", "south", "east", "west", "central", "inner", "outer", "first",
        "second", "third", "fourth", "fifth", "one", "two", "three", "red",
        "blue", "green", "white", "black", "yellow", "purple", "big", "small",
        "large", "tiny", "huge", "massive", "new", "modern",
    }
)

PROPER_NAME_WORDS = frozenset(
    {
        "maxwell", "smith", "johnson", "williams", "brown", "jones", "garcia",
        "miller", "zhang", "wang", "li", "liu", "chen", "yang", "huang", "zhao",
        "wu", "zhou", "alex", "john", "mary", "james", "robert", "michael",
        "william", "david", "wei", "ming", "jun", "lei", "feng", "long", "tian",
        "yu", "hao", "xin",
    }
)


class NameType(str, Enum):
    PROPER = "proper"
    DESCRIPTIVE = "descriptive"
    MIXED = "mixed"


def split_sentences(text: str) -> list[str]:
    """Split ``text`` on runs of sentence terminators, dropping blank pieces."""
    if not text:
        return []
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring check against several keywords."""
    lowered = text.lower()
    return any(kw in lowered for kw in keywords)


def count_whole_words(text: str, words: Iterable[str]) -> int:
    """Total whole-word occurrences of ``words`` in ``text``."""
    total = 0
    for word in words:
        total += len(re.findall(rf"\b{re.escape(word)}\b", text, re.IGNORECASE))
    return total


def word_count(text: str) -> int:
    return len([w for w in re.split(r"\s+", text or "") if w])


def clip(text: str, max_chars: int) -> str:
    """Hard cut ``text`` to ``max_chars`` characters."""
    return (text or "")[: max(max_chars, 0)]


def classify_name(full_name: str) -> NameType:
    """Decide how strictly a character name must be matched in prose."""
    parts = [p for p in full_name.lower().split() if p]
    if len(parts) == 1:
        return NameType.DESCRIPTIVE if parts[0] in COMMON_NAME_WORDS else NameType.PROPER

    has_common = any(p in COMMON_NAME_WORDS for p in parts)
    proper_count = sum(1 for p in parts if p in PROPER_NAME_WORDS or len(p) <= 4)
    likely_proper = proper_count >= len(parts) / 2

    if has_common and not likely_proper:
        return NameType.DESCRIPTIVE
    if not has_common and likely_proper:
        return NameType.PROPER
    return NameType.MIXED


def name_variations(full_name: str) -> list[str]:
    """Lower-cased name forms that count as a mention of the character."""
    name_lower = full_name.lower().strip()
    if not name_lower:
        return []
    parts = name_lower.split()
    name_type = classify_name(full_name)
    variations = [name_lower]

    if name_type in (NameType.PROPER, NameType.MIXED) and len(parts) > 1:
        first, last = parts[0], parts[-1]
        if first not in COMMON_NAME_WORDS and len(first) >= 2:
            variations.append(first)
        if last != first and last not in COMMON_NAME_WORDS and len(last) >= 2:
            variations.append(last)

    if name_type == NameType.DESCRIPTIVE and len(parts) > 1:
        for part in parts:
            if part not in COMMON_NAME_WORDS and len(part) >= 5:
                variations.append(part)

    return variations


def text_contains_character_name(text: str, full_name: str) -> bool:
    """Return ``True`` if ``text`` mentions the character.

    Proper names match on the full name, first or last name. Descriptive names
    ("Ancient Spirit Tree") need the full name or one of their distinctive words.
    """
    if not text or not full_name or not full_name.strip():
        return False
    for variation in name_variations(full_name):
        if re.search(rf"\b{re.escape(variation)}\b", text, re.IGNORECASE):
            return True
    return False
