# arc_analysis/keyword_tables.py
"""Keyword tables driving the heuristic classifiers.

Every classifier in :mod:`arc_analysis` is a pure function over one of these
tables, so callers may pass replacement tables (for another genre or language)
without touching the scoring code. Table order is significant: categories are
checked first to last.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from utils.text_processing import count_whole_words

KeywordTable = Mapping[str, tuple[str, ...]]


@dataclass(frozen=True)
class CuePattern:
    """Direct keywords plus looser context clues for one category."""

    keywords: tuple[str, ...]
    context_clues: tuple[str, ...] = ()


CueTable = Mapping[str, CuePattern]


TENSION_LEVELS: KeywordTable = {
    "peak": (
        "death", "betrayal", "catastrophe", "ultimate", "final", "doom",
        "extinction", "climax", "battle", "war",
    ),
    "high": ("danger", "threat", "enemy", "attack", "crisis", "conflict", "fight"),
    "medium": ("challenge", "obstacle", "difficulty", "problem", "trouble"),
    "low": ("peace", "calm", "rest", "training", "preparation", "planning", "recovery"),
}

CHANGE_KEYWORDS: tuple[str, ...] = (
    "became", "gained", "lost", "learned", "discovered", "changed", "developed",
    "improved", "grew", "realized", "understood", "decided", "chose", "overcame",
    "mastered", "achieved", "accepted", "rejected", "betrayed", "forgave",
)

CONFLICT_KEYWORDS: tuple[str, ...] = (
    "however", "but", "yet", "still", "unresolved", "pending", "uncertain",
)

MILESTONE_KEYWORDS: tuple[str, ...] = ("breakthrough", "discover")

SETUP_KEYWORDS: tuple[str, ...] = (
    "mystery", "secret", "will discover", "promise", "vow", "destiny",
)

CULTIVATION_KEYWORDS: tuple[str, ...] = (
    "breakthrough", "ascend", "realm", "level", "cultivation", "power", "qi", "dantian",
)

BREAKTHROUGH_KEYWORDS: tuple[str, ...] = ("breakthrough", "ascend", "realm", "level")

QUESTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"what (will|should|might|could) (happen|occur|take place)", re.I),
    re.compile(r"how (will|should|can|might)", re.I),
    re.compile(r"why (did|does|will|should)", re.I),
)

FORESHADOWING_PATTERNS: CueTable = {
    "prophecy": CuePattern(
        ("prophecy", "prophesied", "foretold", "oracle", "seer", "vision", "portent"),
        ("will happen", "shall come to pass", "fated to", "destined"),
    ),
    "symbolic_object": CuePattern(
        ("ancient", "mysterious", "strange", "glowing", "cracked", "broken", "hidden", "forgotten"),
        ("seemed important", "felt significant", "had an aura", "drew attention"),
    ),
    "repeated_imagery": CuePattern(
        ("again", "once more", "as before", "familiar", "recalled", "reminded"),
        ("the same", "recurring", "pattern", "echoed"),
    ),
    "mystery": CuePattern(
        ("mystery", "secret", "unknown", "hidden", "concealed", "unexplained"),
        ("no one knew", "remained unclear", "questions unanswered", "puzzled"),
    ),
    "omen": CuePattern(
        ("omen", "sign", "portent", "warning", "premonition", "bad feeling"),
        ("dark clouds", "strange silence", "chills", "sense of foreboding"),
    ),
    "dialogue_hint": CuePattern(
        ("someday", "one day", "you'll see", "remember this", "mark my words"),
        ("spoke cryptically", "hinted at", "alluded to", "suggested without saying"),
    ),
    "action_pattern": CuePattern(
        ("always", "never failed to", "habit", "routine", "pattern"),
        ("tendency", "inclination", "propensity"),
    ),
    "environmental": CuePattern(
        ("ominous", "foreboding", "eerie", "atmospheric", "charged"),
        ("the air felt", "something was wrong", "the place seemed"),
    ),
}

PAYOFF_PATTERNS: CueTable = {
    "revelation": CuePattern(
        ("revealed", "discovered", "learned", "understood", "realized", "truth", "secret"),
        ("finally knew", "at last", "everything made sense", "the pieces fell into place"),
    ),
    "victory": CuePattern(
        ("won", "triumph", "victory", "defeated", "overcame", "prevailed", "conquered"),
        ("victorious", "emerged victorious", "came out on top", "crushed"),
    ),
    "loss": CuePattern(
        ("lost", "defeat", "failure", "death", "gone", "destroyed", "crushed"),
        ("heartbreaking", "devastating", "shattered", "broken"),
    ),
    "transformation": CuePattern(
        ("changed", "transformed", "evolved", "became", "grew", "emerged", "arisen"),
        ("new person", "no longer", "had become", "was now"),
    ),
    "reunion": CuePattern(
        ("reunited", "met again", "saw again", "embraced", "together"),
        ("after so long", "at last", "finally", "once more"),
    ),
    "betrayal": CuePattern(
        ("betrayed", "traitor", "deceived", "stabbed in the back", "lied"),
        ("couldn't trust", "wasn't who they seemed", "had been fooled"),
    ),
    "sacrifice": CuePattern(
        ("sacrificed", "gave up", "laid down", "for the sake of", "died for"),
        ("selfless act", "for others", "great cost", "everything"),
    ),
    "redemption": CuePattern(
        ("redeemed", "forgiven", "atoned", "made amends", "atonement"),
        ("second chance", "made right", "proved themselves", "earned forgiveness"),
    ),
}

# Checked from strongest to weakest; the first hit wins.
INTENSITY_INDICATORS: KeywordTable = {
    "5": ("ultimate", "complete", "absolute", "devastating", "triumphant", "perfect"),
    "4": ("major", "significant", "huge", "great", "massive", "powerful"),
    "2": ("slight", "minor", "small", "little", "somewhat"),
    "1": ("hint", "trace", "subtle", "faint"),
}

PACING_INDICATORS: KeywordTable = {
    "action": ("moved", "ran", "fought", "attacked", "defended", "dodged", "struck", "jumped", "charged"),
    "dialogue": ("said", "asked", "replied", "shouted", "whispered", "spoke", "exclaimed"),
    "reflection": ("thought", "wondered", "considered", "realized", "remembered", "pondered", "reflected"),
    "description": ("was", "had", "seemed", "appeared", "looked", "felt like", "resembled"),
}

SYMBOLIC_OBJECTS: tuple[str, ...] = (
    "jade", "sword", "pill", "manual", "token", "ring", "feather", "crystal",
    "slip", "artifact", "seal", "talisman",
)

SYMBOL_MEANINGS: KeywordTable = {
    "Represents ancient wisdom or hidden power": ("ancient", "mysterious"),
    "Represents power, enlightenment, or divine connection": ("glowing", "radiant"),
    "Represents imperfection, struggle, or transformation": ("cracked", "broken"),
    "Represents danger, mystery, or hidden threat": ("cold", "dark"),
}
DEFAULT_SYMBOL_MEANING = "Symbolic object with evolving meaning"


def first_matching_category(text: str, table: KeywordTable, default: str) -> str:
    """Return the first category whose keywords occur in ``text``."""
    lowered = (text or "").lower()
    for category, keywords in table.items():
        if any(kw in lowered for kw in keywords):
            return category
    return default


def whole_word_scores(text: str, table: KeywordTable) -> dict[str, int]:
    """Count whole-word keyword hits per category."""
    return {category: count_whole_words(text, keywords) for category, keywords in table.items()}


def cue_match(text: str, pattern: CuePattern) -> tuple[bool, bool]:
    """Return ``(has_keyword, has_context_clue)`` for lower-cased ``text``."""
    lowered = (text or "").lower()
    has_keyword = any(kw in lowered for kw in pattern.keywords)
    has_clue = any(clue in lowered for clue in pattern.context_clues)
    return has_keyword, has_clue
