# tests/test_compressor.py
import pytest
from config import settings
from prompt_assembly.compressor import (
    classify_section,
    compress,
    compress_sections,
    split_into_sections,
    truncate_at_boundary,
)
from prompt_assembly.context_models import ContextSection


def _prose(length: int, seed: str = "The river ran on.") -> str:
    text = ""
    while len(text) < length:
        text += seed + " "
    return text[:length]


def _scenario_sections() -> list[ContextSection]:
    priorities = [10, 10, 9, 8, 7, 6, 5, 4, 3, 2]
    sections = []
    for index, priority in enumerate(priorities):
        length = 300 if priority == 10 else 550
        sections.append(
            ContextSection(
                name=f"s{index}",
                text=_prose(length, f"Section {index} sentence."),
                priority=priority,
                can_truncate=priority != 10,
            )
        )
    return sections


def test_scenario_keeps_critical_sections_whole():
    sections = _scenario_sections()
    assert sum(len(s.text) for s in sections) == 5000

    text, stats = compress_sections(sections, 2000)

    assert len(text) <= 2000
    for section in sections[:3]:
        assert section.text in text
    assert stats.original_length > stats.compressed_length
    assert stats.compressed_length == len(text)
    assert stats.truncated_section_count + stats.dropped_section_count > 0
    assert settings.TRUNCATION_MARKER in text


@pytest.mark.parametrize("max_length", [0, 1, 10, 49, 80, 299, 300, 301, 650, 1234, 2000, 4999])
def test_budget_is_never_exceeded(max_length):
    text, stats = compress_sections(_scenario_sections(), max_length)
    assert len(text) <= max_length
    assert stats.compressed_length <= max_length


def test_budget_with_mixed_sections_across_many_sizes():
    sections = [
        ContextSection("a", "ROLE: writer", 10, False),
        ContextSection("b", _prose(900), 7, True),
        ContextSection("c", "line one\nline two\n" * 40, 5, True),
        ContextSection("d", _prose(120, "Short."), 5, False),
        ContextSection("e", "", 9, True),
        ContextSection("f", _prose(2000, "Long!"), 1, True),
    ]
    for max_length in range(0, 4000, 37):
        assert len("\n".join(compress(sections, max_length))) <= max_length


def test_top_priority_section_survives_exact_budget():
    critical = ContextSection("task", _prose(400, "Write the chapter."), 10, False)
    filler = ContextSection("filler", _prose(3000), 9, True)
    for max_length in (400, 401, 450, 500, 1000):
        text, _ = compress_sections([filler, critical], max_length)
        assert critical.text in text
        assert text.startswith(critical.text)


def test_non_truncatable_sections_are_all_or_nothing():
    head = ContextSection("head", _prose(100), 10, False)
    rigid = ContextSection("rigid", "R" * 500, 9, False)
    soft = ContextSection("soft", _prose(600, "Soft text here."), 8, True)
    text, stats = compress_sections([head, rigid, soft], 400)

    assert "RR" not in text
    assert head.text in text
    assert settings.TRUNCATION_MARKER in text
    assert stats.dropped_section_count >= 1


def test_output_follows_priority_order():
    low = ContextSection("low", "low priority block", 2, True)
    high = ContextSection("high", "high priority block", 9, True)
    assert compress([low, high], 1000) == ["high priority block", "low priority block"]


def test_fitting_input_is_returned_unchanged():
    sections = [
        ContextSection("b", "second", 2, True),
        ContextSection("a", "first", 9, True),
    ]
    text, stats = compress_sections(sections, 100)
    assert text == "second\nfirst"
    assert stats.compression_ratio == 1.0
    assert stats.truncated_section_count == 0


def test_negative_budget_raises():
    with pytest.raises(ValueError):
        compress_sections([ContextSection("a", "text")], -1)


def test_empty_input():
    text, stats = compress_sections([], 100)
    assert text == ""
    assert stats.compression_ratio == 1.0


def test_truncate_prefers_sentence_boundary():
    text = "Alpha beta gamma delta. Epsilon zeta eta theta iota."
    assert truncate_at_boundary(text, 30) == "Alpha beta gamma delta."


def test_truncate_falls_back_to_line_boundary():
    text = "word " * 4 + "\n" + "more words without stops " * 4
    cut = truncate_at_boundary(text, 25)
    assert cut == text[: text.index("\n")]


def test_truncate_hard_cut_without_boundaries():
    assert truncate_at_boundary("x" * 100, 40) == "x" * 40


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ROLE: You are an author", (10, False)),
        ("[OUTPUT FORMAT]\nProse", (10, False)),
        ("[CHAPTER TRANSITION]\nending", (10, False)),
        ("[RECENT CHAPTERS]\nCh 1", (9, True)),
        ("[CURRENT ARC]\nArc", (8, True)),
        ("[FORESHADOWING CONTEXT]", (4, True)),
        ("[COMPLETED ARCS]\n...", (3, True)),
        ("[GENRE CONVENTIONS]", (2, True)),
        ("Just some notes", (5, True)),
    ],
)
def test_classify_section(text, expected):
    assert classify_section(text) == expected


def test_split_into_sections_classifies_blocks():
    sections = split_into_sections("ROLE: author\n\n[RECENT CHAPTERS]\nCh 1\n\n\n  \n\nfree text")
    assert [(s.priority, s.can_truncate) for s in sections] == [
        (10, False),
        (9, True),
        (5, True),
    ]
