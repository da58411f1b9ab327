# tests/test_context_providers.py
from arc_analysis.cache import AnalysisCache
from models import (
    Arc,
    ArcChecklistItem,
    ArcStatus,
    Chapter,
    Character,
    LogicAudit,
    NovelState,
    Relationship,
)
from prompt_assembly.context_models import BriefRequest
from prompt_assembly.context_providers import (
    ArcHistoryProvider,
    ChapterTransitionProvider,
    CharacterCodexProvider,
    CurrentArcProvider,
    NarrativeAnalysisProvider,
    RecentChaptersProvider,
    TaskProvider,
)


def _novel() -> NovelState:
    chapters = tuple(
        Chapter(
            number=n,
            title=f"Chapter {n}",
            summary=f"Summary of chapter {n}.",
            content=f"Chapter {n} text. The oracle spoke of a prophecy that will happen.",
            logic_audit=LogicAudit(
                starting_value="weak", resulting_value="stronger", causality_type="Therefore"
            )
            if n == 12
            else None,
        )
        for n in range(1, 13)
    )
    arcs = (
        Arc(
            id="a1",
            title="Beginnings",
            status=ArcStatus.COMPLETED,
            started_at_chapter=1,
            ended_at_chapter=10,
        ),
        Arc(
            id="a2",
            title="The Tournament",
            description="Lin Feng enters the tournament.",
            started_at_chapter=11,
            target_chapters=8,
            checklist=(
                ArcChecklistItem(label="Win the first round"),
                ArcChecklistItem(label="Meet the rival", completed=True),
            ),
        ),
    )
    characters = (
        Character(
            id="c1",
            name="Lin Feng",
            current_cultivation="Qi Condensation",
            notes="Stubborn.",
            relationships=(Relationship(character_id="c2", type="Rival"),),
        ),
        Character(id="c2", name="Bai Yun"),
    )
    return NovelState(
        id="n1",
        title="Jade Path",
        genre="xianxia",
        chapters=chapters,
        arcs=arcs,
        characters=characters,
    )


def test_task_provider_sections_are_not_truncatable():
    request = BriefRequest(constraints=["Stay in third person"], output_format="Prose only")
    sections = TaskProvider().get_sections(request, _novel())

    assert [s.name for s in sections] == ["role", "task", "constraints", "output_format"]
    assert all(s.priority == 10 and not s.can_truncate for s in sections)
    assert sections[0].text.startswith("ROLE: ")
    assert "Chapter to write: 13" in sections[1].text
    assert "Novel: Jade Path (xianxia)" in sections[1].text
    assert "- Stay in third person" in sections[2].text


def test_task_provider_honours_explicit_chapter_number():
    sections = TaskProvider().get_sections(BriefRequest(chapter_number=7), _novel())
    assert "Chapter to write: 7" in sections[1].text
    assert len(sections) == 2


def test_chapter_transition_uses_last_chapter_tail():
    sections = ChapterTransitionProvider().get_sections(BriefRequest(), _novel())
    assert len(sections) == 1
    assert sections[0].text.startswith("[CHAPTER TRANSITION]\nChapter 12 (Chapter 12) ended with:")
    assert not sections[0].can_truncate


def test_recent_chapters_provider():
    text = RecentChaptersProvider(count=2).get_sections(BriefRequest(), _novel())[0].text
    assert text.startswith("[RECENT CHAPTERS]")
    assert "Ch 10" not in text
    assert "Ch 11: Chapter 11" in text
    assert "Value shift: weak → stronger (Therefore)" in text


def test_current_arc_provider_lists_open_items():
    text = CurrentArcProvider().get_sections(BriefRequest(), _novel())[0].text
    assert 'Arc: "The Tournament"' in text
    assert "Chapters so far: 11-12 (2 written)" in text
    assert "Target length: 8 chapters" in text
    assert "  - Win the first round" in text
    assert "Meet the rival" not in text


def test_current_arc_provider_without_active_arc():
    novel = _novel().model_copy(update={"arcs": ()})
    assert CurrentArcProvider().get_sections(BriefRequest(), novel) == []


def test_character_codex_provider():
    text = CharacterCodexProvider().get_sections(BriefRequest(), _novel())[0].text
    assert "- Lin Feng (Qi Condensation): Stubborn." in text
    assert "  Relationships: Rival of Bai Yun" in text


def test_arc_history_provider_renders_completed_arcs():
    cache = AnalysisCache(max_entries=10, ttl_seconds=60)
    section = ArcHistoryProvider(cache).get_sections(BriefRequest(), _novel())[0]
    assert section.priority == 3
    assert section.text.startswith("[COMPLETED ARCS]\n[PREVIOUS ARC CONTEXT - Full Detail]")
    assert 'ARC: "Beginnings"' in section.text
    assert len(cache) == 1


def test_narrative_analysis_provider_skips_empty_reports():
    sections = NarrativeAnalysisProvider().get_sections(BriefRequest(), _novel())
    names = [s.name for s in sections]
    assert "foreshadowing" in names
    assert "pacing" in names
    assert "symbolism" not in names
    assert all(s.priority == 4 and s.can_truncate for s in sections)
