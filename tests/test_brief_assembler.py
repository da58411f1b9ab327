# tests/test_brief_assembler.py
import arc_context_logic
from arc_analysis.cache import AnalysisCache
from models import Arc, ArcStatus, Chapter, NovelState
from prompt_assembly.context_models import BriefRequest, ContextSection
from prompt_assembly.context_orchestrator import BriefAssembler, default_providers
from prompt_assembly.context_providers import ContextProvider, TaskProvider


class StaticProvider(ContextProvider):
    def __init__(self, text: str, source: str, priority: int = 5) -> None:
        self.text = text
        self.source = source
        self.priority = priority

    def get_sections(self, request, novel):
        return [ContextSection(self.source, self.text, self.priority, True)]


class FailingProvider(ContextProvider):
    source = "failing"

    def get_sections(self, request, novel):
        raise RuntimeError("provider exploded")


class WrongTypeProvider(ContextProvider):
    source = "wrong"

    def get_sections(self, request, novel):
        return "not a list"


def _novel(chapter_count: int = 15) -> NovelState:
    chapters = tuple(
        Chapter(
            number=n,
            title=f"Chapter {n}",
            summary=f"Lin Feng faced trial {n}. " * 5,
            content=f"Lin Feng fought in chapter {n}. The jade token glowed. " * 20,
        )
        for n in range(1, chapter_count + 1)
    )
    arcs = (
        Arc(
            id="a1",
            title="Arrival",
            status=ArcStatus.COMPLETED,
            started_at_chapter=1,
            ended_at_chapter=6,
        ),
        Arc(
            id="a2",
            title="Trials",
            status=ArcStatus.COMPLETED,
            started_at_chapter=7,
            ended_at_chapter=12,
        ),
        Arc(id="a3", title="Ascent", started_at_chapter=13),
    )
    return NovelState(id="n1", title="Jade Path", chapters=chapters, arcs=arcs)


def test_failing_provider_is_skipped():
    assembler = BriefAssembler(
        providers=[FailingProvider(), TaskProvider(), WrongTypeProvider()],
        max_length=5000,
    )
    brief = assembler.assemble(_novel())

    assert brief.text.startswith("ROLE: ")
    assert [s.name for s in brief.sections] == ["role", "task"]


def test_sections_are_ordered_by_priority():
    assembler = BriefAssembler(
        providers=[
            StaticProvider("low block " * 30, "low", 2),
            StaticProvider("high block " * 30, "high", 9),
        ],
        max_length=400,
    )
    brief = assembler.assemble(_novel())
    assert brief.text.startswith("high block")
    assert len(brief.text) <= 400


def test_request_budget_overrides_assembler_budget():
    brief = BriefAssembler(max_length=100000).assemble(
        _novel(), BriefRequest(max_length=1500)
    )
    assert len(brief.text) <= 1500
    assert brief.stats.compressed_length == len(brief.text)
    assert brief.text.startswith("ROLE: ")


def test_default_providers_cover_every_section_kind():
    sources = [p.source for p in default_providers()]
    assert sources == [
        "task",
        "chapter_transition",
        "recent_chapters",
        "current_arc",
        "character_codex",
        "narrative_analysis",
        "arc_history",
    ]


def test_full_brief_within_budget_for_many_sizes():
    novel = _novel()
    cache = AnalysisCache(max_entries=20, ttl_seconds=60)
    for max_length in (0, 200, 1000, 3000, 8000, 50000):
        brief = arc_context_logic.build_generation_brief(
            novel, BriefRequest(max_length=max_length), cache=cache
        )
        assert len(brief.text) <= max_length


def test_build_generation_brief_fills_injected_empty_cache():
    cache = AnalysisCache(max_entries=20, ttl_seconds=60)
    brief = arc_context_logic.build_generation_brief(_novel(), cache=cache)

    assert "[COMPLETED ARCS]" in brief.text
    assert len(cache) > 0
    assert len(arc_context_logic.get_default_cache()) == 0


def test_facade_uses_default_cache_when_none_given():
    novel = _novel()
    first = arc_context_logic.analyze_all_arc_contexts(novel)
    second = arc_context_logic.analyze_all_arc_contexts(novel)

    assert first == second
    assert len(arc_context_logic.get_default_cache()) == 1
    assert [s.title for s in first] == ["Arrival", "Trials"]


def test_facade_boundary_operations():
    novel = _novel()
    membership = arc_context_logic.resolve_all_arc_chapters(novel.chapters, novel.arcs)
    assert [c.number for c in membership.chapters_by_arc["a3"]] == [13, 14, 15]

    chapters = arc_context_logic.resolve_arc_chapters(novel.arcs[1], novel.chapters, novel.arcs)
    assert [c.number for c in chapters] == list(range(7, 13))

    repaired, issues, repairs = arc_context_logic.validate_all_arc_states(novel)
    assert issues == []
    assert repairs == 0
    assert repaired == novel
