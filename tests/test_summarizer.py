# tests/test_summarizer.py
import arc_analysis.summarizer as summarizer
from arc_analysis.cache import AnalysisCache
from models import (
    Arc,
    ArcChecklistItem,
    ArcStatus,
    ArcTier,
    Chapter,
    Character,
    ElementPriority,
    LogicAudit,
    NovelState,
    Relationship,
    TensionLevel,
)


def _audit(start: str, result: str, causality: str = "Therefore", friction: str = "") -> LogicAudit:
    return LogicAudit(
        starting_value=start,
        the_friction=friction,
        resulting_value=result,
        causality_type=causality,
    )


def _arc_with_loose_ends() -> tuple[Arc, list[Chapter]]:
    chapters = [
        Chapter(
            number=1,
            title="Arrival",
            summary="Lin Feng arrived at the sect gates.",
            content="Lin Feng walked up the mountain path.",
        ),
        Chapter(
            number=2,
            title="Trial",
            summary="Lin Feng gained entry after the entrance trial.",
            content="The elders watched. What will happen to the outsider now?",
            logic_audit=_audit("outsider", "accepted as a disciple"),
        ),
        Chapter(
            number=3,
            title="Doubt",
            summary="The elder watches Lin Feng closely.",
            content="Lin Feng bowed to the elder and left the hall.",
            logic_audit=_audit(
                "accepted",
                "admitted to the inner court, but the elder's suspicion is unresolved",
                causality="But",
            ),
        ),
    ]
    arc = Arc(
        id="arc1",
        title="Sect Entrance",
        description="Lin Feng joins the sect.",
        status=ArcStatus.COMPLETED,
        started_at_chapter=1,
        ended_at_chapter=3,
        checklist=(
            ArcChecklistItem(label="Earn the elder's trust", source_chapter_number=3),
            ArcChecklistItem(label="Find lodging", completed=True, source_chapter_number=1),
            ArcChecklistItem(label="Learn the sect rules", source_chapter_number=1),
        ),
    )
    return arc, chapters


def test_checklist_and_conflict_rank_high():
    arc, chapters = _arc_with_loose_ends()
    elements = summarizer.extract_unresolved_elements(arc, chapters)

    high = [e for e in elements if e.priority == ElementPriority.HIGH]
    assert {e.source for e in high} == {"checklist", "conflict"}
    assert "Earn the elder's trust" in [e.element for e in high]
    assert any("suspicion is unresolved" in e.element for e in high)

    first_lower = next(i for i, e in enumerate(elements) if e.priority != ElementPriority.HIGH)
    assert all(e.priority == ElementPriority.HIGH for e in elements[:first_lower])
    assert all(e.priority != ElementPriority.HIGH for e in elements[first_lower:])


def test_unresolved_elements_include_questions_and_low_items():
    arc, chapters = _arc_with_loose_ends()
    elements = summarizer.extract_unresolved_elements(arc, chapters)
    by_source = {e.source: e for e in elements}

    assert by_source["question"].priority == ElementPriority.MEDIUM
    assert by_source["question"].element == "what will happen"
    low = [e for e in elements if e.priority == ElementPriority.LOW]
    assert [e.element for e in low] == ["Learn the sect rules"]
    assert elements[-1].priority == ElementPriority.LOW


def test_unresolved_elements_are_capped():
    arc, chapters = _arc_with_loose_ends()
    assert len(summarizer.extract_unresolved_elements(arc, chapters, limit=2)) == 2


def test_checklist_priority_without_position_is_medium():
    assert summarizer._checklist_priority(None, 1, 10) == ElementPriority.MEDIUM
    assert summarizer._checklist_priority(9, 1, 10) == ElementPriority.HIGH
    assert summarizer._checklist_priority(6, 1, 10) == ElementPriority.MEDIUM
    assert summarizer._checklist_priority(2, 1, 10) == ElementPriority.LOW


def test_recent_tier_keeps_full_detail():
    arc, chapters = _arc_with_loose_ends()
    summary = summarizer.summarize_arc(arc, chapters, [], ArcTier.RECENT, [arc])

    assert summary.chapter_count == 3
    assert summary.chapter_digests[0] == "Ch 1: Lin Feng arrived at the sect gates."
    assert len(summary.chapter_digests) == 3
    assert summary.key_events[0] == "outsider → accepted as a disciple (Therefore)"
    assert summary.unresolved_elements
    assert summary.unresolved_summary is None
    assert [t.status for t in summary.plot_threads] == [
        "unresolved",
        "resolved",
        "unresolved",
        "unresolved",
    ]


def test_middle_tier_reports_count_instead_of_list():
    arc, chapters = _arc_with_loose_ends()
    summary = summarizer.summarize_arc(arc, chapters, [], ArcTier.MIDDLE, [arc])

    assert len(summary.chapter_digests) == 3
    assert summary.unresolved_elements == []
    assert summary.unresolved_summary == "2 high-priority unresolved elements"
    assert summary.key_events == [
        "admitted to the inner court, but the elder's suspicion is unresolved"
    ]


def test_old_tier_is_a_single_line():
    arc, chapters = _arc_with_loose_ends()
    characters = [Character(id="c1", name="Lin Feng")]
    summary = summarizer.summarize_arc(arc, chapters, characters, ArcTier.OLD, [arc])

    assert summary.chapter_digests == ["Arc consisted of 3 chapters."]
    assert summary.character_development == []
    assert summary.plot_threads == []
    assert summary.unresolved_elements == []


def test_summaries_are_idempotent():
    arc, chapters = _arc_with_loose_ends()
    characters = [Character(id="c1", name="Lin Feng", current_cultivation="Qi Condensation")]
    first = summarizer.summarize_arc(arc, chapters, characters, ArcTier.RECENT, [arc])
    second = summarizer.summarize_arc(arc, chapters, characters, ArcTier.RECENT, [arc])
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_outcome_prefers_final_audit():
    arc, chapters = _arc_with_loose_ends()
    outcome = summarizer.generate_outcome(arc, chapters)
    assert outcome.startswith("Arc concluded with: admitted to the inner court")
    assert outcome.endswith("The elder watches Lin Feng closely.")
    assert summarizer.generate_outcome(arc, []) == "Arc completed but no chapters found."


def test_outcome_falls_back_to_summary_then_description():
    arc, _ = _arc_with_loose_ends()
    assert summarizer.generate_outcome(arc, [Chapter(number=1, summary="Done.")]) == "Done."
    assert summarizer.generate_outcome(arc, [Chapter(number=1)]) == "Lin Feng joins the sect."


def test_tension_curve_finds_first_peak():
    chapters = [
        Chapter(number=1, content="A calm morning of training."),
        Chapter(number=2, content="The enemy launched an attack."),
        Chapter(number=3, content="Another enemy attack followed."),
        Chapter(number=4, content="Peace returned to the valley."),
    ]
    curve = summarizer.analyze_tension_curve(chapters)
    assert curve.start_level == TensionLevel.LOW
    assert curve.end_level == TensionLevel.LOW
    assert curve.peak_chapter == 2


def test_tension_curve_uses_audit_at_the_edges():
    chapters = [
        Chapter(
            number=1,
            content="A quiet day.",
            logic_audit=_audit("calm", "a new threat", friction="an enemy scout"),
        )
    ]
    curve = summarizer.analyze_tension_curve(chapters)
    assert curve.start_level == TensionLevel.HIGH
    assert curve.peak_chapter is None


def test_tension_curve_empty_arc():
    curve = summarizer.analyze_tension_curve([])
    assert curve.start_level == TensionLevel.MEDIUM
    assert curve.end_level == TensionLevel.MEDIUM


def test_character_development_changes_and_relationships():
    arc, chapters = _arc_with_loose_ends()
    characters = [
        Character(
            id="c1",
            name="Lin Feng",
            relationships=(Relationship(character_id="c2", type="Rival"),),
        ),
        Character(id="c2", name="Elder Mo"),
    ]
    chapters[2] = chapters[2].model_copy(
        update={"content": "Lin Feng bowed to Elder Mo and left the hall."}
    )
    development = summarizer.extract_character_development(arc, chapters, characters)

    lin = next(d for d in development if d.character_name == "Lin Feng")
    assert "Lin Feng gained entry after the entrance trial" in lin.changes
    assert lin.relationships == ["Rival with Elder Mo"]


def test_power_progression_label():
    arc, chapters = _arc_with_loose_ends()
    chapters.append(
        Chapter(
            number=4,
            summary="Lin Feng reached a breakthrough to the next realm.",
            content="Qi surged through his meridians.",
        )
    )
    characters = [Character(id="c1", name="Lin Feng", current_cultivation="Qi Condensation")]
    development = summarizer.extract_character_development(arc, chapters, characters)
    assert development[0].power_progression == "Lin Feng reached a breakthrough to the next realm"


def test_failing_arc_gets_fallback_summary(monkeypatch):
    arc, chapters = _arc_with_loose_ends()
    novel = NovelState(id="n1", chapters=tuple(chapters), arcs=(arc,))

    def boom(*_args, **_kwargs):
        raise RuntimeError("bad arc")

    monkeypatch.setattr(summarizer, "summarize_arc", boom)
    summaries = summarizer.analyze_all_arc_contexts(novel)

    assert len(summaries) == 1
    assert summaries[0].outcome == "Error analyzing arc"
    assert summaries[0].tier == ArcTier.RECENT
    assert summaries[0].tension_curve.start_level == TensionLevel.MEDIUM


def test_analyze_all_arc_contexts_uses_cache():
    arc, chapters = _arc_with_loose_ends()
    novel = NovelState(id="n1", chapters=tuple(chapters), arcs=(arc,))
    cache = AnalysisCache(max_entries=4, ttl_seconds=60)

    first = summarizer.analyze_all_arc_contexts(novel, cache)
    second = summarizer.analyze_all_arc_contexts(novel, cache)

    assert first == second
    assert len(cache) == 1


def _ten_chapters() -> list[Chapter]:
    return [Chapter(number=n, summary=f"Events of chapter {n}.") for n in range(1, 11)]


def test_negative_end_marker_falls_back_to_last_chapter():
    arc = Arc(
        id="arc1",
        title="Long Road",
        status=ArcStatus.COMPLETED,
        started_at_chapter=1,
        ended_at_chapter=-1,
        checklist=(ArcChecklistItem(label="Repay the debt", source_chapter_number=2),),
    )
    elements = summarizer.extract_unresolved_elements(arc, _ten_chapters())

    checklist = [e for e in elements if e.source == "checklist"]
    assert checklist[0].priority == ElementPriority.LOW


def test_negative_start_marker_is_not_used_for_plot_threads():
    arc = Arc(
        id="arc1",
        title="Long Road",
        status=ArcStatus.COMPLETED,
        started_at_chapter=-4,
        checklist=(ArcChecklistItem(label="Repay the debt"),),
    )
    threads = summarizer.extract_plot_threads(arc, _ten_chapters())

    assert threads[0].introduced_in == 1


def test_checklist_priority_ignores_non_positive_markers():
    assert summarizer._checklist_priority(2, 1, -1) == ElementPriority.MEDIUM
    assert summarizer._checklist_priority(-3, 1, 10) == ElementPriority.MEDIUM
    assert summarizer._checklist_priority(2, -5, 10) == ElementPriority.LOW
