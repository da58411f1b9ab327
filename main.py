# main.py
"""CLI entry point for inspecting a novel with the ArcLoom engine."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

import arc_context_logic
from config import LOG_LEVELS
from models import NovelState
from prompt_assembly import BriefRequest
from utils.logging import close_logging, setup_logging

logger = structlog.get_logger(__name__)

console = Console()


def load_novel(path: str | Path) -> NovelState:
    """Read a novel snapshot exported as JSON."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    return NovelState.model_validate(data)


def show_arcs(novel: NovelState) -> None:
    repaired, issues, repairs_made = arc_context_logic.validate_all_arc_states(novel)
    membership = arc_context_logic.resolve_all_arc_chapters(
        repaired.chapters, repaired.arcs
    )

    table = Table(title=f"Arcs of {novel.title or novel.id}")
    table.add_column("Arc")
    table.add_column("Status")
    table.add_column("Recorded")
    table.add_column("Resolved chapters")
    for arc in repaired.arcs:
        chapters = membership.chapters_by_arc.get(arc.id, [])
        resolved = (
            f"{chapters[0].number}-{chapters[-1].number} ({len(chapters)})"
            if chapters
            else "none"
        )
        recorded = f"{arc.started_at_chapter or '?'}-{arc.ended_at_chapter or '?'}"
        table.add_row(arc.title or arc.id, arc.status.value, recorded, resolved)
    console.print(table)

    for overlap in membership.overlaps:
        console.print(
            f"[yellow]Chapter {overlap.chapter_number} claimed by both "
            f"{overlap.kept_arc_id} and {overlap.dropped_arc_id}[/yellow]"
        )
    if membership.unowned_chapters:
        console.print(
            "[yellow]Chapters in no arc: "
            f"{', '.join(str(n) for n in membership.unowned_chapters)}[/yellow]"
        )
    if issues:
        console.print(
            Panel(Text("\n".join(issues)), title=f"Validation ({repairs_made} arcs repaired)")
        )


def show_summaries(novel: NovelState) -> None:
    summaries = arc_context_logic.analyze_all_arc_contexts(novel)
    table = Table(title="Completed arcs")
    table.add_column("Arc")
    table.add_column("Tier")
    table.add_column("Chapters", justify="right")
    table.add_column("Tension")
    table.add_column("Unresolved", justify="right")
    for summary in summaries:
        curve = summary.tension_curve
        table.add_row(
            summary.title,
            summary.tier.value,
            str(summary.chapter_count),
            f"{curve.start_level.value} → {curve.end_level.value}",
            str(len(summary.unresolved_elements)),
        )
    console.print(table)
    console.print(
        Panel(
            Text(arc_context_logic.format_arc_context_for_prompt(summaries)),
            title="Arc context",
        )
    )


def show_brief(novel: NovelState, max_length: int | None) -> None:
    request = BriefRequest(max_length=max_length)
    brief = arc_context_logic.build_generation_brief(novel, request)
    console.print(Panel(Text(brief.text), title=f"Brief for {novel.title or novel.id}"))
    stats = brief.stats
    console.print(
        f"{stats.compressed_length}/{stats.original_length} chars, "
        f"{stats.compressed_tokens} tokens, "
        f"{stats.truncated_section_count} truncated, "
        f"{stats.dropped_section_count} dropped"
    )


def main(argv: list[str] | None = None) -> int:
    """Parse command-line arguments and run the requested inspection."""
    parser = argparse.ArgumentParser(prog="arcloom")
    parser.add_argument("novel", help="Path to a novel JSON export")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Override ARCLOOM_LOG_LEVEL for this run",
    )
    log_target = parser.add_mutually_exclusive_group()
    log_target.add_argument("--log-file", default=None, help="Override LOG_FILE for this run")
    log_target.add_argument(
        "--no-log-file", action="store_true", help="Log to the console only"
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    subcommands.add_parser("arcs", help="Resolve and validate arc boundaries")
    subcommands.add_parser("summaries", help="Show tiered completed-arc summaries")
    brief_parser = subcommands.add_parser("brief", help="Assemble a generation brief")
    brief_parser.add_argument(
        "--max-length", type=int, default=None, help="Character budget for the brief"
    )
    args = parser.parse_args(argv)

    if args.command == "brief" and args.max_length is not None and args.max_length < 0:
        parser.error("--max-length must be non-negative")

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        file_logging=not args.no_log_file,
    )
    try:
        try:
            novel = load_novel(args.novel)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Could not load novel", path=args.novel, error=str(exc))
            return 1

        if args.command == "arcs":
            show_arcs(novel)
        elif args.command == "summaries":
            show_summaries(novel)
        else:
            show_brief(novel, args.max_length)
        return 0
    finally:
        close_logging()


if __name__ == "__main__":
    raise SystemExit(main())
