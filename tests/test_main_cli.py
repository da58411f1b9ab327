import json

import main
import pytest


@pytest.fixture
def novel_file(tmp_path):
    data = {
        "id": "n1",
        "title": "Jade Path",
        "chapters": [
            {"number": n, "title": f"Chapter {n}", "summary": f"Events of chapter {n}."}
            for n in range(1, 8)
        ],
        "plotLedger": [
            {
                "id": "a1",
                "title": "Arrival",
                "status": "completed",
                "startedAtChapter": 1,
                "endedAtChapter": 4,
            },
            {"id": "a2", "title": "Trials", "status": "active", "startedAtChapter": 0},
        ],
        "characterCodex": [{"id": "c1", "name": "Lin Feng"}],
    }
    path = tmp_path / "novel.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch):
    calls: list[dict] = []
    monkeypatch.setattr(main, "setup_logging", lambda **kwargs: calls.append(kwargs))
    return calls


def test_load_novel_accepts_camel_case(novel_file):
    novel = main.load_novel(novel_file)
    assert novel.arcs[0].ended_at_chapter == 4
    assert novel.characters[0].name == "Lin Feng"


def test_arcs_command_reports_repairs(novel_file, capsys):
    assert main.main([str(novel_file), "arcs"]) == 0
    out = capsys.readouterr().out
    assert "Arrival" in out
    assert "invalid startedAtChapter 0" in out


def test_summaries_command(novel_file, capsys):
    assert main.main([str(novel_file), "summaries"]) == 0
    assert "PREVIOUS ARC CONTEXT" in capsys.readouterr().out


def test_brief_command(novel_file, capsys):
    assert main.main([str(novel_file), "brief", "--max-length", "600"]) == 0
    assert "ROLE:" in capsys.readouterr().out


def test_missing_file_returns_error(tmp_path):
    assert main.main([str(tmp_path / "missing.json"), "arcs"]) == 1


def test_logging_defaults_come_from_settings(novel_file, logging_calls):
    main.main([str(novel_file), "arcs"])
    assert logging_calls == [{"level": None, "log_file": None, "file_logging": True}]


def test_logging_options_are_passed_through(novel_file, logging_calls):
    main.main([str(novel_file), "--log-level", "debug", "--log-file", "run.log", "arcs"])
    main.main([str(novel_file), "--no-log-file", "arcs"])

    assert logging_calls[0] == {"level": "DEBUG", "log_file": "run.log", "file_logging": True}
    assert logging_calls[1]["file_logging"] is False


def test_unknown_log_level_is_a_usage_error(novel_file):
    with pytest.raises(SystemExit):
        main.main([str(novel_file), "--log-level", "chatty", "arcs"])


def test_arcs_command_lists_chapters_without_an_arc(tmp_path, capsys):
    data = {
        "id": "n2",
        "chapters": [{"number": n} for n in range(1, 21)],
        "plotLedger": [
            {"id": "a", "status": "completed", "startedAtChapter": 1},
            {"id": "b", "status": "active", "startedAtChapter": 5},
        ],
    }
    path = tmp_path / "gap.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    assert main.main([str(path), "arcs"]) == 0
    assert "Chapters in no arc: 5, 6, 7, 8, 9, 10" in capsys.readouterr().out
