# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

import arc_context_logic  # noqa: E402
import core.token_estimation  # noqa: E402


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    """Keep token counts on the character heuristic so tests never fetch encodings."""
    monkeypatch.setattr(core.token_estimation, "_get_tokenizer", lambda _name: None)


@pytest.fixture(autouse=True)
def fresh_default_cache():
    arc_context_logic.reset_default_cache()
    yield
    arc_context_logic.reset_default_cache()
