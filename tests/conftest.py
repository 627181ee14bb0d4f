#!/usr/bin/env python3
"""Pytest fixtures for linkfixer tests.

Provides fixtures for replacement rules, rule directories and a
controller wired to an in-memory monitor.
"""

import json
import re
from pathlib import Path

import pytest

from conftest_monitors import FakeMonitor
from linkfixer.controller import MonitorController
from linkfixer.replacer import ReplacementEngine, ReplacementRule

EMBED_INPUT = "check out https://example.com/embed/abc123"
EMBED_OUTPUT = "check out https://example.com/watch?v=abc123"


@pytest.fixture
def embed_rule() -> ReplacementRule:
    """Rule rewriting example.com embed links to watch links."""
    return ReplacementRule(re.compile(r"example\.com\/embed\/(\w+)"), "example.com/watch?v=$1")


@pytest.fixture
def engine(embed_rule: ReplacementRule) -> ReplacementEngine:
    """Engine holding only the embed rule."""
    return ReplacementEngine([embed_rule])


@pytest.fixture
def controller(engine: ReplacementEngine) -> MonitorController:
    """Controller driving a FakeMonitor."""
    return MonitorController(engine, FakeMonitor)


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    """Directory holding a single valid rule file."""
    directory = tmp_path / "replacers"
    directory.mkdir()
    rules = [{"pattern": r"example\.com\/embed\/(\w+)", "replacement": "example.com/watch?v=$1"}]
    (directory / "embeds.json").write_text(json.dumps(rules), encoding="utf-8")
    return directory
