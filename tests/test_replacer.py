#!/usr/bin/env python3
"""
Unit tests for ReplacementRule and ReplacementEngine.

Tests template expansion, repeated substitution, the iteration bound and
ordered rule application.
"""
import logging
import re

import pytest

from conftest import EMBED_INPUT, EMBED_OUTPUT
from linkfixer.constants import MAX_REPLACE_ITERATIONS
from linkfixer.replacer import ReplacementEngine, ReplacementRule, expand_template


def make_rule(pattern: str, replacement: str, **kwargs) -> ReplacementRule:
    """Build a rule from an uncompiled pattern."""
    return ReplacementRule(re.compile(pattern), replacement, **kwargs)


class TestExpandTemplate:
    """Tests for $-style replacement templates."""

    def test_numbered_groups(self) -> None:
        match = re.search(r"(a)(b)", "xab")
        assert expand_template("$2$1", match) == "ba"

    def test_named_group(self) -> None:
        match = re.search(r"id=(?P<id>\d+)", "?id=42")
        assert expand_template("watch/$<id>", match) == "watch/42"

    def test_whole_match_and_literal_dollar(self) -> None:
        match = re.search(r"b+", "abbc")
        assert expand_template("[$&] costs $$5", match) == "[bb] costs $5"

    def test_two_digit_reference_beyond_group_count(self) -> None:
        """$12 with a single group is group 1 followed by a literal 2."""
        match = re.search(r"(x)", "x")
        assert expand_template("$12", match) == "x2"

    def test_unknown_references_kept_literally(self) -> None:
        match = re.search(r"(x)", "x")
        assert expand_template("$3 $<nope> $0", match) == "$3 $<nope> $0"

    def test_unmatched_group_expands_to_empty(self) -> None:
        match = re.search(r"(a)|(b)", "b")
        assert expand_template("<$1|$2>", match) == "<|b>"

    def test_backslashes_are_literal(self) -> None:
        match = re.search(r"(a)", "a")
        assert expand_template(r"\1\n", match) == r"\1\n"


class TestReplacementRule:
    """Tests for ReplacementRule.apply."""

    def test_embed_link_rewritten(self, embed_rule: ReplacementRule) -> None:
        assert embed_rule.apply(EMBED_INPUT) == EMBED_OUTPUT

    def test_every_match_replaced(self) -> None:
        rule = make_rule(r"embed/(\w+)", "watch/$1")
        assert rule.apply("a embed/x b embed/y") == "a watch/x b watch/y"

    def test_no_match_returns_text_unchanged(self, embed_rule: ReplacementRule) -> None:
        assert embed_rule.apply("nothing to see") == "nothing to see"

    def test_replaces_first_occurrence_of_matched_text(self) -> None:
        """Substitution targets the matched text, not the match position."""
        rule = make_rule(r"(?<=-)a", "b", max_iterations=1)
        assert rule.apply("a-a") == "b-a"

    def test_empty_match_stops(self) -> None:
        rule = make_rule(r"x*", "y")
        assert rule.apply("abc") == "abc"

    def test_self_matching_replacement_terminates(self, caplog: pytest.LogCaptureFixture) -> None:
        """A replacement the pattern matches again stops at the bound."""
        rule = make_rule(r"a", "aa", max_iterations=10)
        with caplog.at_level(logging.WARNING):
            result = rule.apply("a")
        assert result == "a" * 11
        assert "aborting" in caplog.text

    def test_default_bound(self) -> None:
        rule = make_rule(r"x", "xx")
        assert len(rule.apply("x")) == MAX_REPLACE_ITERATIONS + 1

    def test_bound_reached_exactly_without_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        rule = make_rule(r"a", "b", max_iterations=3)
        with caplog.at_level(logging.WARNING):
            assert rule.apply("aaa") == "bbb"
        assert "aborting" not in caplog.text

    def test_rule_is_immutable(self, embed_rule: ReplacementRule) -> None:
        with pytest.raises(AttributeError):
            embed_rule.replacement = "other"  # type: ignore[misc]


class TestReplacementEngine:
    """Tests for ReplacementEngine.apply_all."""

    def test_rules_applied_in_sequence(self) -> None:
        engine = ReplacementEngine([make_rule("x", "y"), make_rule("y", "z")])
        assert engine.apply_all("x") == "z"

    def test_order_is_significant(self) -> None:
        engine = ReplacementEngine([make_rule("y", "z"), make_rule("x", "y")])
        assert engine.apply_all("x") == "y"

    def test_identity_when_nothing_matches(self, engine: ReplacementEngine) -> None:
        text = "https://example.com/watch?v=abc123"
        assert engine.apply_all(text) == text

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_input_returned_unchanged(self, engine: ReplacementEngine, text) -> None:
        assert engine.apply_all(text) is text

    def test_deterministic(self, engine: ReplacementEngine) -> None:
        assert engine.apply_all(EMBED_INPUT) == engine.apply_all(EMBED_INPUT) == EMBED_OUTPUT

    def test_empty_engine(self) -> None:
        engine = ReplacementEngine()
        assert len(engine) == 0
        assert engine.apply_all("text") == "text"

    def test_len_and_iteration(self, embed_rule: ReplacementRule) -> None:
        engine = ReplacementEngine([embed_rule, embed_rule])
        assert len(engine) == 2
        assert list(engine) == [embed_rule, embed_rule]
        assert engine.rules == (embed_rule, embed_rule)
