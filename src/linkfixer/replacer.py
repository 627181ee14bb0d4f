#!/usr/bin/env python3
"""Rule-based text replacement.

A ReplacementRule pairs a compiled pattern with a replacement template.
Applying a rule repeatedly finds the first match, expands the template
against it, and substitutes the first occurrence of the matched text until
nothing matches any more. The ReplacementEngine folds an ordered sequence
of rules over a string, each rule seeing the output of the previous one.

Replacement templates use the syntax of the rule files:
- $1 .. $99: numbered capture group
- $<name>: named capture group
- $&: the whole match
- $$: a literal dollar sign

Because substitution works on the matched text rather than the match
position, a replacement that is itself matched by the pattern would loop
forever. Every rule therefore carries an iteration bound; hitting it
aborts that rule application with a warning and keeps the text as it
stood.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from linkfixer.constants import MAX_REPLACE_ITERATIONS

logger = logging.getLogger(__name__)

_TEMPLATE_TOKEN = re.compile(r"\$(?:(\$)|(&)|(\d{1,2})|<([A-Za-z_]\w*)>)")


def expand_template(template: str, match: re.Match[str]) -> str:
    """Expand a $-style replacement template against a match.

    References to groups that do not exist are kept literally; groups that
    exist but did not participate in the match expand to the empty string.

    Args:
        template: The replacement template.
        match: The match to take group values from.

    Returns:
        The expanded replacement text.
    """
    group_count = match.re.groups

    def substitute(token: re.Match[str]) -> str:
        dollar, whole, digits, name = token.groups()
        if dollar:
            return "$"
        if whole:
            return match.group(0)
        if digits:
            if len(digits) == 2 and int(digits) > group_count:
                # $12 with fewer than 12 groups means $1 followed by "2"
                index, tail = int(digits[0]), digits[1]
            else:
                index, tail = int(digits), ""
            if index == 0 or index > group_count:
                return token.group(0)
            return (match.group(index) or "") + tail
        if name in match.re.groupindex:
            return match.group(name) or ""
        return token.group(0)

    return _TEMPLATE_TOKEN.sub(substitute, template)


@dataclass(frozen=True)
class ReplacementRule:
    """An immutable pattern and replacement pair.

    Attributes:
        pattern: Compiled regular expression to search for.
        replacement: Replacement template, see expand_template().
        max_iterations: Upper bound on substitutions per apply() call.
        source: Where the rule came from, used in log messages.
        logger: Logger receiving substitution and abort messages.
    """

    pattern: re.Pattern[str]
    replacement: str
    max_iterations: int = MAX_REPLACE_ITERATIONS
    source: str | None = None
    logger: logging.Logger = field(default=logger, compare=False, repr=False)

    def apply(self, text: str) -> str:
        """Apply the rule to text until the pattern no longer matches.

        Args:
            text: The text to rewrite.

        Returns:
            The rewritten text, or text itself when nothing matched.
        """
        result = text
        for _ in range(self.max_iterations):
            match = self.pattern.search(result)
            if match is None:
                return result
            matched = match.group(0)
            if not matched:
                # An empty match can never be consumed by str.replace
                return result
            replacement = expand_template(self.replacement, match)
            self.logger.debug("Found match %r, replacing with %r", matched, replacement)
            result = result.replace(matched, replacement, 1)

        if self.pattern.search(result) is not None:
            self.logger.warning(
                "Rule %s still matching after %d replacements, aborting: %r",
                self.source or self.pattern.pattern,
                self.max_iterations,
                text,
            )
        return result


class ReplacementEngine:
    """Ordered collection of replacement rules.

    Rules are applied in insertion order. The engine is read-only once
    built.
    """

    def __init__(self, rules: Iterable[ReplacementRule] = ()) -> None:
        self._rules: tuple[ReplacementRule, ...] = tuple(rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[ReplacementRule]:
        return iter(self._rules)

    @property
    def rules(self) -> tuple[ReplacementRule, ...]:
        return self._rules

    def apply_all(self, text: str | None) -> str | None:
        """Apply every rule to text in order.

        Args:
            text: The text to rewrite. Empty or None is returned unchanged.

        Returns:
            The rewritten text, or the input when no rule matched.
        """
        if not text:
            return text
        result = text
        for rule in self._rules:
            result = rule.apply(result)
        return result
