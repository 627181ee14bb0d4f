#!/usr/bin/env python3
"""Loading replacement rules from a directory of JSON files.

Each *.json file in the rules directory holds an ordered array of rule
records:

    [
        {"pattern": "example\\.com/embed/(\\w+)", "flags": "gi",
         "replacement": "example.com/watch?v=$1"}
    ]

Files are read in sorted file name order and their records appended in
order, so the resulting rule set is stable across runs. Loading fails fast:
any unreadable file or malformed record raises RuleError naming the file
and record index, since the monitor cannot safely run with a partial rule
set.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from linkfixer.constants import MAX_REPLACE_ITERATIONS
from linkfixer.errors import RuleError
from linkfixer.replacer import ReplacementEngine, ReplacementRule

logger = logging.getLogger(__name__)

# Rule file flag letters mapped to re flags. "g" is the default behaviour
# (every match is replaced) and "u" is implicit for str patterns.
FLAG_MAP: dict[str, re.RegexFlag] = {
    "g": re.NOFLAG,
    "u": re.NOFLAG,
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}

DEFAULT_FLAGS: str = "g"


def parse_flags(flags: str) -> re.RegexFlag:
    """Convert rule file flag letters to re flags.

    Args:
        flags: Flag letters, e.g. "gi".

    Returns:
        The combined re flags.

    Raises:
        ValueError: If a letter is not a known flag.
    """
    result = re.NOFLAG
    for letter in flags:
        if letter not in FLAG_MAP:
            raise ValueError(f"Unknown flag {letter!r}")
        result |= FLAG_MAP[letter]
    return result


def parse_rule(
    record: object,
    source: str,
    max_iterations: int = MAX_REPLACE_ITERATIONS,
    rule_logger: logging.Logger | None = None,
) -> ReplacementRule:
    """Build a ReplacementRule from one decoded JSON record.

    Args:
        record: The decoded record, expected to be a dict.
        source: Human-readable location used in errors and logs.
        max_iterations: Substitution bound for the rule.
        rule_logger: Logger handed to the rule.

    Returns:
        The compiled rule.

    Raises:
        RuleError: If the record is malformed or the pattern is invalid.
    """
    if not isinstance(record, dict):
        raise RuleError(f"Rule must be an object, got {type(record).__name__}")

    pattern = record.get("pattern")
    replacement = record.get("replacement")
    flags = record.get("flags", DEFAULT_FLAGS)
    if not isinstance(pattern, str) or not pattern:
        raise RuleError("Rule 'pattern' must be a non-empty string")
    if not isinstance(replacement, str):
        raise RuleError("Rule 'replacement' must be a string")
    if not isinstance(flags, str):
        raise RuleError("Rule 'flags' must be a string")

    try:
        compiled = re.compile(pattern, parse_flags(flags))
    except (re.error, ValueError) as e:
        raise RuleError(f"Invalid pattern {pattern!r}: {e}") from e

    return ReplacementRule(
        pattern=compiled,
        replacement=replacement,
        max_iterations=max_iterations,
        source=source,
        logger=rule_logger or logger,
    )


def load_rule_file(
    path: Path,
    max_iterations: int = MAX_REPLACE_ITERATIONS,
    rule_logger: logging.Logger | None = None,
) -> list[ReplacementRule]:
    """Load the ordered rules held in one JSON file.

    Args:
        path: The rule file.
        max_iterations: Substitution bound for each rule.
        rule_logger: Logger handed to each rule.

    Returns:
        The rules in file order.

    Raises:
        RuleError: If the file cannot be read or holds malformed rules.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RuleError(f"Cannot read rule file: {e}", str(path)) from e
    except json.JSONDecodeError as e:
        raise RuleError(f"Invalid JSON: {e}", str(path)) from e

    if not isinstance(document, list):
        raise RuleError("Rule file must contain a JSON array", str(path))

    rules = []
    for index, record in enumerate(document):
        source = f"{path.name}[{index}]"
        try:
            rules.append(parse_rule(record, source, max_iterations, rule_logger))
        except RuleError as e:
            raise RuleError(str(e), str(path), index) from e
    return rules


def load_rules(
    rules_dir: str | Path,
    max_iterations: int = MAX_REPLACE_ITERATIONS,
    rule_logger: logging.Logger | None = None,
) -> ReplacementEngine:
    """Load every *.json rule file in a directory into an engine.

    Args:
        rules_dir: Directory holding the rule files.
        max_iterations: Substitution bound for each rule.
        rule_logger: Logger handed to each rule and used for load messages.

    Returns:
        A ReplacementEngine with the rules in file name, then file, order.

    Raises:
        RuleError: If the directory is missing or any file is malformed.
    """
    log = rule_logger or logger
    directory = Path(rules_dir)
    if not directory.is_dir():
        raise RuleError("Rules directory does not exist", str(directory))

    log.info("Loading replacers from %s", directory)
    rules: list[ReplacementRule] = []
    for path in sorted(p for p in directory.glob("*.json") if p.is_file()):
        file_rules = load_rule_file(path, max_iterations, rule_logger)
        log.debug("Loaded %d rules from %s", len(file_rules), path.name)
        rules.extend(file_rules)

    if not rules:
        log.warning("No replacement rules found in %s, clipboard will not be modified", directory)
    else:
        log.info("Found %d replacers", len(rules))
    return ReplacementEngine(rules)
