"""
Default spell evaluator - turns one line into an Outcome.

Supported spells:
    // <dler-replace-line-to `NEW CONTENT` [if 'cond'] [else 'alt']>
    // <dler-remove-line>
    // <dler-remove-file>
    // <dler-remove-comment>
    // <dler-ignore-this-line>

Conditions: current file path starts with <prefix> [or <prefix> ...]

The engine only depends on the Evaluator signature; any callable taking
(line, EvaluationContext) and returning an Outcome can replace this one.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Tuple

from spellcaster.config.defaults import DEFAULT_REPLACE_CONDITION
from spellcaster.directives import SPELL_PATTERN
from spellcaster.models import NO_OP, EvaluationContext, Outcome, SpellInfo

logger = logging.getLogger(__name__)

Evaluator = Callable[[str, EvaluationContext], Outcome]

REPLACE_LINE_TO = "dler-replace-line-to"
REMOVE_LINE = "dler-remove-line"
REMOVE_FILE = "dler-remove-file"
REMOVE_COMMENT = "dler-remove-comment"
IGNORE_THIS_LINE = "dler-ignore-this-line"
DISABLE_AGG = "dler-disable-agg"  # consumed by other tooling, no-op here

KNOWN_SPELLS = frozenset({
    REPLACE_LINE_TO,
    REMOVE_LINE,
    REMOVE_FILE,
    REMOVE_COMMENT,
    IGNORE_THIS_LINE,
    DISABLE_AGG,
})

_IGNORE_MARKER = f"<{IGNORE_THIS_LINE}>"
_REPLACEMENT = re.compile(r"`([^`]+)`")
_IF_CONDITION = re.compile(r"\bif\s+['\"`]([^'\"`]+)['\"`]", re.IGNORECASE)
_ELSE_CONTENT = re.compile(r"\belse\s+['\"`]([^'\"`]+)['\"`]", re.IGNORECASE)
_STARTS_WITH = re.compile(r"current file path starts with\s+(.+)$", re.IGNORECASE)
_OR = re.compile(r"\s+or\s+", re.IGNORECASE)


def evaluate_spell(line: str, ctx: EvaluationContext) -> Outcome:
    """Evaluate a single line; lines without a spell yield a neutral outcome."""
    if _IGNORE_MARKER in line.lower():
        return NO_OP

    match = SPELL_PATTERN.search(line)
    if not match:
        return NO_OP

    name = match.group(1).lower()
    body = match.group(2) or ""

    if name not in KNOWN_SPELLS:
        logger.warning("[spells] unknown directive: %s", name)
        return NO_OP

    if name == REMOVE_FILE:
        return Outcome(remove_line=True, remove_file=True)

    if name == REMOVE_LINE:
        return Outcome(remove_line=True)

    if name == REMOVE_COMMENT:
        comment_index = line.find("//")
        if comment_index == -1:
            return NO_OP
        return Outcome(replacement=line[:comment_index].rstrip())

    if name == REPLACE_LINE_TO:
        replacement, else_content, condition = _parse_replacement(body)
        if not replacement:
            logger.warning("[spells] %s missing replacement content", REPLACE_LINE_TO)
            return NO_OP

        if _evaluate_path_condition(condition, ctx):
            return Outcome(replacement=replacement)
        if else_content is not None:
            return Outcome(replacement=else_content)
        return NO_OP

    return NO_OP


def _parse_replacement(body: str) -> Tuple[str, Optional[str], str]:
    """Split `replacement` [if '...'] [else '...'] into its parts.

    A missing `if` clause falls back to DEFAULT_REPLACE_CONDITION.
    """
    replacement = ""
    condition = DEFAULT_REPLACE_CONDITION
    else_content = None

    m = _REPLACEMENT.search(body)
    if m:
        replacement = m.group(1).strip()

    m = _IF_CONDITION.search(body)
    if m:
        condition = m.group(1).strip()

    m = _ELSE_CONTENT.search(body)
    if m:
        else_content = m.group(1).strip()

    return replacement, else_content, condition


def _evaluate_path_condition(condition: str, ctx: EvaluationContext) -> bool:
    m = _STARTS_WITH.search(condition)
    if m:
        prefixes = [
            re.sub(r"['\"`]", "", p).strip().replace("\\", "/")
            for p in _OR.split(m.group(1))
        ]
        return any(p and ctx.file_path.startswith(p) for p in prefixes)

    # Unsupported condition evaluates false
    if condition.strip():
        logger.warning(
            '[spells] unsupported condition "%s" - only "current file path starts with '
            '<prefix> [or <prefix> ...]" is supported',
            condition,
        )
    return False


def get_available_spells() -> List[SpellInfo]:
    """Return catalog entries for every built-in spell."""
    return [
        SpellInfo(
            name=REPLACE_LINE_TO,
            description="Replaces the current line with new content, optionally based on a condition",
            example=(
                "// <dler-replace-line-to `export const version = \"1.0.0\";` "
                "if 'current file path starts with dist-npm'>"
            ),
            notes=(
                "Without a condition it applies only to files under dist-jsr or dist-npm. "
                "If the condition is not met and else content is given, the else content is used; "
                "otherwise the line is kept."
            ),
        ),
        SpellInfo(
            name=REMOVE_LINE,
            description="Removes the current line from the output",
            example="// <dler-remove-line>",
        ),
        SpellInfo(
            name=REMOVE_FILE,
            description="Removes the entire file from the output",
            example="// <dler-remove-file>",
            notes="Place it at the top of the file for clarity.",
        ),
        SpellInfo(
            name=REMOVE_COMMENT,
            description="Removes only the comment portion holding this directive",
            example="console.log('debug info'); // <dler-remove-comment>",
            notes="Everything from '//' to the end of the line is dropped; the code before it stays.",
        ),
        SpellInfo(
            name=IGNORE_THIS_LINE,
            description="Prevents any directive on this line from being processed",
            example="// <dler-remove-line> // <dler-ignore-this-line>",
            notes="Useful for code that mentions directive strings without meaning to run them.",
        ),
    ]
