"""Directive shape recognition.

Recognises directive-shaped comments without interpreting them:

    // <dler-remove-line>
    // @ts-expect-error anything <dler-remove-line>

Interpretation belongs to the evaluator.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Union

from spellcaster.config.defaults import BINARY_EXTENSIONS, DIRECTIVE_PREFIX
from spellcaster.models import Directive

SPELL_PATTERN = re.compile(
    r"//\s*(?:@ts-expect-error\s+.*?)?<\s*(" + re.escape(DIRECTIVE_PREFIX) + r"[^>\s]+)(.*?)>",
    re.IGNORECASE,
)

_LINE_SPLIT = re.compile(r"\r?\n")


def split_lines(content: str) -> List[str]:
    """Split on LF or CRLF; the result is re-joined with LF."""
    return _LINE_SPLIT.split(content)


def is_directive_line(line: str) -> bool:
    return SPELL_PATTERN.search(line) is not None


def contains_directives(content: str) -> bool:
    """True if any line of content holds a directive-shaped comment."""
    return any(is_directive_line(line) for line in split_lines(content))


def find_directives(content: str) -> List[Directive]:
    return [
        Directive(line_index=i, raw_line=line)
        for i, line in enumerate(split_lines(content))
        if is_directive_line(line)
    ]


def count_directives(content: str) -> int:
    """Approximate spell count: directive-shaped matches left in content.

    This counts what remains in the text, not the operations that were
    applied, so it is a diagnostic only.
    """
    return len(SPELL_PATTERN.findall(content))


def is_binary_path(path: Union[str, Path]) -> bool:
    """Extension heuristic for non-text assets."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS
