"""
FileTransformer - applies spells to one output file.

Two phases, always in this order:
    1. refresh: take the content of the best-matching source file
    2. directives: evaluate lines last-to-first and rebuild the content

The file is only written when the rebuilt content differs from what is on
disk, so re-running on an unchanged tree performs no writes.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import aiofiles
import aiofiles.os

from spellcaster.directives import count_directives, is_binary_path, split_lines
from spellcaster.errors import DirectiveEvaluationError, FileReadError, FileWriteError
from spellcaster.evaluator import Evaluator, evaluate_spell
from spellcaster.models import EvaluationContext, FileOutcome, Outcome
from spellcaster.scanner import read_text, to_project_relative

logger = logging.getLogger(__name__)

SourceLookup = Callable[[Path], Awaitable[Optional[Path]]]


def apply_outcomes(
    lines: List[str],
    evaluator: Evaluator,
    ctx: EvaluationContext,
    reverse: bool = True,
) -> Optional[List[str]]:
    """
    Evaluate every line and return the kept lines, or None if the file must go.

    Lines are evaluated against their original positions; reverse=True walks
    last-to-first so a remove-file spell short-circuits before any earlier
    line is touched.
    """
    indices = range(len(lines) - 1, -1, -1) if reverse else range(len(lines))
    kept: List[Optional[str]] = [None] * len(lines)

    for i in indices:
        line = lines[i]
        outcome = _evaluate(evaluator, line, ctx, i)
        if outcome.remove_file:
            return None
        if not outcome.remove_line:
            kept[i] = outcome.replacement if outcome.replacement is not None else line

    return [line for line in kept if line is not None]


def _evaluate(evaluator: Evaluator, line: str, ctx: EvaluationContext, index: int) -> Outcome:
    try:
        return evaluator(line, ctx)
    except Exception as e:
        err = DirectiveEvaluationError(ctx.file_path, index, e)
        logger.warning("%s", err)
        return Outcome()


async def write_text(path: Path, content: str) -> None:
    """
    Raises:
        FileWriteError: If the file cannot be written.
    """
    try:
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(content)
    except OSError as e:
        raise FileWriteError(path, e) from e


async def delete_file(path: Path) -> None:
    """
    Raises:
        FileWriteError: If the file cannot be removed.
    """
    try:
        await aiofiles.os.remove(path)
    except OSError as e:
        raise FileWriteError(path, e) from e


class FileTransformer:
    """Refresh and rewrite single output files."""

    def __init__(
        self,
        project_root: Path,
        evaluator: Evaluator = evaluate_spell,
        copy_from_source: bool = True,
    ):
        self.project_root = project_root
        self.evaluator = evaluator
        self.copy_from_source = copy_from_source

    async def transform(
        self,
        output_path: Path,
        find_source: Optional[SourceLookup] = None,
    ) -> FileOutcome:
        """
        Apply spells to output_path.

        Args:
            output_path: Generated file to rewrite in place.
            find_source: Lookup for the file's source; None disables the refresh phase.

        Returns:
            FileOutcome; removed files still count as processed.

        Raises:
            FileReadError: If the output file cannot be read.
            FileWriteError: If the rewrite or deletion fails.
        """
        rel = to_project_relative(output_path, self.project_root)

        if is_binary_path(output_path):
            logger.debug("[spells] skipping binary %s", rel)
            return FileOutcome(path=output_path, processed=False)

        if not await aiofiles.os.path.isfile(output_path):
            logger.debug("[spells] output vanished before processing: %s", rel)
            return FileOutcome(path=output_path, processed=False)

        current = await read_text(output_path)
        content = current
        refreshed_from: Optional[Path] = None

        if self.copy_from_source and find_source is not None:
            source = await find_source(output_path)
            if source is not None and source.resolve() != output_path.resolve():
                try:
                    content = await read_text(source)
                    refreshed_from = source
                    logger.debug(
                        "[spells] refreshed %s from %s",
                        rel,
                        to_project_relative(source, self.project_root),
                    )
                except FileReadError as e:
                    logger.error("Failed to copy from source: %s", e)

        ctx = EvaluationContext(file_path=rel)
        kept = apply_outcomes(split_lines(content), self.evaluator, ctx)

        if kept is None:
            await delete_file(output_path)
            logger.info("[spells] removed %s", rel)
            return FileOutcome(
                path=output_path,
                processed=True,
                removed=True,
                changed=True,
                refreshed_from=refreshed_from,
            )

        new_content = "\n".join(kept)
        changed = new_content != current
        if changed:
            await write_text(output_path, new_content)
            logger.info("[spells] updated %s", rel)

        return FileOutcome(
            path=output_path,
            processed=True,
            changed=changed,
            spell_count=count_directives(new_content),
            refreshed_from=refreshed_from,
        )
