"""
SpellRun - single entry point for applying spells to distribution targets.

Coordinates: validate -> scan -> (per target) map -> transform -> aggregate

Usage:
    result = await apply_spells(["dist-npm", "dist-jsr", "dist-libs"])
    result = await apply_spells(["dist-libs/sdk"], concurrency=8)
    result = await apply_spells(["my-output"])  # custom target, processed in place
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Optional

from spellcaster.config.defaults import DIST_LIBS
from spellcaster.config.settings import SpellConfig
from spellcaster.errors import FileProcessingError, FileReadError, RunAbortedError, SpellError
from spellcaster.evaluator import Evaluator, evaluate_spell
from spellcaster.mapper import CorrespondenceMapper, RegistryCache
from spellcaster.models import ResolvedTarget, RunResult, SourceFile, TargetKind, TargetSpec
from spellcaster.scanner import DirectiveScanner, ImplementationExclusion
from spellcaster.targets import TargetValidator, library_root
from spellcaster.transformer import FileTransformer, SourceLookup
from spellcaster.walker import is_directory

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle of one run."""
    PENDING = "pending"
    VALIDATING = "validating"
    SCANNING = "scanning"
    MAPPING = "mapping"
    TRANSFORMING = "transforming"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


def _chunks(items: List[Path], size: int) -> Iterable[List[Path]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


class SpellRun:
    """
    One run of the spell engine.

    Owns every per-run cache (registry discovery, implementation exclusion)
    so repeated or concurrent runs never share stale state.
    """

    def __init__(self, config: SpellConfig, evaluator: Evaluator = evaluate_spell):
        self.config = config
        self.registries = RegistryCache()
        self.validator = TargetValidator(config)
        self.mapper = CorrespondenceMapper(config, self.registries)
        self.scanner = DirectiveScanner(config.project_root, stop_on_error=config.stop_on_error)
        self.transformer = FileTransformer(
            config.project_root,
            evaluator=evaluator,
            copy_from_source=config.copy_from_source_before_processing,
        )
        self.state = RunState.PENDING
        self.result = RunResult()
        self._abort = asyncio.Event()
        self._abort_error: Optional[SpellError] = None

    @property
    def aborted(self) -> bool:
        return self._abort.is_set()

    async def run(self, targets: Iterable[str]) -> RunResult:
        """
        Apply spells to every requested target.

        Raises:
            ConflictError: Structurally invalid target list (nothing is touched).
            NotFoundError: A custom target directory is missing.
            RunAbortedError: stop_on_error tripped; .result holds partial progress.
        """
        start = time.monotonic()

        self.state = RunState.VALIDATING
        try:
            specs = self.validator.validate(list(targets))
        except SpellError:
            self.state = RunState.FAILED
            raise

        self.state = RunState.SCANNING
        sources: List[SourceFile] = []
        if any(spec.kind is not TargetKind.CUSTOM for spec in specs):
            try:
                sources = await self._scan_sources()
            except FileProcessingError as e:
                self._fail(e)
            if sources:
                logger.info("[spells] found %d source files with magic directives", len(sources))
            else:
                logger.info("[spells] no source files with magic directives found")

        self.state = RunState.MAPPING
        resolved: List[ResolvedTarget] = []
        for spec in specs:
            if spec.kind is not TargetKind.CUSTOM and not sources:
                continue
            resolved.extend(await self._resolve(spec))

        self.state = RunState.TRANSFORMING
        semaphore = asyncio.Semaphore(self.config.target_concurrency)

        async def bounded(target: ResolvedTarget) -> None:
            async with semaphore:
                if self.aborted:
                    return
                self.result.merge(await self.process_target(target, sources))

        await asyncio.gather(*(bounded(t) for t in resolved))

        self.state = RunState.AGGREGATING
        if self._abort_error is not None:
            self._fail(self._abort_error)

        self.result.freeze()
        self.state = RunState.DONE
        logger.info(
            "[spells] processed %d magic spells in %d files (%.2fs)",
            self.result.total_spells_processed,
            len(self.result.processed_files),
            time.monotonic() - start,
        )
        return self.result

    async def _scan_sources(self) -> List[SourceFile]:
        exclude = await ImplementationExclusion.build(self.config.output_root(DIST_LIBS))
        return await self.scanner.scan(self.config.source_root, exclude)

    async def _resolve(self, spec: TargetSpec) -> List[ResolvedTarget]:
        targets = await self.validator.resolve(spec)
        if not targets:
            self.result.record_skip(spec.label)
        return targets

    async def process_target(
        self, target: ResolvedTarget, sources: List[SourceFile]
    ) -> RunResult:
        """Map and transform one resolved target; errors are recorded, not raised."""
        target_result = RunResult()

        if not await is_directory(library_root(target)):
            logger.info("[spells] skipping non-existent target: %s", target.label)
            target_result.record_skip(target.label)
            return target_result

        logger.info("[spells] processing target: %s", target.label)

        find_source: Optional[SourceLookup] = None
        if target.kind is TargetKind.CUSTOM:
            # custom targets carry their spells in place
            in_place = DirectiveScanner(self.config.project_root, self.config.stop_on_error)
            try:
                found = await in_place.scan(target.root)
            except FileProcessingError as e:
                self._signal_abort(e, target_result)
                return target_result
            outputs = [f.absolute_path for f in found]
        else:
            try:
                outputs = await self.mapper.find_outputs_many(sources, target)
            except OSError as e:
                error = FileReadError(library_root(target), e)
                logger.error("Error mapping %s: %s", target.label, error)
                self._signal_abort(error, target_result)
                return target_result
            find_source = functools.partial(self.mapper.find_source, target=target)

        if not outputs:
            logger.info("[spells] no corresponding output files found for target: %s", target.label)
            return target_result

        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def bounded(path: Path) -> None:
            async with semaphore:
                try:
                    target_result.record(await self.transformer.transform(path, find_source))
                except FileProcessingError as e:
                    logger.error("Error processing %s: %s", path, e)
                    self._signal_abort(e, target_result)

        for chunk in _chunks(outputs, self.config.batch_size):
            if self.aborted:
                break
            await asyncio.gather(*(bounded(p) for p in chunk))

        return target_result

    def _signal_abort(self, error: SpellError, target_result: RunResult) -> None:
        target_result.record_error(error)
        if self.config.stop_on_error and not self.aborted:
            self._abort_error = error
            self._abort.set()

    def _fail(self, error: SpellError) -> None:
        self.state = RunState.FAILED
        raise RunAbortedError(error, self.result.freeze())

    async def all_registries(self) -> List[str]:
        """Registries published by any library under the multi-library root."""
        return await self.registries.all_registries(self.config.output_root(DIST_LIBS))


async def apply_spells(
    targets: Iterable[str],
    config: Optional[SpellConfig] = None,
    evaluator: Evaluator = evaluate_spell,
    **options: Any,
) -> RunResult:
    """
    Apply spells to the given targets.

    Args:
        targets: "dist-npm", "dist-jsr", "dist-libs", "dist-libs/<lib>" or custom paths.
        config: Full configuration; when omitted one is built from options.
        evaluator: Line evaluator; defaults to the built-in spells.
        **options: SpellConfig fields (concurrency, batch_size, stop_on_error, ...).

    Returns:
        Frozen RunResult.
    """
    if config is None:
        config = SpellConfig(**options)
    elif options:
        raise TypeError("Pass either config or keyword options, not both")
    return await SpellRun(config, evaluator).run(targets)
