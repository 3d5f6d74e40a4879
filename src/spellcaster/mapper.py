"""
CorrespondenceMapper - source file <-> generated output files.

Layouts handled:
    plain:          <root>/bin/<stem-dir>/<name>.<ext>
    multi-library:  <root>/<lib>/<registry>/bin/<stem-dir>/<name>.<ext>

Extension rules:
    x.d.ts  -> x.d.ts
    x.ts    -> x.js, x.ts
    x.<any> -> x.<any>

A .js source with a sibling x.ts source maps to nothing: the .ts source owns
x.js, which keeps correspondence sets of one run disjoint.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple

import aiofiles.os

from spellcaster.config.defaults import REGISTRY_NAMES
from spellcaster.config.settings import SpellConfig
from spellcaster.models import ResolvedTarget, SourceFile, TargetKind
from spellcaster.targets import library_root
from spellcaster.walker import is_directory, list_subdirectories

logger = logging.getLogger(__name__)

DTS = ".d.ts"


class RegistryCache:
    """Per-run read-through cache of registry sub-trees, keyed by library name.

    A concurrent miss recomputes and overwrites with the same value.
    """

    def __init__(self):
        self._by_library: Dict[str, List[str]] = {}

    async def get(self, libs_root: Path, library: str) -> List[str]:
        cached = self._by_library.get(library)
        if cached is not None:
            return cached
        registries = [
            name for name in await list_subdirectories(libs_root / library)
            if name in REGISTRY_NAMES
        ]
        self._by_library[library] = registries
        return registries

    async def all_registries(self, libs_root: Path) -> List[str]:
        """Union of registries across every library under libs_root."""
        found: List[str] = []
        for library in await list_subdirectories(libs_root):
            for registry in await self.get(libs_root, library):
                if registry not in found:
                    found.append(registry)
        return found

    def __len__(self) -> int:
        return len(self._by_library)


def split_name(name: str) -> Tuple[str, str]:
    """Split a file name into (base, extension), treating .d.ts as one extension."""
    if name.endswith(DTS):
        return name[: -len(DTS)], DTS
    suffix = PurePosixPath(name).suffix
    return (name[: -len(suffix)], suffix) if suffix else (name, "")


def output_extensions(source_name: str) -> List[str]:
    """Candidate output extensions for a source file name, in preference order."""
    _, ext = split_name(source_name)
    if ext == DTS:
        return [DTS]
    if ext == ".ts":
        return [".js", ".ts"]
    return [ext]


def source_names(output_name: str) -> List[str]:
    """Candidate source file names for an output name, best match first."""
    base, ext = split_name(output_name)
    if ext == ".js":
        return [f"{base}.ts", f"{base}.js"]
    return [output_name]


async def _is_file(path: Path) -> bool:
    return await aiofiles.os.path.isfile(path)


class CorrespondenceMapper:
    """Map source files to output files in a resolved target, and back."""

    def __init__(self, config: SpellConfig, registries: Optional[RegistryCache] = None):
        self.config = config
        self.registries = registries or RegistryCache()

    def _library_source_root(self, library: str) -> Path:
        return self.config.source_root / self.config.libs_source_dir / library

    async def _output_dirs(self, target: ResolvedTarget) -> List[Path]:
        if target.kind is TargetKind.MULTI_LIBRARY:
            registries = await self.registries.get(target.root, target.sub_name)
            lib_root = library_root(target)
            return [lib_root / registry / self.config.bin_dir for registry in registries]
        return [target.root / self.config.bin_dir]

    def _stem(self, source: Path, target: ResolvedTarget) -> Optional[Path]:
        base = (
            self._library_source_root(target.sub_name)
            if target.kind is TargetKind.MULTI_LIBRARY
            else self.config.source_root
        )
        try:
            return source.relative_to(base)
        except ValueError:
            return None

    async def find_outputs(self, source: SourceFile, target: ResolvedTarget) -> List[Path]:
        """
        Existing output files generated from source in target.

        Missing candidates are omitted; a missing target root yields [].
        Custom targets are processed in place and have no correspondence.
        """
        if target.kind is TargetKind.CUSTOM:
            return []
        if target.kind is TargetKind.MULTI_LIBRARY and not target.sub_name:
            return []
        if not await is_directory(library_root(target)):
            return []

        stem = self._stem(source.absolute_path, target)
        if stem is None:
            return []

        base, ext = split_name(stem.name)
        if ext == ".js" and await _is_file(source.absolute_path.with_name(f"{base}.ts")):
            logger.debug("[spells] %s is shadowed by its .ts sibling", source.relative_path)
            return []

        outputs: List[Path] = []
        for directory in await self._output_dirs(target):
            for out_ext in output_extensions(stem.name):
                candidate = directory / stem.parent / f"{base}{out_ext}"
                if await _is_file(candidate):
                    outputs.append(candidate)
        return outputs

    async def find_outputs_many(
        self, sources: List[SourceFile], target: ResolvedTarget
    ) -> List[Path]:
        """Union of correspondence sets for sources, deduplicated, in source order."""
        sets = await asyncio.gather(*(self.find_outputs(s, target) for s in sources))
        seen = set()
        flat: List[Path] = []
        for outputs in sets:
            for path in outputs:
                if path not in seen:
                    seen.add(path)
                    flat.append(path)
        return flat

    async def find_source(self, output: Path, target: ResolvedTarget) -> Optional[Path]:
        """Best-matching source file for one output path, or None."""
        if target.kind is TargetKind.CUSTOM:
            return None

        if target.kind is TargetKind.MULTI_LIBRARY:
            try:
                rel = output.relative_to(library_root(target))
            except ValueError:
                return None
            parts = list(rel.parts)
            if parts and parts[0] in REGISTRY_NAMES:
                parts.pop(0)
            if parts and parts[0] == self.config.bin_dir:
                parts.pop(0)
            source_dir = self._library_source_root(target.sub_name).joinpath(*parts[:-1])
        else:
            try:
                rel = output.relative_to(target.root / self.config.bin_dir)
            except ValueError:
                return None
            source_dir = self.config.source_root / rel.parent

        for name in source_names(output.name):
            if name.endswith(DTS) and not output.name.endswith(DTS):
                continue
            candidate = source_dir / name
            if await _is_file(candidate):
                return candidate
        return None
