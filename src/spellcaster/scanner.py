"""
DirectiveScanner - finds source files that carry at least one spell.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import aiofiles

from spellcaster.config.defaults import (
    IMPLEMENTATION_DIR_SUFFIX,
    IMPLEMENTATION_FALLBACK_FRAGMENTS,
    IMPLEMENTATION_FILE_STEMS,
    REGISTRY_NAMES,
)
from spellcaster.directives import (
    contains_directives,
    find_directives,
    is_binary_path,
    split_lines,
)
from spellcaster.errors import FileReadError, NotFoundError
from spellcaster.models import FileWithSpells, SourceFile
from spellcaster.walker import is_directory, list_subdirectories, walk_tree

logger = logging.getLogger(__name__)

PathPredicate = Callable[[str], bool]


def to_project_relative(path: Path, project_root: Path) -> str:
    """Slash-separated path relative to project_root (absolute if outside it)."""
    try:
        return Path(path).relative_to(project_root).as_posix()
    except ValueError:
        return Path(path).as_posix()


async def read_text(path: Path) -> str:
    """Read a file as UTF-8 text with line endings preserved.

    Raises:
        FileReadError: If the file cannot be read or decoded.
    """
    try:
        async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(path, e) from e


class ImplementationExclusion:
    """Path predicate matching the spell engine's own implementation files.

    Fragments are derived from the libraries present under the multi-library
    output root, so build() is awaited once per run.
    """

    def __init__(self, fragments: Sequence[str]):
        self.fragments = tuple(fragments)

    @classmethod
    async def build(cls, libs_root: Path) -> "ImplementationExclusion":
        fragments: List[str] = []
        for lib in await list_subdirectories(libs_root):
            fragments.append(f"/libs/{lib}/{IMPLEMENTATION_DIR_SUFFIX}/")
            fragments.append(f"/{lib}/{IMPLEMENTATION_DIR_SUFFIX}/")
            for registry in await list_subdirectories(libs_root / lib):
                if registry in REGISTRY_NAMES:
                    fragments.append(f"/libs/{lib}/{registry}/{IMPLEMENTATION_DIR_SUFFIX}/")
                    fragments.append(f"/{lib}/{registry}/{IMPLEMENTATION_DIR_SUFFIX}/")
        if not fragments:
            fragments.extend(IMPLEMENTATION_FALLBACK_FRAGMENTS)
        return cls(fragments)

    def __call__(self, project_rel: str) -> bool:
        name = project_rel.rsplit("/", 1)[-1]
        if name.split(".", 1)[0] in IMPLEMENTATION_FILE_STEMS:
            return True
        # leading slash so fragments also match at the start of a relative path
        rooted = "/" + project_rel.lstrip("/")
        return any(fragment in rooted for fragment in self.fragments)


def _never(_: str) -> bool:
    return False


class DirectiveScanner:
    """Walk a tree and collect files holding directive-shaped comments."""

    def __init__(self, project_root: Path, stop_on_error: bool = False):
        self.project_root = project_root
        self.stop_on_error = stop_on_error

    async def scan(
        self,
        source_root: Path,
        exclude: Optional[PathPredicate] = None,
    ) -> List[SourceFile]:
        """
        Scan source_root for files with spells.

        Args:
            source_root: Directory to walk.
            exclude: Predicate on the project-relative path; matches are skipped.

        Returns:
            Qualifying files in walk order. Content is not retained.

        Raises:
            FileReadError: On a read failure when stop_on_error is set.
        """
        exclude = exclude or _never
        found: List[SourceFile] = []

        if not await is_directory(source_root):
            logger.info("[spells] source directory not found: %s", source_root)
            return found

        logger.debug("[spells] scanning %s", source_root)

        try:
            async for path in walk_tree(source_root):
                if is_binary_path(path):
                    continue
                rel = to_project_relative(path, self.project_root)
                if exclude(rel):
                    logger.debug("[spells] skipping implementation file %s", rel)
                    continue

                try:
                    content = await read_text(path)
                except FileReadError as e:
                    if self.stop_on_error:
                        raise
                    logger.error("%s", e)
                    continue

                if contains_directives(content):
                    found.append(SourceFile(
                        absolute_path=path,
                        relative_path=rel,
                        line_count=len(split_lines(content)),
                    ))
                    logger.debug("[spells] found directives in %s", rel)
        except OSError as e:
            if self.stop_on_error:
                raise FileReadError(source_root, e) from e
            logger.error("Failed to scan source directory %s: %s", source_root, e)

        return found


async def find_files_with_spells(
    dirs: Iterable[Path],
    project_root: Optional[Path] = None,
    stop_on_error: bool = False,
    exclude: Optional[PathPredicate] = None,
) -> List[FileWithSpells]:
    """
    Inventory spells under one or more directories.

    Args:
        dirs: Directories to walk (relative ones resolve against project_root).
        project_root: Base for relative dirs and for the exclude predicate.
        stop_on_error: Raise instead of logging missing dirs and read failures.
        exclude: Predicate on the project-relative path; matches are skipped.

    Returns:
        One FileWithSpells per file with 1-based spell line numbers.
    """
    root = Path(project_root) if project_root is not None else Path.cwd()
    exclude = exclude or _never
    results: List[FileWithSpells] = []

    for raw_dir in dirs:
        directory = Path(raw_dir)
        if not directory.is_absolute():
            directory = root / directory
        if not await is_directory(directory):
            message = f"Directory does not exist: {raw_dir}"
            if stop_on_error:
                raise NotFoundError(message, path=directory)
            logger.warning(message)
            continue

        async for path in walk_tree(directory):
            if is_binary_path(path) or exclude(to_project_relative(path, root)):
                continue
            try:
                content = await read_text(path)
            except FileReadError as e:
                if stop_on_error:
                    raise
                logger.error("%s", e)
                continue

            lines = [d.line_index + 1 for d in find_directives(content)]
            if lines:
                results.append(FileWithSpells(path=path, spell_lines=lines))

    return results
