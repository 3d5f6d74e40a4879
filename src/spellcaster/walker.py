"""Async depth-first tree walker."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AsyncIterator, List

import aiofiles.os

logger = logging.getLogger(__name__)


async def walk_tree(root: Path) -> AsyncIterator[Path]:
    """Yield every regular file under root, depth-first, in name order.

    Lazy and restartable: each call starts a fresh walk. Symlinked
    directories are not followed.

    Raises:
        OSError: If a directory cannot be listed.
    """
    try:
        entries = sorted(await aiofiles.os.scandir(root), key=lambda e: e.name)
    except OSError as e:
        logger.error("Error walking directory %s: %s", root, e)
        raise

    for entry in entries:
        path = Path(entry.path)
        if entry.is_dir(follow_symlinks=False):
            async for child in walk_tree(path):
                yield child
        elif entry.is_file():
            yield path


async def path_exists(path: Path) -> bool:
    return await aiofiles.os.path.exists(path)


async def is_directory(path: Path) -> bool:
    return await aiofiles.os.path.isdir(path)


async def list_subdirectories(path: Path) -> List[str]:
    """Names of the directories directly under path, sorted; [] if path is missing."""
    if not await aiofiles.os.path.isdir(path):
        return []
    names = await aiofiles.os.listdir(path)
    result: List[str] = []
    for name in sorted(names):
        if await aiofiles.os.path.isdir(os.path.join(path, name)):
            result.append(name)
    return result
