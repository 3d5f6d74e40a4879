"""
List command - inventory the spells under one or more directories.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from spellcaster.cli.formatting.output import ConsoleOutput
from spellcaster.config.defaults import DIST_LIBS
from spellcaster.config.settings import SpellConfig
from spellcaster.errors import SpellError
from spellcaster.scanner import ImplementationExclusion, find_files_with_spells


async def run(
    dirs: List[str],
    project_root: Optional[str] = None,
    json_output: bool = False,
) -> int:
    """Run the list command."""
    console = ConsoleOutput()

    try:
        config = SpellConfig.load(Path(project_root) if project_root else None)
        exclude = await ImplementationExclusion.build(config.output_root(DIST_LIBS))
        files = await find_files_with_spells(
            [Path(d) for d in dirs],
            project_root=config.project_root,
            stop_on_error=config.stop_on_error,
            exclude=exclude,
        )
    except SpellError as e:
        console.print_error(str(e))
        return 1

    if json_output:
        console.print_json([
            {"path": str(entry.path), "spell_lines": entry.spell_lines}
            for entry in files
        ])
    else:
        console.print_inventory(files)
    return 0
