"""
Spells command - show the built-in spell catalog.
"""

from __future__ import annotations

from dataclasses import asdict

from spellcaster.cli.formatting.output import ConsoleOutput
from spellcaster.evaluator import get_available_spells


def run(json_output: bool = False) -> int:
    """Run the spells command."""
    console = ConsoleOutput()
    catalog = get_available_spells()

    if json_output:
        console.print_json([asdict(spell) for spell in catalog])
    else:
        console.print_catalog(catalog)
    return 0
