"""
Output formatting with Rich console.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from spellcaster.models import FileWithSpells, RunResult, SpellInfo


# Custom theme for the spellcaster CLI
custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "success": "green",
})


class ConsoleOutput:
    """Console output with Rich formatting."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(theme=custom_theme)

    def print(self, text: str = "", **kwargs):
        """Print text to console."""
        self.console.print(text, **kwargs)

    # message text is plain, never markup
    def print_error(self, text: str):
        self.console.print(f"[error]Error:[/error] {escape(text)}")

    def print_success(self, text: str):
        self.console.print(f"[success]Success:[/success] {escape(text)}")

    def print_warning(self, text: str):
        self.console.print(f"[warning]Warning:[/warning] {escape(text)}")

    def print_info(self, text: str):
        self.console.print(f"[info]Info:[/info] {escape(text)}")

    def print_dim(self, text: str):
        self.console.print(f"[dim]{escape(text)}[/dim]")

    def print_json(self, data: Any):
        """Print data as JSON, unstyled so it stays machine-readable."""
        self.console.print_json(json.dumps(data))

    def print_run_result(self, result: RunResult):
        """Summarise a run: counts, skipped targets and per-file errors."""
        self.console.print(
            f"[bold]Processed {result.total_spells_processed} spells "
            f"in {len(result.processed_files)} files[/bold]"
        )
        for label in result.skipped_targets:
            self.print_dim(f"skipped missing target: {label}")
        for error in result.errors:
            self.print_error(str(error))

    def print_inventory(self, files: List[FileWithSpells]):
        """Table of files holding spells and the lines they sit on."""
        if not files:
            self.print_info("No spells found")
            return
        table = Table(title="Files with spells")
        table.add_column("File", style="info")
        table.add_column("Lines", justify="right")
        for entry in files:
            table.add_row(escape(str(entry.path)), ", ".join(str(n) for n in entry.spell_lines))
        self.console.print(table)

    def print_catalog(self, spells: List[SpellInfo]):
        """Table of built-in spells."""
        table = Table(title="Available spells", show_lines=True)
        table.add_column("Spell", style="success", no_wrap=True)
        table.add_column("Description")
        table.add_column("Example", style="dim")
        for spell in spells:
            description = escape(spell.description)
            if spell.notes:
                description = f"{description}\n[dim]{escape(spell.notes)}[/dim]"
            table.add_row(escape(spell.name), description, escape(spell.example))
        self.console.print(table)
