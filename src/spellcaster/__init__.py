"""
Spellcaster - directive-driven source-to-distribution transformer.

Source files carry "spells" (comments like ``// <dler-remove-line>``). After a
build has produced distribution trees, the spells are applied to the
generated copies of those files.
"""

from spellcaster.config import SpellConfig
from spellcaster.errors import (
    ConfigError,
    ConflictError,
    DirectiveEvaluationError,
    FileProcessingError,
    FileReadError,
    FileWriteError,
    NotFoundError,
    RunAbortedError,
    SpellError,
)
from spellcaster.evaluator import Evaluator, evaluate_spell, get_available_spells
from spellcaster.models import (
    EvaluationContext,
    FileWithSpells,
    Outcome,
    RunResult,
    SpellInfo,
)
from spellcaster.orchestrator import SpellRun, apply_spells
from spellcaster.scanner import find_files_with_spells

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "ConflictError",
    "DirectiveEvaluationError",
    "EvaluationContext",
    "Evaluator",
    "FileProcessingError",
    "FileReadError",
    "FileWithSpells",
    "FileWriteError",
    "NotFoundError",
    "Outcome",
    "RunAbortedError",
    "RunResult",
    "SpellConfig",
    "SpellError",
    "SpellInfo",
    "SpellRun",
    "apply_spells",
    "evaluate_spell",
    "find_files_with_spells",
    "get_available_spells",
]
