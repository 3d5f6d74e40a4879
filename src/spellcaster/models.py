"""
Shared dataclasses for the spell engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from spellcaster.config.defaults import DIST_JSR, DIST_LIBS, DIST_NPM
from spellcaster.errors import SpellError


class TargetKind(Enum):
    """Output tree kinds."""
    PLAIN_NPM = DIST_NPM
    PLAIN_JSR = DIST_JSR
    MULTI_LIBRARY = DIST_LIBS
    CUSTOM = "custom"

    @property
    def is_plain(self) -> bool:
        return self in (TargetKind.PLAIN_NPM, TargetKind.PLAIN_JSR)


@dataclass(frozen=True)
class TargetSpec:
    """A requested target: "<kind>", "<kind>/<sub_name>" or a custom path."""
    raw: str
    name: str
    sub_name: Optional[str]
    kind: TargetKind

    @classmethod
    def parse(cls, raw: str) -> "TargetSpec":
        normalized = raw.strip().replace("\\", "/")
        name, _, sub_name = normalized.partition("/")
        try:
            kind = TargetKind(name)
        except ValueError:
            # custom targets keep their whole path
            return cls(raw=raw, name=normalized.rstrip("/"), sub_name=None, kind=TargetKind.CUSTOM)
        return cls(raw=raw, name=name, sub_name=sub_name or None, kind=kind)

    @property
    def label(self) -> str:
        return f"{self.name}/{self.sub_name}" if self.sub_name else self.name


@dataclass(frozen=True)
class ResolvedTarget:
    """A concrete output tree to process."""
    kind: TargetKind
    root: Path
    sub_name: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind is TargetKind.CUSTOM:
            return self.root.as_posix()
        return f"{self.kind.value}/{self.sub_name}" if self.sub_name else self.kind.value


@dataclass(frozen=True)
class SourceFile:
    """A source file holding at least one directive."""
    absolute_path: Path
    relative_path: str
    line_count: int


@dataclass(frozen=True)
class Directive:
    """One directive-shaped line."""
    line_index: int
    raw_line: str


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating one line."""
    remove_line: bool = False
    remove_file: bool = False
    replacement: Optional[str] = None


NO_OP = Outcome()


@dataclass(frozen=True)
class EvaluationContext:
    """Context passed to the evaluator; file_path is project-relative, slash-separated."""
    file_path: str


@dataclass
class FileOutcome:
    """What happened to one output file."""
    path: Path
    processed: bool
    removed: bool = False
    changed: bool = False
    spell_count: int = 0
    refreshed_from: Optional[Path] = None


@dataclass
class FileWithSpells:
    """A file containing spells and the 1-based lines they sit on."""
    path: Path
    spell_lines: List[int] = field(default_factory=list)


@dataclass
class RunResult:
    """Aggregated result of a run.

    processed_files and errors are append-only while the run is in progress;
    call freeze() once the run is done.
    """
    processed_files: List[Path] = field(default_factory=list)
    total_spells_processed: int = 0
    errors: List[SpellError] = field(default_factory=list)
    skipped_targets: List[str] = field(default_factory=list)
    _frozen: bool = field(default=False, repr=False, compare=False)

    def record(self, outcome: FileOutcome) -> None:
        self._check_open()
        if outcome.processed:
            self.processed_files.append(outcome.path)
            self.total_spells_processed += outcome.spell_count

    def record_error(self, error: SpellError) -> None:
        self._check_open()
        self.errors.append(error)

    def record_skip(self, label: str) -> None:
        self._check_open()
        self.skipped_targets.append(label)

    def merge(self, other: "RunResult") -> None:
        self._check_open()
        self.processed_files.extend(other.processed_files)
        self.total_spells_processed += other.total_spells_processed
        self.errors.extend(other.errors)
        self.skipped_targets.extend(other.skipped_targets)

    def freeze(self) -> "RunResult":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError("RunResult is frozen")

    def to_dict(self) -> dict:
        return {
            "processed_files": [str(p) for p in self.processed_files],
            "total_spells_processed": self.total_spells_processed,
            "errors": [str(e) for e in self.errors],
            "skipped_targets": list(self.skipped_targets),
        }


@dataclass(frozen=True)
class SpellInfo:
    """Catalog entry for a built-in spell."""
    name: str
    description: str
    example: str
    notes: Optional[str] = None

