"""
Target validation and resolution.

Validation is a pure pass over the requested list plus existence checks for
custom directories. Built-in roots may be missing (not built yet); those are
skipped later rather than rejected here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Set

from spellcaster.config.settings import SpellConfig
from spellcaster.errors import ConflictError, NotFoundError
from spellcaster.models import ResolvedTarget, TargetKind, TargetSpec
from spellcaster.walker import list_subdirectories

logger = logging.getLogger(__name__)


class TargetValidator:
    """Reject conflicting target lists and resolve specs into output trees."""

    def __init__(self, config: SpellConfig):
        self.config = config

    def validate(self, targets: Iterable[str]) -> List[TargetSpec]:
        """
        Validate the requested targets in order.

        Returns:
            Parsed specs, in request order.

        Raises:
            ConflictError: Duplicates, bare/specific library mixes, malformed specs.
            NotFoundError: A custom target directory does not exist.
        """
        specs: List[TargetSpec] = []
        seen_kinds: Set[TargetKind] = set()
        seen_custom: Set[Path] = set()
        specific_libs: Set[str] = set()
        bare_libs = False

        for raw in targets:
            spec = TargetSpec.parse(raw)
            if not spec.name:
                raise ConflictError(f"Invalid output target: {raw!r}", target=raw)

            if spec.kind is TargetKind.CUSTOM:
                root = self.config.output_root(spec.name)
                # spellings of one directory count as one target
                resolved = root.resolve()
                if resolved in seen_custom:
                    raise ConflictError(f"Duplicate custom target: {spec.name}", target=raw)
                seen_custom.add(resolved)
                if not root.is_dir():
                    raise NotFoundError(f"Output directory does not exist: {root}", path=root)

            elif spec.kind is TargetKind.MULTI_LIBRARY:
                if spec.sub_name:
                    if bare_libs:
                        raise ConflictError(
                            f"Cannot mix '{spec.name}' with specific library targets",
                            target=raw,
                        )
                    if spec.sub_name in specific_libs:
                        raise ConflictError(f"Duplicate library target: {spec.label}", target=raw)
                    specific_libs.add(spec.sub_name)
                else:
                    if bare_libs:
                        raise ConflictError(f"Duplicate output target: {spec.name}", target=raw)
                    if specific_libs:
                        raise ConflictError(
                            f"Cannot mix '{spec.name}' with specific library targets",
                            target=raw,
                        )
                    bare_libs = True

            else:
                if spec.sub_name:
                    raise ConflictError(
                        f"Target '{spec.name}' does not accept a sub-target: {raw}",
                        target=raw,
                    )
                if spec.kind in seen_kinds:
                    raise ConflictError(f"Duplicate output target: {spec.name}", target=raw)
                seen_kinds.add(spec.kind)

            specs.append(spec)

        return specs

    async def resolve(self, spec: TargetSpec) -> List[ResolvedTarget]:
        """Expand a validated spec into zero or more concrete output trees."""
        root = self.config.output_root(spec.name)

        if spec.kind is TargetKind.MULTI_LIBRARY:
            if spec.sub_name:
                return [ResolvedTarget(kind=spec.kind, root=root, sub_name=spec.sub_name)]
            libraries = await list_subdirectories(root)
            if not libraries:
                logger.info("[spells] no libraries found under %s", root)
            return [
                ResolvedTarget(kind=spec.kind, root=root, sub_name=lib)
                for lib in libraries
            ]

        return [ResolvedTarget(kind=spec.kind, root=root)]


def library_root(target: ResolvedTarget) -> Path:
    """On-disk directory for one library of a multi-library target."""
    return target.root / target.sub_name if target.sub_name else target.root
