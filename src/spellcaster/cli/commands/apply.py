"""
Apply command - apply spells to distribution targets.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from spellcaster.cli.formatting.output import ConsoleOutput
from spellcaster.config.defaults import DIST_LIBS
from spellcaster.config.settings import SpellConfig
from spellcaster.errors import ConfigError, ConflictError, RunAbortedError, SpellError
from spellcaster.orchestrator import apply_spells


def expand_lib_option(targets: List[str], lib: Optional[str]) -> List[str]:
    """
    Rewrite a bare dist-libs target to dist-libs/<lib>.

    Raises:
        ConflictError: No bare dist-libs target, or a different library is also requested.
    """
    if not lib:
        return list(targets)

    normalized = [t.replace("\\", "/").rstrip("/") for t in targets]
    if DIST_LIBS not in normalized:
        raise ConflictError(
            f"--lib requires a bare '{DIST_LIBS}' target", target=f"{DIST_LIBS}/{lib}"
        )
    for target in normalized:
        if target.startswith(f"{DIST_LIBS}/") and target != f"{DIST_LIBS}/{lib}":
            raise ConflictError(
                f"--lib {lib} conflicts with target {target}", target=target
            )
    return [f"{DIST_LIBS}/{lib}" if t == DIST_LIBS else raw for raw, t in zip(targets, normalized)]


def parse_custom_paths(items: Optional[List[str]]) -> Dict[str, str]:
    """Parse NAME=PATH pairs."""
    paths: Dict[str, str] = {}
    for item in items or []:
        name, sep, path = item.partition("=")
        if not sep or not name.strip() or not path.strip():
            raise ConfigError(f"--custom-path expects NAME=PATH, got {item!r}")
        paths[name.strip()] = path.strip()
    return paths


async def run(
    targets: List[str],
    lib: Optional[str] = None,
    project_root: Optional[str] = None,
    concurrency: Optional[int] = None,
    target_concurrency: Optional[int] = None,
    batch_size: Optional[int] = None,
    stop_on_error: bool = False,
    no_copy: bool = False,
    custom_paths: Optional[List[str]] = None,
    json_output: bool = False,
) -> int:
    """Run the apply command."""
    console = ConsoleOutput()

    try:
        requested = expand_lib_option(targets, lib)
        config = SpellConfig.load(
            Path(project_root) if project_root else None,
            concurrency=concurrency,
            target_concurrency=target_concurrency,
            batch_size=batch_size,
            stop_on_error=True if stop_on_error else None,
            copy_from_source_before_processing=False if no_copy else None,
            custom_output_paths=parse_custom_paths(custom_paths) or None,
        )
        result = await apply_spells(requested, config=config)
    except RunAbortedError as e:
        if json_output:
            console.print_json({**e.result.to_dict(), "aborted": str(e.cause)})
        else:
            console.print_run_result(e.result)
            console.print_error(f"Run aborted: {e.cause}")
        return 1
    except SpellError as e:
        console.print_error(str(e))
        return 1

    if json_output:
        console.print_json(result.to_dict())
        return 0

    console.print_run_result(result)
    if result.errors:
        console.print_warning(f"{len(result.errors)} files failed")
    else:
        console.print_success("spells applied")
    return 0
