"""Default configuration values for spellcaster.

This module centralizes the hard-coded defaults (concurrency caps, directory
conventions, directive markers) into a single location. All modules should
import these constants instead of hard-coding values.

Usage:
    from spellcaster.config.defaults import (
        DEFAULT_CONCURRENCY,
        DIST_NPM,
        DIRECTIVE_PREFIX,
    )
"""

from __future__ import annotations

# =============================================================================
# Run Defaults
# =============================================================================

DEFAULT_CONCURRENCY = 4  # files transformed in parallel within one target
DEFAULT_TARGET_CONCURRENCY = 3  # targets processed in parallel
DEFAULT_BATCH_SIZE = 100  # files per scheduling chunk
DEFAULT_STOP_ON_ERROR = False
DEFAULT_COPY_FROM_SOURCE = True


# =============================================================================
# Project Layout
# =============================================================================

DEFAULT_SOURCE_DIR = "src"
DEFAULT_LIBS_SOURCE_DIR = "libs"  # <source>/libs/<library>/...
DEFAULT_BIN_DIR = "bin"

# Built-in target kinds
DIST_NPM = "dist-npm"
DIST_JSR = "dist-jsr"
DIST_LIBS = "dist-libs"

BUILTIN_KINDS = (DIST_NPM, DIST_JSR, DIST_LIBS)

# Default on-disk roots for the built-in kinds (relative to the project root)
DEFAULT_OUTPUT_ROOTS = {
    DIST_NPM: DIST_NPM,
    DIST_JSR: DIST_JSR,
    DIST_LIBS: DIST_LIBS,
}

# Registry sub-trees a library may publish to
REGISTRY_NAMES = ("npm", "jsr")


# =============================================================================
# Directive Shape
# =============================================================================

DIRECTIVE_PREFIX = "dler-"

# Condition assumed by dler-replace-line-to when it has no `if` clause
DEFAULT_REPLACE_CONDITION = f"current file path starts with {DIST_JSR} or {DIST_NPM}"

# Implementation files of the spell engine itself are never treated as data
IMPLEMENTATION_FILE_STEMS = ("magic-apply", "magic-spells")
IMPLEMENTATION_DIR_SUFFIX = "sdk-impl/spell"
IMPLEMENTATION_FALLBACK_FRAGMENTS = ("/impl/spell/", "/sdk-impl/spell/")


# =============================================================================
# Binary Detection
# =============================================================================

BINARY_EXTENSIONS = frozenset({
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".avif",
    ".tif", ".tiff", ".psd",
    # fonts
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
    # archives
    ".zip", ".gz", ".tgz", ".bz2", ".xz", ".7z", ".rar", ".tar", ".zst",
    # media
    ".mp3", ".mp4", ".wav", ".ogg", ".webm", ".mov", ".avi", ".flac",
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    # compiled / native
    ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".class",
    ".wasm", ".node", ".pyc",
    # data
    ".db", ".sqlite", ".sqlite3", ".lockb",
})


# =============================================================================
# File Names
# =============================================================================

CONFIG_FILENAME = ".spellcaster.yaml"
ENV_FILENAME = ".env"
ENV_PREFIX = "SPELLCASTER_"
