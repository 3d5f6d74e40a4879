"""Configuration for spellcaster."""

from spellcaster.config.settings import SpellConfig

__all__ = ["SpellConfig"]
