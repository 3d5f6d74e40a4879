"""Command-line interface for spellcaster."""
