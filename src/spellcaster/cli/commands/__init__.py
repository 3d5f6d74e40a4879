"""Sub-command implementations; each exposes run() returning an exit code."""
