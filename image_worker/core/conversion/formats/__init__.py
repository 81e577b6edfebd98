"""Per-format codec handlers."""
