"""Backend REST access."""
