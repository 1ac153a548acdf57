"""Background worker helpers."""
