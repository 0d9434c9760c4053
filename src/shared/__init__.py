"""Shared kernel: configuration, persistence, errors, actors and logging."""
