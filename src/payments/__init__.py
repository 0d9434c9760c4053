"""Payments bounded context: provider adapters and callbacks."""
