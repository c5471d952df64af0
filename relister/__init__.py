"""Relister: source-marketplace discovery to destination-marketplace listing loop."""

__version__ = "0.3.0"
