"""Reverie: budgeted, quality-guarded guided relaxation script generation."""

__version__ = "0.1.0"
