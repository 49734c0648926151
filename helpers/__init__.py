"""Shared helpers: period arithmetic and progress tracking."""
