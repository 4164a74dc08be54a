"""Aspects CLI — Typer-based command-line interface.

Provides the ``aspects`` command: add, remove, list, search, info, update,
init, validate, publish, unpublish, share, and account helpers.

All output uses Rich for formatted terminal display.
"""
