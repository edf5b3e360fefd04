"""Guestbook CLI — Typer-based command-line interface.

Provides the ``guestbook`` command with subcommands for decoding payloads,
running the multi-chain demo, replaying bootstrap files and listing
indexed signatures.

All output uses Rich for formatted terminal display.
"""
