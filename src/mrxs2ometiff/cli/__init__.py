"""Command-line interface for mrxs2ometiff."""

from __future__ import annotations

from mrxs2ometiff.cli.main import LogFormat, app, main

__all__ = ["LogFormat", "app", "main"]
