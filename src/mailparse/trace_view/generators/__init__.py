"""Generators for trace output formats."""

from mailparse.trace_view.generators.json import render_json
from mailparse.trace_view.generators.text import render_text

__all__ = ["render_json", "render_text"]
