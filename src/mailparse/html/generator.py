"""HTML Generator for traced messages.

This module renders a traced message as a standalone HTML page.
Uses Jinja2 templates (install the ``html`` extra).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from mailparse import __version__

if TYPE_CHECKING:
    from mailparse.graph.resolver import TraceResult


@dataclass
class BoxRow:
    """One transaction box on the page."""

    id: str
    depth: int
    coming_from: list[str]
    flowing_into: list[str]
    lines: list[tuple[str, str]]  # (location, text)


class HTMLGenerator:
    """Generates an HTML view of a traced message.

    Args:
        result: The traced message.
        version: Version string for display (defaults to the package version).
    """

    def __init__(self, result: TraceResult, version: str | None = None) -> None:
        self.result = result
        self.version = version if version is not None else __version__

    def build_rows(self) -> list[BoxRow]:
        """Flatten the render groups into template rows."""
        rows = []
        for group in self.result.groups:
            rows.append(
                BoxRow(
                    id=group.id,
                    depth=group.depth,
                    coming_from=group.predecessors,
                    flowing_into=group.successors,
                    lines=[(str(ref), text) for ref, text in zip(group.block.iter_refs(), group.lines)],
                )
            )
        return rows

    def generate(self) -> str:
        """Generate the complete HTML document.

        Returns:
            Complete HTML document as string.

        Raises:
            ImportError: If Jinja2 is not installed.
        """
        try:
            from jinja2 import Environment, PackageLoader, select_autoescape

            env = Environment(
                loader=PackageLoader("mailparse.html", "templates"),
                autoescape=select_autoescape(["html", "xml", "j2"]),
                trim_blocks=True,
                lstrip_blocks=True,
            )
            template = env.get_template("thread_view.html.j2")
        except ImportError:
            raise ImportError(
                "HTMLGenerator requires the html extra. Install with: pip install mailparse[html]"
            )

        return template.render(
            message_id=self.result.message_id,
            requested_id=self.result.requested_id,
            rows=self.build_rows(),
            version=self.version,
            generated=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        )
