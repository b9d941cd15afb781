"""Parsers - Ordered line-shape matching.

This module provides the infrastructure for classifying log lines
with an ordered catalogue of shapes. Each shape is a regular
expression plus the role of the value it captures; the first shape
that matches wins, so more specific shapes must be registered before
the ones they overlap with.

Exports:
- Link: Role of the value captured by a shape
- LineShape: One recognised line shape
- ShapeCatalogue: Ordered collection of shapes
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class Link(Enum):
    """What the ``value`` group of a matched shape means.

    - NONE: The shape carries no linkage information
    - MESSAGE_ID: The value is the Message-Id header
    - PREVIOUS: The value is the queue id this transaction came from
    - NEXT: The value is the queue id this transaction handed over to
    """

    NONE = "none"
    MESSAGE_ID = "message_id"
    PREVIOUS = "previous_id"
    NEXT = "next_id"


@dataclass(frozen=True)
class LineShape:
    """A recognised shape of log message.

    Attributes:
        name: Short name used in tests and debugging output.
        pattern: Compiled expression, matched at the start of the text.
        link: Role of the ``value`` named group, if the shape has one.
    """

    name: str
    pattern: re.Pattern[str]
    link: Link = Link.NONE

    @classmethod
    def compile(cls, name: str, pattern: str, link: Link = Link.NONE) -> LineShape:
        """Build a shape from an uncompiled pattern."""
        compiled = re.compile(pattern, re.DOTALL)
        if link is not Link.NONE and "value" not in compiled.groupindex:
            raise ValueError(f"Shape '{name}' links {link.value} but has no 'value' group")
        return cls(name, compiled, link)

    def match(self, text: str) -> re.Match[str] | None:
        return self.pattern.match(text)


class ShapeCatalogue:
    """Ordered catalogue of line shapes.

    Shapes are tried in registration order and the first match wins.
    """

    def __init__(self, shapes: Iterable[LineShape] = ()) -> None:
        self.shapes: list[LineShape] = list(shapes)

    def register(self, shape: LineShape) -> None:
        """Append a shape after all the already registered ones."""
        if any(s.name == shape.name for s in self.shapes):
            raise ValueError(f"Shape '{shape.name}' is already registered")
        self.shapes.append(shape)

    def __iter__(self) -> Iterator[LineShape]:
        yield from self.shapes

    def __len__(self) -> int:
        return len(self.shapes)

    def names(self) -> list[str]:
        return [s.name for s in self.shapes]

    def first_match(self, text: str) -> tuple[LineShape, re.Match[str]] | None:
        """Find the first shape matching text.

        Args:
            text: The text to match, without trailing newline.

        Returns:
            The matching shape and its match object, or None.
        """
        for shape in self.shapes:
            match = shape.match(text)
            if match is not None:
                return shape, match
        return None


__all__ = [
    "Link",
    "LineShape",
    "ShapeCatalogue",
]
