"""Diagnostic types for parsing and resolving.

Non-fatal notices raised while classifying lines or walking a thread.
Library code never prints them: they are handed to a callback and
collected so the CLI can decide how to show them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class DiagnosticKind(Enum):
    """Kinds of non-fatal notices."""

    UNRECOGNIZED_LINE = "unrecognized_line"
    AMBIGUOUS_PREDECESSOR = "ambiguous_predecessor"
    MISSING_BLOCK = "missing_block"
    MESSAGE_ID_RETRY = "message_id_retry"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal notice with enough context to act on.

    Attributes:
        kind: What happened.
        message: Human-readable description.
        source: Log file involved, if any.
        line: 1-based line number involved, if any.
        subject_id: Queue id or message-id involved, if any.
    """

    kind: DiagnosticKind
    message: str
    source: str | None = None
    line: int | None = None
    subject_id: str | None = None

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.source is not None and self.line is not None:
            return f"{self.source}:{self.line}: {self.message}"
        return self.message


DiagnosticCallback = Callable[[Diagnostic], None]


class DiagnosticLog:
    """Append-only list of diagnostics, usable as a callback.

    Example:
        >>> log = DiagnosticLog()
        >>> parse_shard(lines, on_diagnostic=log)
        >>> [d.kind for d in log]
        [<DiagnosticKind.UNRECOGNIZED_LINE: 'unrecognized_line'>]
    """

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []

    def __call__(self, diagnostic: Diagnostic) -> None:
        self._entries.append(diagnostic)

    def __iter__(self) -> Iterator[Diagnostic]:
        yield from self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        """Return the entries of one kind, in emission order."""
        return [d for d in self._entries if d.kind == kind]
