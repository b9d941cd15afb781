"""Block - Everything known about one Postfix queue transaction.

This module provides the per-transaction data structures:
- LineRef: Portable reference to a stored log line
- Block: Aggregated lines and hand-off links of one queue id
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator


@dataclass(frozen=True, order=True)
class LineRef:
    """Reference to a line in a log file.

    Ordered by source first, then line number, which is the order
    lines of a block are displayed in.
    """

    source: str  # Path of the log file as given on the command line
    line: int  # 1-based line number

    def __str__(self) -> str:
        """Return string representation for display."""
        return f"{self.source}:{self.line}"


@dataclass
class Block:
    """All lines and links of one queue transaction.

    Blocks are only ever grown: references and link sets are unioned,
    never replaced. A block exists only once at least one line has been
    attributed to it.

    Attributes:
        id: The Postfix queue id.
        refs: Lines in which this queue id appears.
        previous_ids: Queue ids this transaction was produced from.
        next_ids: Queue ids this transaction produced.
    """

    id: str
    refs: set[LineRef] = field(default_factory=set)
    previous_ids: set[str] = field(default_factory=set)
    next_ids: set[str] = field(default_factory=set)

    def add_ref(self, ref: LineRef) -> None:
        """Attribute a stored line to this block."""
        self.refs.add(ref)

    def link_previous(self, queue_id: str) -> None:
        self.previous_ids.add(queue_id)

    def link_next(self, queue_id: str) -> None:
        self.next_ids.add(queue_id)

    def iter_refs(self) -> Iterator[LineRef]:
        """Iterate line references in file-and-line order."""
        yield from sorted(self.refs)

    @property
    def first_ref(self) -> LineRef:
        """Earliest line reference of this block."""
        return min(self.refs)

    def ref_count(self) -> int:
        return len(self.refs)

    def merged(self, other: Block) -> Block:
        """Return a new block holding the union of both blocks.

        Args:
            other: A block for the same queue id.

        Returns:
            A fresh Block; neither input is modified.

        Raises:
            ValueError: If the blocks describe different queue ids.
        """
        if other.id != self.id:
            raise ValueError(f"Cannot merge block '{other.id}' into block '{self.id}'")
        return Block(
            id=self.id,
            refs=self.refs | other.refs,
            previous_ids=self.previous_ids | other.previous_ids,
            next_ids=self.next_ids | other.next_ids,
        )

    def copy(self) -> Block:
        return Block(
            id=self.id,
            refs=set(self.refs),
            previous_ids=set(self.previous_ids),
            next_ids=set(self.next_ids),
        )


def sorted_ids(ids: Iterable[str]) -> list[str]:
    """Deduplicate and sort queue ids for reproducible output."""
    return sorted(set(ids))
