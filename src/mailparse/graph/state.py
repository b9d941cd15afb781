"""Trace State - Partial and global parse results.

A TraceState is what one shard of log lines folds into, and also what
all shards merge into. Merging is a pure function so shards can be
parsed in any partition and combined in any order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from mailparse.graph.block import Block, LineRef
from mailparse.graph.diagnostics import Diagnostic


@dataclass
class TraceState:
    """Lines, blocks and message index of a set of log lines.

    Invariants:
        - every reference held by a block points at a stored line;
        - every queue id listed in the message index has a block.

    Attributes:
        lines: Source -> line number -> raw text (newline stripped).
        blocks: Queue id -> Block.
        message_ids: Message-id -> queue ids that carried it. The order
            of each list carries no meaning.
        unrecognized: Number of lines no shape matched.
        diagnostics: Notices raised while parsing.
    """

    lines: dict[str, dict[int, str]] = field(default_factory=dict)
    blocks: dict[str, Block] = field(default_factory=dict)
    message_ids: dict[str, list[str]] = field(default_factory=dict)
    unrecognized: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def store_line(self, ref: LineRef, text: str) -> None:
        """Store the raw text of a line."""
        self.lines.setdefault(ref.source, {})[ref.line] = text

    def line_text(self, ref: LineRef) -> str:
        """Return the stored text of a line.

        Raises:
            KeyError: If the line was never stored.
        """
        return self.lines[ref.source][ref.line]

    def upsert_block(self, queue_id: str) -> Block:
        """Return the block for a queue id, creating it on first sight."""
        block = self.blocks.get(queue_id)
        if block is None:
            block = Block(id=queue_id)
            self.blocks[queue_id] = block
        return block

    def index_message(self, message_id: str, queue_id: str) -> None:
        self.message_ids.setdefault(message_id, []).append(queue_id)

    def find_block(self, queue_id: str) -> Block | None:
        """Find a block by queue id.

        Returns:
            The matching Block, or None if the id never appeared.
        """
        return self.blocks.get(queue_id)

    def queue_ids_for(self, message_id: str) -> list[str]:
        """Queue ids that carried a message-id and have a block, deduplicated."""
        seen: list[str] = []
        for queue_id in self.message_ids.get(message_id, []):
            if queue_id in self.blocks and queue_id not in seen:
                seen.append(queue_id)
        return seen

    def block_lines(self, block: Block) -> list[str]:
        """Raw lines of a block, in file-and-line order."""
        return [self.line_text(ref) for ref in block.iter_refs()]

    def iter_blocks(self) -> Iterator[Block]:
        yield from self.blocks.values()

    def block_count(self) -> int:
        return len(self.blocks)

    def line_count(self) -> int:
        return sum(len(lines) for lines in self.lines.values())

    def sources(self) -> list[str]:
        return sorted(self.lines)

    def is_empty(self) -> bool:
        return not self.blocks and not self.lines and self.unrecognized == 0


def merge_states(a: TraceState, b: TraceState) -> TraceState:
    """Combine two partial states into a new one.

    Line stores union by (source, line); message-index lists concatenate;
    blocks union their reference and link sets; unrecognized counts add.
    Neither input is modified, and the result is the same (up to list
    order in the message index and diagnostics) whichever way round the
    arguments are given or however a set of states is grouped.

    Args:
        a: First partial state.
        b: Second partial state.

    Returns:
        A new TraceState.
    """
    lines: dict[str, dict[int, str]] = {source: dict(by_line) for source, by_line in a.lines.items()}
    for source, by_line in b.lines.items():
        lines.setdefault(source, {}).update(by_line)

    blocks: dict[str, Block] = {queue_id: block.copy() for queue_id, block in a.blocks.items()}
    for queue_id, block in b.blocks.items():
        existing = blocks.get(queue_id)
        blocks[queue_id] = existing.merged(block) if existing else block.copy()

    message_ids: dict[str, list[str]] = {mid: list(ids) for mid, ids in a.message_ids.items()}
    for mid, ids in b.message_ids.items():
        message_ids.setdefault(mid, []).extend(ids)

    return TraceState(
        lines=lines,
        blocks=blocks,
        message_ids=message_ids,
        unrecognized=a.unrecognized + b.unrecognized,
        diagnostics=a.diagnostics + b.diagnostics,
    )


def reduce_states(states: Iterable[TraceState]) -> TraceState:
    """Merge any number of partial states by pairwise tree reduction.

    Returns:
        The merged state, or an empty TraceState when there is no input.
    """
    level = list(states)
    if not level:
        return TraceState()
    while len(level) > 1:
        paired = [merge_states(level[i], level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2:
            paired.append(level[-1])
        level = paired
    return level[0]
