"""Thread Resolver - Turns a message-id into an ordered tree of blocks.

Hand-offs are recorded inconsistently by Postfix: sometimes only the
sending transaction logs the new queue id ("queued as"), sometimes only
the receiving one logs where it came from ("orig_queue_id"). The
resolver therefore treats previous/next ids as one symmetric relation:

    predecessors(X) = X.previous_ids | {Y : X in Y.next_ids}
    successors(X)   = X.next_ids     | {Y : X in Y.previous_ids}

Each thread is rendered from its root (found by walking predecessors)
in depth-first pre-order, successors sorted by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mailparse.graph.block import Block, sorted_ids
from mailparse.graph.diagnostics import Diagnostic, DiagnosticCallback, DiagnosticKind
from mailparse.graph.state import TraceState


class TraceError(Exception):
    """A message's thread could not be resolved."""


class CycleError(TraceError):
    """Walking predecessors came back to an already explored transaction."""

    def __init__(self, queue_id: str) -> None:
        super().__init__(f"found a loop involving transaction {queue_id}")
        self.queue_id = queue_id


class InconsistentThreadError(TraceError):
    """An ancestor was already rendered by an earlier thread but its descendant was not."""

    def __init__(self, ancestor_id: str, candidate_id: str) -> None:
        super().__init__(
            f"somehow already displayed ancestor {ancestor_id} but not its descendant {candidate_id}"
        )
        self.ancestor_id = ancestor_id
        self.candidate_id = candidate_id


class MessageNotFoundError(TraceError, LookupError):
    """No transaction carried the message-id, bare or bracketed."""

    def __init__(self, message_id: str, tried: list[str]) -> None:
        forms = " nor ".join(f"'{form}'" for form in tried)
        if len(tried) > 1:
            super().__init__(f"found logs for neither {forms}")
        else:
            super().__init__(f"found no logs for {forms}")
        self.message_id = message_id
        self.tried = tried


@dataclass
class RenderGroup:
    """One transaction of a resolved thread, ready to render.

    Attributes:
        block: The transaction's block.
        depth: Nesting level below the thread root (root = 0).
        predecessors: Sorted ids the transaction comes from.
        successors: Sorted ids the transaction flows into.
        lines: Raw lines of the block, in file-and-line order.
    """

    block: Block
    depth: int
    predecessors: list[str] = field(default_factory=list)
    successors: list[str] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.block.id


@dataclass
class TraceResult:
    """Outcome of tracing one message.

    Attributes:
        requested_id: The message-id as asked for.
        message_id: The form that was found (possibly bracketed).
        groups: Render groups in display order.
    """

    requested_id: str
    message_id: str
    groups: list[RenderGroup]

    def queue_ids(self) -> list[str]:
        return [g.id for g in self.groups]

    def roots(self) -> list[RenderGroup]:
        return [g for g in self.groups if g.depth == 0]


class ThreadResolver:
    """Resolves message threads against a fully merged TraceState.

    The state is only read. Inverse link indexes are built once on
    construction.

    Args:
        state: The global state.
        on_diagnostic: Called with ambiguous-predecessor and
            missing-block diagnostics.
    """

    def __init__(self, state: TraceState, on_diagnostic: DiagnosticCallback | None = None) -> None:
        self.state = state
        self.on_diagnostic = on_diagnostic
        self._pointed_by_next: dict[str, set[str]] = {}
        self._pointed_by_previous: dict[str, set[str]] = {}
        for block in state.iter_blocks():
            for next_id in block.next_ids:
                self._pointed_by_next.setdefault(next_id, set()).add(block.id)
            for previous_id in block.previous_ids:
                self._pointed_by_previous.setdefault(previous_id, set()).add(block.id)

    def predecessors(self, queue_id: str) -> list[str]:
        """Queue ids this transaction comes from, sorted."""
        block = self.state.find_block(queue_id)
        own = block.previous_ids if block else set()
        return sorted_ids(own | self._pointed_by_next.get(queue_id, set()))

    def successors(self, queue_id: str) -> list[str]:
        """Queue ids this transaction flows into, sorted."""
        block = self.state.find_block(queue_id)
        own = block.next_ids if block else set()
        return sorted_ids(own | self._pointed_by_previous.get(queue_id, set()))

    def find_root(self, queue_id: str, rendered: set[str] | None = None) -> str:
        """Walk predecessors back to the root of a thread.

        Predecessors without a block never appeared in the logs and are
        skipped. With several predecessors the smallest id is followed.

        Args:
            queue_id: Transaction to start from.
            rendered: Ids already rendered by earlier threads.

        Returns:
            The root queue id.

        Raises:
            CycleError: If the walk loops.
            InconsistentThreadError: If the walk reaches an already rendered id.
        """
        rendered = rendered if rendered is not None else set()
        current = queue_id
        explored: set[str] = set()
        while True:
            explored.add(current)
            known = [p for p in self.predecessors(current) if p in self.state.blocks]
            if not known:
                return current
            if len(known) > 1:
                self._report(
                    Diagnostic(
                        kind=DiagnosticKind.AMBIGUOUS_PREDECESSOR,
                        message=(
                            f"{current} has more than one predecessor "
                            f"({', '.join(known)}), output may look weird"
                        ),
                        subject_id=current,
                    )
                )
            parent = known[0]
            if parent in explored:
                raise CycleError(current)
            if parent in rendered:
                raise InconsistentThreadError(parent, queue_id)
            current = parent

    def resolve(self, message_id: str) -> list[RenderGroup] | None:
        """Resolve all threads of a message-id.

        Candidates are ordered by their earliest log line, then id, so
        unrelated threads of the same message come out reproducibly.

        Returns:
            Render groups in display order, or None if no transaction
            carried the message-id.
        """
        candidates = [self.state.blocks[q] for q in self.state.queue_ids_for(message_id)]
        if not candidates:
            return None
        candidates.sort(key=lambda b: (b.first_ref, b.id))

        visited: set[str] = set()
        groups: list[RenderGroup] = []
        for candidate in candidates:
            if candidate.id in visited:
                continue
            root = self.find_root(candidate.id, visited)
            self._walk(root, visited, groups)
        return groups

    def _walk(self, root: str, visited: set[str], groups: list[RenderGroup]) -> None:
        """Depth-first pre-order walk from root, appending to groups."""
        stack: list[tuple[str, int]] = [(root, 0)]
        while stack:
            queue_id, depth = stack.pop()
            if queue_id in visited:
                continue
            visited.add(queue_id)

            block = self.state.find_block(queue_id)
            if block is None:
                self._report(
                    Diagnostic(
                        kind=DiagnosticKind.MISSING_BLOCK,
                        message=f"unable to find transaction {queue_id} in the provided files",
                        subject_id=queue_id,
                    )
                )
                continue

            successors = self.successors(queue_id)
            groups.append(
                RenderGroup(
                    block=block,
                    depth=depth,
                    predecessors=self.predecessors(queue_id),
                    successors=successors,
                    lines=self.state.block_lines(block),
                )
            )
            # Reversed so the smallest id is popped first
            for successor in reversed(successors):
                stack.append((successor, depth + 1))

    def trace(self, message_id: str) -> TraceResult:
        """Resolve a message-id, retrying with or without angle brackets.

        Raises:
            MessageNotFoundError: If neither form is found.
            TraceError: If a thread of the message cannot be resolved.
        """
        tried = [message_id]
        groups = self.resolve(message_id)
        if groups is not None:
            return TraceResult(message_id, message_id, groups)

        alternate = _alternate_form(message_id)
        self._report(
            Diagnostic(
                kind=DiagnosticKind.MESSAGE_ID_RETRY,
                message=f"found no mail with the requested message-id, trying with '{alternate}'",
                subject_id=message_id,
            )
        )
        tried.append(alternate)
        groups = self.resolve(alternate)
        if groups is None:
            raise MessageNotFoundError(message_id, tried)
        return TraceResult(message_id, alternate, groups)

    def _report(self, diagnostic: Diagnostic) -> None:
        if self.on_diagnostic is not None:
            self.on_diagnostic(diagnostic)


def _alternate_form(message_id: str) -> str:
    """Bracketed form of a bare message-id, or bare form of a bracketed one."""
    if len(message_id) > 2 and message_id.startswith("<") and message_id.endswith(">"):
        return message_id[1:-1]
    return f"<{message_id}>"


def trace_message(
    message_id: str,
    state: TraceState,
    on_diagnostic: DiagnosticCallback | None = None,
) -> TraceResult:
    """Trace a message through a merged state. See ThreadResolver.trace()."""
    return ThreadResolver(state, on_diagnostic).trace(message_id)


def resolve_and_render(
    message_id: str,
    state: TraceState,
    on_diagnostic: DiagnosticCallback | None = None,
    color: bool = False,
) -> str | None:
    """Resolve the literal message-id and render it as framed text.

    No bracket fallback is attempted; callers wanting it use
    trace_message().

    Returns:
        The rendered text, or None if the message-id is unknown.
    """
    from mailparse.trace_view.generators.text import render_text

    groups = ThreadResolver(state, on_diagnostic).resolve(message_id)
    if groups is None:
        return None
    return render_text(groups, color=color)
