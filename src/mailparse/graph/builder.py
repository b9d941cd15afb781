"""Shard Builder - Folds classified log lines into a TraceState.

One builder handles one shard (a file, or a chunk of a file). It owns
its state exclusively, so shards can be built in parallel and merged
afterwards with merge_states().
"""

from __future__ import annotations

from typing import Iterable

from mailparse.graph.block import LineRef
from mailparse.graph.diagnostics import Diagnostic, DiagnosticCallback, DiagnosticKind
from mailparse.graph.events import EventKind
from mailparse.graph.parsers.postfix import PostfixClassifier
from mailparse.graph.state import TraceState

# (source, 1-based line number, raw text without line terminator)
ShardLine = tuple[str, int, str]


class ShardBuilder:
    """Incrementally builds the partial state of one shard.

    Only the first unrecognized line of a shard is reported; the rest
    are counted.

    Args:
        classifier: Line classifier to use. Defaults to PostfixClassifier().
        on_diagnostic: Called with each diagnostic as it is raised.
    """

    def __init__(
        self,
        classifier: PostfixClassifier | None = None,
        on_diagnostic: DiagnosticCallback | None = None,
    ) -> None:
        self.classifier = classifier or PostfixClassifier()
        self.on_diagnostic = on_diagnostic
        self._state = TraceState()

    def add_line(self, source: str, line_number: int, text: str) -> EventKind:
        """Classify one line and fold it into the state.

        Args:
            source: Identifier of the file the line comes from.
            line_number: 1-based line number in that file.
            text: Raw line text.

        Returns:
            The kind of event the line was classified as.
        """
        event = self.classifier.classify(text)

        if event.kind is EventKind.UNRECOGNIZED:
            self._state.unrecognized += 1
            if self._state.unrecognized == 1:
                self._report(
                    Diagnostic(
                        kind=DiagnosticKind.UNRECOGNIZED_LINE,
                        message=f"unable to parse line {line_number}: {text}",
                        source=source,
                        line=line_number,
                    )
                )
            return event.kind

        if event.kind is EventKind.IGNORABLE:
            return event.kind

        assert event.id is not None
        ref = LineRef(source, line_number)
        self._state.store_line(ref, text)
        block = self._state.upsert_block(event.id)
        block.add_ref(ref)
        if event.previous_id is not None:
            block.link_previous(event.previous_id)
        if event.next_id is not None:
            block.link_next(event.next_id)
        if event.message_id is not None:
            self._state.index_message(event.message_id, event.id)
        return event.kind

    def add_lines(self, lines: Iterable[ShardLine]) -> None:
        for source, line_number, text in lines:
            self.add_line(source, line_number, text)

    def _report(self, diagnostic: Diagnostic) -> None:
        self._state.diagnostics.append(diagnostic)
        if self.on_diagnostic is not None:
            self.on_diagnostic(diagnostic)

    def build(self) -> TraceState:
        """Return the state built so far."""
        return self._state


def parse_shard(
    lines: Iterable[ShardLine],
    classifier: PostfixClassifier | None = None,
    on_diagnostic: DiagnosticCallback | None = None,
) -> TraceState:
    """Parse one shard of log lines into a partial state.

    Args:
        lines: Ordered (source, line number, text) triples.
        classifier: Line classifier to use. Defaults to PostfixClassifier().
        on_diagnostic: Called with each diagnostic as it is raised.

    Returns:
        The shard's TraceState.
    """
    builder = ShardBuilder(classifier, on_diagnostic)
    builder.add_lines(lines)
    return builder.build()
