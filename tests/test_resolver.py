"""Tests for graph/resolver.py - thread resolution."""

import pytest

from tests.log_helpers import (
    build_state,
    delivered,
    message_id,
    received,
    reinjected,
    relayed,
    removed,
)


def _shape(groups):
    """(id, depth) pairs of render groups, in display order."""
    return [(g.id, g.depth) for g in groups]


class TestLinkage:
    """Tests for the symmetric predecessor/successor relation."""

    def test_next_only(self):
        """A 'queued as' line alone links both ways."""
        from mailparse.graph.resolver import ThreadResolver

        resolver = ThreadResolver(build_state(relayed("AAA111", "BBB222"), removed("BBB222")))

        assert resolver.successors("AAA111") == ["BBB222"]
        assert resolver.predecessors("BBB222") == ["AAA111"]

    def test_previous_only(self):
        """An 'orig_queue_id' line alone links both ways."""
        from mailparse.graph.resolver import ThreadResolver

        resolver = ThreadResolver(build_state(removed("AAA111"), reinjected("BBB222", "AAA111")))

        assert resolver.successors("AAA111") == ["BBB222"]
        assert resolver.predecessors("BBB222") == ["AAA111"]

    def test_both_sides_same_tree(self):
        """One-sided and two-sided linkage resolve to the same tree."""
        from mailparse.graph.resolver import ThreadResolver

        forward = build_state(
            message_id("AAA111", "<m@x>"), relayed("AAA111", "BBB222"), removed("BBB222")
        )
        backward = build_state(
            message_id("AAA111", "<m@x>"), reinjected("BBB222", "AAA111")
        )
        both = build_state(
            message_id("AAA111", "<m@x>"),
            relayed("AAA111", "BBB222"),
            reinjected("BBB222", "AAA111"),
        )

        expected = [("AAA111", 0), ("BBB222", 1)]
        for state in (forward, backward, both):
            assert _shape(ThreadResolver(state).resolve("<m@x>")) == expected

    def test_unknown_id_has_no_links(self, example_state):
        from mailparse.graph.resolver import ThreadResolver

        resolver = ThreadResolver(example_state)

        assert resolver.predecessors("FFF000") == []
        assert resolver.successors("FFF000") == []


class TestFindRoot:
    """Tests for ThreadResolver.find_root()."""

    def test_root_of_descendant(self, reinjection_state):
        from mailparse.graph.resolver import ThreadResolver

        assert ThreadResolver(reinjection_state).find_root("CCC333") == "AAA111"

    def test_root_of_root(self, reinjection_state):
        from mailparse.graph.resolver import ThreadResolver

        assert ThreadResolver(reinjection_state).find_root("AAA111") == "AAA111"

    def test_unknown_predecessor_is_skipped(self):
        """A predecessor that never appeared in the logs is not a root."""
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(reinjected("BBB222", "AAA111"), message_id("BBB222", "<m@x>"))

        assert ThreadResolver(state).find_root("BBB222") == "BBB222"

    def test_cycle_rejected(self):
        from mailparse.graph.resolver import CycleError, ThreadResolver

        state = build_state(
            message_id("AAA111", "<m@x>"),
            relayed("AAA111", "BBB222"),
            relayed("BBB222", "AAA111"),
        )

        with pytest.raises(CycleError, match="found a loop involving transaction"):
            ThreadResolver(state).find_root("AAA111")

    def test_self_loop_rejected(self):
        from mailparse.graph.resolver import CycleError, ThreadResolver

        state = build_state(message_id("AAA111", "<m@x>"), relayed("AAA111", "AAA111"))

        with pytest.raises(CycleError):
            ThreadResolver(state).trace("<m@x>")

    def test_already_rendered_ancestor(self, reinjection_state):
        from mailparse.graph.resolver import InconsistentThreadError, ThreadResolver

        with pytest.raises(InconsistentThreadError) as exc_info:
            ThreadResolver(reinjection_state).find_root("BBB222", rendered={"AAA111"})

        assert exc_info.value.ancestor_id == "AAA111"
        assert exc_info.value.candidate_id == "BBB222"

    def test_ambiguous_predecessor_follows_smallest(self):
        """With several predecessors the smallest id is followed and reported."""
        from mailparse.graph.diagnostics import DiagnosticKind, DiagnosticLog
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(
            received("BBB222"),
            relayed("BBB222", "CCC333"),
            received("AAA111"),
            relayed("AAA111", "CCC333"),
            message_id("CCC333", "<m@x>"),
        )
        log = DiagnosticLog()

        root = ThreadResolver(state, on_diagnostic=log).find_root("CCC333")

        assert root == "AAA111"
        reported = log.of_kind(DiagnosticKind.AMBIGUOUS_PREDECESSOR)
        assert len(reported) == 1
        assert reported[0].subject_id == "CCC333"
        assert "AAA111, BBB222" in reported[0].message


class TestResolve:
    """Tests for ThreadResolver.resolve() ordering and coverage."""

    def test_example_thread(self, example_state):
        from mailparse.graph.resolver import ThreadResolver

        groups = ThreadResolver(example_state).resolve("<m@x>")

        assert _shape(groups) == [("ABC123", 0), ("DEF456", 1)]
        assert groups[0].predecessors == []
        assert groups[0].successors == ["DEF456"]
        assert groups[1].predecessors == ["ABC123"]
        assert groups[1].successors == []

    def test_group_lines_in_file_order(self, example_state):
        from mailparse.graph.resolver import ThreadResolver

        groups = ThreadResolver(example_state).resolve("<m@x>")

        assert groups[0].lines == example_state.block_lines(example_state.blocks["ABC123"])
        assert groups[1].lines[-1].endswith("DEF456: removed")

    def test_reinjection_chain(self, reinjection_state):
        from mailparse.graph.resolver import ThreadResolver

        groups = ThreadResolver(reinjection_state).resolve("<filtered@example.com>")

        assert _shape(groups) == [("AAA111", 0), ("BBB222", 1), ("CCC333", 2)]

    def test_bounce_found_by_its_own_message_id(self, reinjection_state):
        """The whole thread is shown from any of its message-ids."""
        from mailparse.graph.resolver import ThreadResolver

        groups = ThreadResolver(reinjection_state).resolve("<bounce-1@mx1.example.com>")

        assert _shape(groups) == [("AAA111", 0), ("BBB222", 1), ("CCC333", 2)]

    def test_unknown_message_id(self, example_state):
        from mailparse.graph.resolver import ThreadResolver

        assert ThreadResolver(example_state).resolve("<other@x>") is None

    def test_children_sorted_by_id(self):
        """Successors are visited smallest id first, depth-first."""
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(
            message_id("AAA111", "<m@x>"),
            relayed("AAA111", "CCC333"),
            relayed("AAA111", "BBB222"),
            relayed("BBB222", "DDD444"),
            removed("CCC333"),
            removed("DDD444"),
        )

        groups = ThreadResolver(state).resolve("<m@x>")

        assert _shape(groups) == [("AAA111", 0), ("BBB222", 1), ("DDD444", 2), ("CCC333", 1)]

    def test_each_block_rendered_once(self):
        """A block reachable twice (diamond) is rendered the first time only."""
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(
            message_id("AAA111", "<m@x>"),
            relayed("AAA111", "BBB222"),
            relayed("AAA111", "CCC333"),
            relayed("BBB222", "DDD444"),
            relayed("CCC333", "DDD444"),
            removed("DDD444"),
        )

        ids = [g.id for g in ThreadResolver(state).resolve("<m@x>")]

        assert ids == ["AAA111", "BBB222", "DDD444", "CCC333"]

    def test_second_root_after_ambiguity(self):
        """A predecessor not chosen as root is rendered as its own thread."""
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(
            message_id("CCC333", "<m@x>"),
            relayed("BBB222", "CCC333"),
            relayed("AAA111", "CCC333"),
            message_id("BBB222", "<m@x>"),
        )

        groups = ThreadResolver(state).resolve("<m@x>")

        assert _shape(groups) == [("AAA111", 0), ("CCC333", 1), ("BBB222", 0)]
        assert groups[2].successors == ["CCC333"]

    def test_unrelated_threads_ordered_by_first_line(self):
        """Independent threads of one message-id come out in log order."""
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(
            received("FFF000"),
            message_id("FFF000", "<m@x>"),
            delivered("FFF000"),
            received("AAA111"),
            message_id("AAA111", "<m@x>"),
            delivered("AAA111"),
        )

        groups = ThreadResolver(state).resolve("<m@x>")

        assert _shape(groups) == [("FFF000", 0), ("AAA111", 0)]

    def test_missing_block_reported(self):
        """A successor never seen in the logs is reported and skipped."""
        from mailparse.graph.diagnostics import DiagnosticKind, DiagnosticLog
        from mailparse.graph.resolver import ThreadResolver

        state = build_state(message_id("AAA111", "<m@x>"), relayed("AAA111", "BBB222"))
        log = DiagnosticLog()

        groups = ThreadResolver(state, on_diagnostic=log).resolve("<m@x>")

        assert _shape(groups) == [("AAA111", 0)]
        assert groups[0].successors == ["BBB222"]
        reported = log.of_kind(DiagnosticKind.MISSING_BLOCK)
        assert [d.subject_id for d in reported] == ["BBB222"]
        assert str(reported[0]) == "unable to find transaction BBB222 in the provided files"

    def test_resolve_is_repeatable(self, reinjection_state):
        """The state is not modified: resolving twice gives the same groups."""
        from mailparse.graph.resolver import ThreadResolver

        resolver = ThreadResolver(reinjection_state)
        first = resolver.resolve("<filtered@example.com>")
        second = resolver.resolve("<filtered@example.com>")

        assert first == second


class TestTrace:
    """Tests for ThreadResolver.trace() and its bracket fallback."""

    def test_exact_form(self, example_state):
        from mailparse.graph.diagnostics import DiagnosticLog
        from mailparse.graph.resolver import trace_message

        log = DiagnosticLog()
        result = trace_message("<m@x>", example_state, on_diagnostic=log)

        assert result.message_id == "<m@x>"
        assert result.queue_ids() == ["ABC123", "DEF456"]
        assert [g.id for g in result.roots()] == ["ABC123"]
        assert len(log) == 0

    def test_bracketed_fallback(self, example_state):
        from mailparse.graph.diagnostics import DiagnosticKind, DiagnosticLog
        from mailparse.graph.resolver import trace_message

        log = DiagnosticLog()
        result = trace_message("m@x", example_state, on_diagnostic=log)

        assert result.requested_id == "m@x"
        assert result.message_id == "<m@x>"
        assert result.queue_ids() == ["ABC123", "DEF456"]
        retries = log.of_kind(DiagnosticKind.MESSAGE_ID_RETRY)
        assert len(retries) == 1
        assert "'<m@x>'" in retries[0].message

    def test_unbracketed_fallback(self):
        """A bracketed request also finds an id logged without brackets."""
        from mailparse.graph.resolver import trace_message

        state = build_state(message_id("ABC123", "bare@x"), removed("ABC123"))

        assert trace_message("<bare@x>", state).message_id == "bare@x"

    def test_not_found(self, example_state):
        from mailparse.graph.resolver import MessageNotFoundError, TraceError, trace_message

        with pytest.raises(MessageNotFoundError) as exc_info:
            trace_message("nope@x", example_state)

        assert str(exc_info.value) == "found logs for neither 'nope@x' nor '<nope@x>'"
        assert exc_info.value.tried == ["nope@x", "<nope@x>"]
        assert isinstance(exc_info.value, TraceError)
        assert isinstance(exc_info.value, LookupError)

    def test_empty_state(self):
        from mailparse.graph.resolver import MessageNotFoundError, trace_message
        from mailparse.graph.state import TraceState

        with pytest.raises(MessageNotFoundError):
            trace_message("m@x", TraceState())


class TestResolveAndRender:
    """Tests for resolve_and_render()."""

    def test_renders_text(self, example_state):
        from mailparse.graph.resolver import resolve_and_render

        text = resolve_and_render("<m@x>", example_state)

        assert text is not None
        assert "[ ABC123, flowing into DEF456 ]" in text
        assert "[ DEF456, coming from ABC123 ]" in text

    def test_unknown_returns_none(self, example_state):
        """No bracket fallback is attempted."""
        from mailparse.graph.resolver import resolve_and_render

        assert resolve_and_render("m@x", example_state) is None

    def test_idempotent(self, reinjection_state):
        from mailparse.graph.resolver import resolve_and_render

        first = resolve_and_render("<filtered@example.com>", reinjection_state)
        second = resolve_and_render("<filtered@example.com>", reinjection_state)

        assert first == second
