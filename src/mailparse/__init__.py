"""
mailparse - Follow a mail through Postfix logs

Give it a message-id and it finds every Postfix queue transaction that
carried the message, follows the hand-offs between them (content filter
re-injection, bounces, relaying) and prints the resulting thread as a
tree of framed log excerpts.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mailparse")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from mailparse.graph import (
    Block,
    Diagnostic,
    DiagnosticKind,
    EventKind,
    LineRef,
    StructuredEvent,
    TraceState,
    merge_states,
)
from mailparse.graph.builder import ShardBuilder, parse_shard
from mailparse.graph.parsers.postfix import PostfixClassifier, classify
from mailparse.graph.resolver import (
    CycleError,
    InconsistentThreadError,
    MessageNotFoundError,
    ThreadResolver,
    TraceError,
    resolve_and_render,
    trace_message,
)

__all__ = [
    "__version__",
    "Block",
    "CycleError",
    "Diagnostic",
    "DiagnosticKind",
    "EventKind",
    "InconsistentThreadError",
    "LineRef",
    "MessageNotFoundError",
    "PostfixClassifier",
    "ShardBuilder",
    "StructuredEvent",
    "ThreadResolver",
    "TraceError",
    "TraceState",
    "classify",
    "merge_states",
    "parse_shard",
    "resolve_and_render",
    "trace_message",
]
