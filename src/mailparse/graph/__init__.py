"""Graph module - Core data structures of a mail trace.

Exports:
- EventKind: Enum of line classification outcomes
- StructuredEvent: A classified log line
- LineRef: Portable reference to a stored log line
- Block: Lines and links of one queue transaction
- TraceState: Partial or global parse result
- merge_states: Pure combination of two TraceStates
- reduce_states: Tree reduction of any number of TraceStates
- Diagnostic / DiagnosticKind / DiagnosticLog: Non-fatal notices

Note: ThreadResolver is in mailparse.graph.resolver, parse_shard in
mailparse.graph.builder and load_state in mailparse.graph.factory.
"""

from mailparse.graph.block import Block, LineRef
from mailparse.graph.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLog
from mailparse.graph.events import EventKind, StructuredEvent
from mailparse.graph.state import TraceState, merge_states, reduce_states

__all__ = [
    "EventKind",
    "StructuredEvent",
    "LineRef",
    "Block",
    "TraceState",
    "merge_states",
    "reduce_states",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticLog",
]
