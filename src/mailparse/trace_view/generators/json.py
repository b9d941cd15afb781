"""
mailparse.trace_view.generators.json - JSON output.

Provides a machine-readable dump of a traced message for tooling.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mailparse.graph.resolver import TraceResult


def trace_to_dict(result: TraceResult) -> dict[str, Any]:
    """Convert a TraceResult to plain JSON-compatible data."""
    transactions = []
    for group in result.groups:
        transactions.append(
            {
                "id": group.id,
                "depth": group.depth,
                "coming_from": group.predecessors,
                "flowing_into": group.successors,
                "lines": [
                    {"source": ref.source, "line": ref.line, "text": text}
                    for ref, text in zip(group.block.iter_refs(), group.lines)
                ],
            }
        )
    return {
        "requested_message_id": result.requested_id,
        "message_id": result.message_id,
        "transactions": transactions,
    }


def render_json(result: TraceResult, indent: int = 2) -> str:
    """Render a TraceResult as a JSON document."""
    return json.dumps(trace_to_dict(result), indent=indent, ensure_ascii=False) + "\n"
