"""
mailparse.trace_view.generators.text - Framed text output.

Each transaction is printed as a box holding its raw log lines, indented
by its depth in the thread::

      ┌─[ ABC123 ]──────────────────┐
      │ Jan 10 00:00:00 mx postfix… │
      └─[ ABC123, flowing into DEF456 ]─┘
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from mailparse.graph.resolver import RenderGroup

BOLD = "\033[1m"
RESET = "\033[0m"


def _title(queue_id: str, suffix: str, width: int, color: bool) -> str:
    """Build a rule title ``[ ID, suffix ]`` padded with rules to width."""
    plain = f"[ {queue_id}{suffix} ]"
    padding = "─" * max(width - len(plain), 0)
    if color:
        return f"[ {BOLD}{queue_id}{RESET}{suffix} ]{padding}"
    return plain + padding


def render_group(group: RenderGroup, indent: int, color: bool = False) -> list[str]:
    """Render one transaction as a framed box.

    Args:
        group: The transaction to render.
        indent: Number of spaces before the frame.
        color: Emit ANSI bold for the queue id.

    Returns:
        Output lines, without trailing newlines.
    """
    pad = " " * indent
    width = max((len(line) for line in group.lines), default=0)

    header = f", coming from {', '.join(group.predecessors)}" if group.predecessors else ""
    footer = f", flowing into {', '.join(group.successors)}" if group.successors else ""

    out = [f"{pad}┌─{_title(group.id, header, width, color)}─┐"]
    for line in group.lines:
        out.append(f"{pad}│ {line:<{width}} │")
    out.append(f"{pad}└─{_title(group.id, footer, width, color)}─┘")
    return out


def render_text(
    groups: Iterable[RenderGroup],
    color: bool = False,
    indent: int = 2,
    indent_step: int = 4,
) -> str:
    """Render a resolved thread as framed text.

    Every box is preceded by an empty line. Width is computed per box.

    Args:
        groups: Render groups in display order.
        color: Emit ANSI bold for queue ids.
        indent: Indentation of thread roots.
        indent_step: Extra indentation per level of depth.

    Returns:
        The rendered text, ending with a newline.
    """
    out: list[str] = []
    for group in groups:
        out.append("")
        out.extend(render_group(group, indent + group.depth * indent_step, color))
    return "\n".join(out) + "\n" if out else ""
