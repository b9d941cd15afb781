"""Events - What a single classified log line means.

This module defines the result type of the line classifier:
- EventKind: Enum of the three possible outcomes
- StructuredEvent: The classified line, with optional linkage fields
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventKind(Enum):
    """Outcome of classifying one log line.

    - TRANSACTION: Line belongs to a queue transaction (stored in its block)
    - IGNORABLE: Recognised chatter with nothing to trace (not stored)
    - UNRECOGNIZED: No known shape matched (not stored, reported)
    """

    TRANSACTION = "transaction"
    IGNORABLE = "ignorable"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class StructuredEvent:
    """A classified log line.

    Only TRANSACTION events carry an id. The linkage fields are set only
    when the particular line shape reveals them.

    Attributes:
        kind: The classification outcome.
        id: Queue id of the transaction the line belongs to.
        message_id: Message-Id header value assigned on this line.
        previous_id: Queue id this transaction was re-injected from.
        next_id: Queue id this transaction handed the mail over to.
    """

    kind: EventKind
    id: str | None = None
    message_id: str | None = None
    previous_id: str | None = None
    next_id: str | None = None

    @classmethod
    def transaction(
        cls,
        id: str,
        message_id: str | None = None,
        previous_id: str | None = None,
        next_id: str | None = None,
    ) -> StructuredEvent:
        """Build a TRANSACTION event."""
        return cls(EventKind.TRANSACTION, id, message_id, previous_id, next_id)

    @property
    def is_transaction(self) -> bool:
        return self.kind is EventKind.TRANSACTION

    @property
    def has_linkage(self) -> bool:
        """True if the line links this transaction to another one."""
        return self.previous_id is not None or self.next_id is not None


IGNORABLE = StructuredEvent(EventKind.IGNORABLE)
UNRECOGNIZED = StructuredEvent(EventKind.UNRECOGNIZED)
