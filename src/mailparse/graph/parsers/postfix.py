"""PostfixClassifier - Classify syslog lines written by Postfix.

Every line is classified into one of three events:
- TRANSACTION: The line belongs to a queue id, possibly revealing its
  message-id or a hand-off to another queue id
- IGNORABLE: Recognised chatter that carries no queue id
- UNRECOGNIZED: Anything else

Line layout handled::

    Jan 10 00:00:00 mx1 postfix/smtp[123]: 3F2A1B: to=<a@b>, relay=...
    `-- 16 chars --'`host' `-- program -' `-id-'  `-- body --------'
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from mailparse.graph.events import IGNORABLE, UNRECOGNIZED, StructuredEvent
from mailparse.graph.parsers import LineShape, Link, ShapeCatalogue

# Fixed-width timestamp ("Jan 10 00:00:00 ") then host name up to the first space
TIMESTAMP_WIDTH = len("Jan 10 00:00:00 ")
_HEADER = re.compile(r".{%d}[^ ]* (?P<rest>.*)\Z" % TIMESTAMP_WIDTH, re.DOTALL)
_POSTFIX = re.compile(r"postfix[^ ]* (?P<message>.*)\Z", re.DOTALL)

SHORT_QUEUE_ID = r"[0-9A-F]+"
LONG_QUEUE_ID = r"[0-9A-Za-z]+"

# Programs sharing the mail log that never print a queue id
IGNORED_PROGRAMS = (
    "clamsmtp",
    "postlicyd",
)

# Postfix messages that do not start with a queue id
IGNORED_MESSAGES = (
    "Anonymous TLS connection established from ",
    "warning: ",
    "connect from ",
    "lost connection after ",
    "disconnect from ",
    "Untrusted TLS connection established to ",
    "Trusted TLS connection established to ",
    "connect to ",
    "Anonymous TLS connection established to ",
    "statistics: ",
    "NOQUEUE: ",
    "SSL_accept error from ",
    "Trusted TLS connection established from ",
    "Untrusted TLS connection established from ",
    "timeout after ",
    "improper command pipelining after ",
    "Verified TLS connection established to ",
    "too many errors ",
    "mapping DSN status ",
    "SSL_connect error to ",
)

_DELIVERY = (
    r"to=<[^>]*>(?:, orig_to=<[^>]*>)?, relay=[^,]*(?:, conn_use=[0-9]+)?"
    r", delay=[0-9.]+, delays=[0-9./]+, dsn=[0-9.]+, status=[^ ]* \("
)

# (name, pattern, link). {id} is replaced by the queue id alphabet.
# Order matters: the first matching shape wins.
BODY_SHAPES: tuple[tuple[str, str, Link], ...] = (
    ("removed", r"removed\Z", Link.NONE),
    ("pix-workarounds", r"enabling PIX workarounds: ", Link.NONE),
    ("lost-connection", r"lost connection with ", Link.NONE),
    ("discard", r"discard: ", Link.NONE),
    ("reject", r"reject: ", Link.NONE),
    ("filter", r"filter: ", Link.NONE),
    ("tls-failure", r"Cannot start TLS: ", Link.NONE),
    ("conversation", r"conversation with ", Link.NONE),
    ("pickup", r"uid=[0-9]+ from=<[^>]*>\Z", Link.NONE),
    ("queue-active", r"from=<[^>]*>, size=[0-9]+, nrcpt=[0-9]+ \(queue active\)\Z", Link.NONE),
    ("returned", r"from=<[^>]*>, status=[^,]*, returned to sender", Link.NONE),
    ("client", r"client=[A-Za-z0-9.:\-\[\]]+\Z", Link.NONE),
    (
        "client-sasl",
        r"client=[^,]*, sasl_method=[^,]*, sasl_username=[A-Za-z0-9.\-@]+\Z",
        Link.NONE,
    ),
    ("remote-reply", r"host [^ ]* (?:said: |refused to talk to me: )", Link.NONE),
    ("message-id", r"(?:resent-)?message-id=(?P<value>.*)\Z", Link.MESSAGE_ID),
    ("bounce", r"sender non-delivery notification: (?P<value>{id})\Z", Link.NEXT),
    ("dsn-notice", r"sender delivery status notification: (?P<value>{id})\Z", Link.NEXT),
    ("delay-notice", r"sender delay notification: (?P<value>{id})\Z", Link.NEXT),
    (
        "reinjected",
        r"client=[^,]*, orig_queue_id=(?P<value>{id}), orig_client=[A-Za-z0-9.\-\[\]]+\Z",
        Link.PREVIOUS,
    ),
    (
        "relayed",
        _DELIVERY + r"(?:forwarded as |250 2\.0\.0 Ok: queued as )(?P<value>{id})\)\Z",
        Link.NEXT,
    ),
    ("delivery", _DELIVERY, Link.NONE),
)


def _as_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value else []
    return [str(v) for v in value]


def build_body_catalogue(queue_id: str = SHORT_QUEUE_ID) -> ShapeCatalogue:
    """Build the catalogue of shapes following a leading queue id.

    Args:
        queue_id: Regular expression for the queue id alphabet.

    Returns:
        ShapeCatalogue in precedence order.
    """
    catalogue = ShapeCatalogue()
    for name, pattern, link in BODY_SHAPES:
        catalogue.register(LineShape.compile(name, pattern.replace("{id}", queue_id), link))
    return catalogue


class PostfixClassifier:
    """Classifier for Postfix mail log lines.

    Stateless once built; ``classify`` never raises.

    Args:
        long_queue_ids: Accept Postfix long (alphanumeric) queue ids
            instead of the default upper-case hexadecimal ones.
        ignored_programs: Extra program names whose lines are ignorable.
        ignored_messages: Extra Postfix message prefixes that are ignorable.
    """

    def __init__(
        self,
        long_queue_ids: bool = False,
        ignored_programs: Iterable[str] = (),
        ignored_messages: Iterable[str] = (),
    ) -> None:
        self.long_queue_ids = long_queue_ids
        self.ignored_programs = IGNORED_PROGRAMS + tuple(ignored_programs)
        self.ignored_messages = IGNORED_MESSAGES + tuple(ignored_messages)
        queue_id = LONG_QUEUE_ID if long_queue_ids else SHORT_QUEUE_ID
        self._leading_id = re.compile(r"(?P<id>%s): (?P<body>.*)\Z" % queue_id, re.DOTALL)
        self.catalogue = build_body_catalogue(queue_id)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> PostfixClassifier:
        """Create a classifier from the ``[parser]`` section of a config."""
        parser_config = config.get("parser", {})
        return cls(
            long_queue_ids=bool(parser_config.get("long_queue_ids", False)),
            ignored_programs=_as_list(parser_config.get("ignored_programs", [])),
            ignored_messages=_as_list(parser_config.get("ignored_messages", [])),
        )

    def classify(self, line: str) -> StructuredEvent:
        """Classify one raw log line.

        Args:
            line: The raw line; a trailing line terminator is tolerated.

        Returns:
            The StructuredEvent for the line.
        """
        header = _HEADER.match(line.rstrip("\r\n"))
        if header is None:
            return UNRECOGNIZED
        rest = header.group("rest")

        if rest.startswith(self.ignored_programs):
            return IGNORABLE

        postfix = _POSTFIX.match(rest)
        if postfix is None:
            return UNRECOGNIZED
        message = postfix.group("message")

        if message.startswith(self.ignored_messages):
            return IGNORABLE

        leading = self._leading_id.match(message)
        if leading is None:
            return UNRECOGNIZED

        found = self.catalogue.first_match(leading.group("body"))
        if found is None:
            return UNRECOGNIZED
        shape, match = found

        fields: dict[str, str] = {}
        if shape.link is not Link.NONE:
            fields[shape.link.value] = match.group("value")
        return StructuredEvent.transaction(leading.group("id"), **fields)


_default_classifier: PostfixClassifier | None = None


def classify(line: str) -> StructuredEvent:
    """Classify a line with the default Postfix classifier."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = PostfixClassifier()
    return _default_classifier.classify(line)
