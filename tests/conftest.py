"""Pytest fixtures shared by the mailparse tests."""

import pytest


@pytest.fixture
def example_state():
    """State of a mail received as ABC123 and relayed to DEF456."""
    from tests.log_helpers import build_state, example_lines

    return build_state(*example_lines())


@pytest.fixture
def reinjection_state():
    """Mail passing through a content filter, then bounced.

    Structure:
        AAA111 (received, message-id)
        └── BBB222 (re-injected after filtering, links back with orig_queue_id)
            └── CCC333 (bounce notification)
    """
    from tests.log_helpers import (
        bounced,
        build_state,
        message_id,
        postfix,
        queue_active,
        received,
        reinjected,
    )

    return build_state(
        received("AAA111"),
        message_id("AAA111", "<filtered@example.com>"),
        queue_active("AAA111"),
        postfix(
            "smtp",
            "AAA111: to=<u@example.com>, relay=127.0.0.1[127.0.0.1]:10024, delay=0.2, "
            "delays=0.1/0/0/0.1, dsn=2.0.0, status=sent (250 2.0.0 from MTA(smtp:[127.0.0.1]:10025))",
        ),
        reinjected("BBB222", "AAA111"),
        message_id("BBB222", "<filtered@example.com>"),
        bounced("BBB222", "CCC333"),
        message_id("CCC333", "<bounce-1@mx1.example.com>"),
        queue_active("CCC333", sender=""),
    )


@pytest.fixture
def example_log(tmp_path):
    """The example mail written to a log file."""
    from tests.log_helpers import example_lines

    path = tmp_path / "mail.log"
    path.write_text("\n".join(example_lines()) + "\n", encoding="utf-8")
    return path
