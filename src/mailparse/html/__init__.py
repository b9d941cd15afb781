"""HTML output for traced messages.

This module provides a standalone HTML page view of a traced message.
"""

from mailparse.html.generator import HTMLGenerator

__all__ = ["HTMLGenerator"]
