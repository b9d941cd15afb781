"""
mailparse.trace_view - Output formats for a traced message.

Generators turn the render groups produced by the ThreadResolver into
text, JSON or (with the html extra) HTML.
"""
