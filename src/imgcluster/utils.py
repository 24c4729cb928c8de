"""Shared utilities."""

from __future__ import annotations

import html


def escape_html(s: str) -> str:
    """HTML-escape a string for safe embedding in reports."""
    return html.escape(s)
