"""Redaction helpers for tokens and secrets."""

from __future__ import annotations


def redact_secret(secret: str, visible: int) -> str:
    """Show only the first ``visible`` characters of ``secret`` followed by an ellipsis."""
    if len(secret) <= visible:
        return "****"
    return f"{secret[:visible]}…"