"""Yes/no confirmation for rebuilding the fingerprint cache."""

from __future__ import annotations

import typer


def y_or_n(prompt: str) -> bool:
    """Ask until the answer is ``y`` or ``n`` (any case)."""
    while True:
        answer = typer.prompt(f"{prompt} [y/n]", default="", show_default=False, prompt_suffix=" ")
        answer = answer.strip().lower()
        if answer in ("y", "n"):
            return answer == "y"
