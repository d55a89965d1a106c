"""Interactive questions asked while collecting change descriptions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import click

from .errors import UserCancelled


class Prompter(Protocol):
    """Questions the collector asks. Any of them may raise UserCancelled."""

    def ask_choice(
        self, question: str, options: Sequence[tuple[str, str]], default: str | None = None
    ) -> str:
        """Ask the user to pick one of (value, label) options; return the value."""
        ...

    def ask_text(self, question: str) -> str: ...

    def ask_confirm(self, question: str, default: bool = True) -> bool: ...


class ClickPrompter:
    """Prompter that asks on the terminal through click."""

    def ask_choice(
        self, question: str, options: Sequence[tuple[str, str]], default: str | None = None
    ) -> str:
        values = [value for value, _ in options]
        click.echo(question)
        for index, (_, label) in enumerate(options, start=1):
            click.echo(f"  {index}) {label}")
        default_index = str(values.index(default) + 1) if default in values else None
        try:
            picked = click.prompt(
                "Select",
                type=click.IntRange(1, len(values)),
                default=default_index,
                show_default=default_index is not None,
            )
        except click.Abort:
            raise UserCancelled() from None
        return values[int(picked) - 1]

    def ask_text(self, question: str) -> str:
        try:
            return click.prompt(question, default="", show_default=False).strip()
        except click.Abort:
            raise UserCancelled() from None

    def ask_confirm(self, question: str, default: bool = True) -> bool:
        try:
            return click.confirm(question, default=default)
        except click.Abort:
            raise UserCancelled() from None
