"""Interactive input for keys and passwords.

Implements :class:`~symcrypt.core.protocols.InteractiveInputPort` on top
of questionary.  Secret prompts never echo the typed text.
"""

from __future__ import annotations

from typing import Any

from symcrypt.cli.console import console
from symcrypt.exceptions import EnvironmentError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


class QuestionaryInput:
    """Prompt the user at the terminal.

    Raises
    ------
    KeyboardInterrupt
        If the user cancels a prompt (Ctrl+C returns ``None``).
    """

    def prompt(self, message: str, *, secret: bool = False) -> str:
        questionary = _import_questionary()
        question = questionary.password(message) if secret else questionary.text(message)
        answer: str | None = question.ask()
        if answer is None:
            raise KeyboardInterrupt
        return answer

    def notify(self, message: str) -> None:
        console.print(f"[bold yellow]{message}[/bold yellow]")
