"""Operator prompt port.

SafetyGate and the interactive loop only ever read a line and write text,
so a terminal can be swapped for a scripted source.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from rich.console import Console


class PromptPort(Protocol):
    def read_line(self, prompt: str = "") -> str | None:
        """One line of input without the newline, or None at end of input."""
        ...

    def write(self, text: str) -> None: ...


class ConsolePrompt:
    """Reads from the terminal through a rich Console."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def read_line(self, prompt: str = "") -> str | None:
        try:
            return self.console.input(prompt)
        except EOFError:
            return None

    def write(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)


class ScriptedPrompt:
    """Replays canned answers; used by unattended callers and tests."""

    def __init__(self, answers: Iterable[str] = ()):
        self._answers = list(answers)
        self.prompts: list[str] = []
        self.output: list[str] = []

    def read_line(self, prompt: str = "") -> str | None:
        self.prompts.append(prompt)
        if not self._answers:
            return None
        return self._answers.pop(0)

    def write(self, text: str) -> None:
        self.output.append(text)

    @property
    def remaining(self) -> int:
        return len(self._answers)


def confirm(port: PromptPort, question: str, default: bool) -> bool:
    """Yes/no question; empty input or end of input picks *default*."""
    answer = port.read_line(f"{question} ")
    if answer is None or not answer.strip():
        return default
    return answer.strip().lower() in ("y", "yes")
