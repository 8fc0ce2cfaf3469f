"""Terminal prompts.

Text, password and confirmation prompts go through rich.prompt. Menu
selection reads single keypresses on a POSIX terminal (digits, Enter,
Backspace, Esc) and drops back to a numbered line prompt when the terminal
can't do that or nothing is typed for SELECT_IDLE_TIMEOUT_SECONDS.
"""

from __future__ import annotations

import os
import sys
from typing import NamedTuple

from rich.console import Console
from rich.prompt import Confirm, Prompt

console = Console()

SELECT_IDLE_TIMEOUT_SECONDS = 30
ESCAPE_SEQUENCE_WAIT_SECONDS = 0.05
ESCAPE_VALUE = 99

ESC = "\x1b"
ENTER_KEYS = ("\r", "\n")
BACKSPACE_KEYS = ("\x7f", "\b")


class Choice(NamedTuple):
    title: str
    value: int


def ask_text(message: str, default: str | None = None) -> str:
    if default is None:
        answer = Prompt.ask(message, console=console)
    else:
        answer = Prompt.ask(message, default=default, console=console)
    return (answer or "").strip()


def ask_password(message: str) -> str:
    answer = Prompt.ask(message, password=True, console=console)
    return (answer or "").strip()


def ask_confirm(message: str, default: bool = True) -> bool:
    return Confirm.ask(message, default=default, console=console)


def escape_value(choices: list[Choice]) -> int:
    """Value chosen by Esc: the "exit" entry if there is one."""
    for choice in choices:
        if choice.title.lower() == "exit":
            return choice.value
    return ESCAPE_VALUE


def choice_for_input(choices: list[Choice], answer: str) -> Choice | None:
    """Map a 1-based number typed by the user to a choice."""
    try:
        position = int(answer)
    except ValueError:
        return None
    if 1 <= position <= len(choices):
        return choices[position - 1]
    return None


def ask_select(message: str, choices: list[Choice]) -> int:
    console.print(f"[bold]{message}[/bold]")
    for position, choice in enumerate(choices, start=1):
        console.print(f"  {position}. {choice.title}")

    if _raw_input_available():
        selected = _select_with_keypresses(choices, SELECT_IDLE_TIMEOUT_SECONDS)
        if selected is not None:
            return selected
        console.print("[dim]No key pressed, switching to a simple prompt.[/dim]")

    return _select_with_line_input(choices)


def _raw_input_available() -> bool:
    return sys.platform != "win32" and sys.stdin.isatty()


def _select_with_line_input(choices: list[Choice]) -> int:
    while True:
        answer = Prompt.ask("Select number", console=console).strip()
        if answer.lower() in ("esc", "escape"):
            return escape_value(choices)
        if not answer.isdigit():
            console.print("Please enter a valid number.")
            continue
        choice = choice_for_input(choices, answer)
        if choice is None:
            console.print("Out of range. Try again.")
            continue
        return choice.value


def _read_pending(fd: int, wait: float) -> str | None:
    import select

    ready, _, _ = select.select([fd], [], [], wait)
    if not ready:
        return None
    return os.read(fd, 1).decode(errors="ignore")


def _discard_escape_sequence(fd: int, introducer: str) -> None:
    """Consume the rest of a CSI (ESC [) or SS3 (ESC O) key sequence."""
    if introducer == "O":
        _read_pending(fd, ESCAPE_SEQUENCE_WAIT_SECONDS)
        return
    if introducer != "[":
        return
    while True:
        key = _read_pending(fd, ESCAPE_SEQUENCE_WAIT_SECONDS)
        # Final byte of a CSI sequence is in 0x40-0x7E
        if key is None or "@" <= key <= "~":
            return


def _select_with_keypresses(choices: list[Choice], timeout: float) -> int | None:
    """Read a selection key by key. Returns None if the idle timeout expires.

    A lone Esc selects the escape value. Arrow, Home/End and function keys
    arrive as escape sequences and are ignored.
    """
    import termios
    import tty

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    digits = ""
    sys.stdout.write("Select number (or Esc to exit): ")
    sys.stdout.flush()
    try:
        # TCSANOW keeps keys typed before the menu appeared
        tty.setcbreak(fd, termios.TCSANOW)
        while True:
            key = _read_pending(fd, timeout)
            if key is None:
                return None

            if key == ESC:
                introducer = _read_pending(fd, ESCAPE_SEQUENCE_WAIT_SECONDS)
                if introducer is None:
                    return escape_value(choices)
                _discard_escape_sequence(fd, introducer)
                continue

            if key in ENTER_KEYS:
                choice = choice_for_input(choices, digits)
                if choice is not None:
                    return choice.value
                hint = "Please enter a valid number." if not digits else "Out of range. Try again."
                sys.stdout.write(f"\n{hint}\nSelect number: ")
                digits = ""
            elif key in BACKSPACE_KEYS:
                if digits:
                    digits = digits[:-1]
                    sys.stdout.write("\b \b")
            elif key.isdigit():
                digits += key
                sys.stdout.write(key)
            sys.stdout.flush()
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)
        sys.stdout.write("\n")
        sys.stdout.flush()
