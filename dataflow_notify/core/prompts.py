"""Interactive yes/no prompts for console and windowed runtimes."""

from __future__ import annotations

import logging
import sys

_logger = logging.getLogger(__name__)

_DIALOG_TITLE = "DataFlow Notify"
_WINDOWS_MESSAGE_BOX_YESNO = 0x00000004
_WINDOWS_MESSAGE_BOX_ICON_QUESTION = 0x00000020
_WINDOWS_MESSAGE_BOX_TOPMOST = 0x00040000
_WINDOWS_DIALOG_RESULT_YES = 6


def can_use_console_prompt() -> bool:
    """Return True when current runtime has an interactive console stdin."""
    stdin = getattr(sys, "stdin", None)
    return bool(
        stdin is not None
        and callable(getattr(stdin, "isatty", None))
        and stdin.isatty()
    )


def _show_windows_dialog(message: str, *, style: int) -> int | None:
    """Show native Win32 MessageBox and return selected button id."""
    if sys.platform != "win32":
        return None

    try:
        import ctypes

        return int(ctypes.windll.user32.MessageBoxW(0, message, _DIALOG_TITLE, style))  # type: ignore[attr-defined]
    except Exception as exc:
        _logger.warning("Prompt dialog failed: %s", exc)
        return None


def prompt_yes_no(question: str) -> bool | None:
    """Ask a yes/no question; None means nobody could be asked."""
    if not can_use_console_prompt():
        result = _show_windows_dialog(
            question,
            style=(
                _WINDOWS_MESSAGE_BOX_YESNO
                | _WINDOWS_MESSAGE_BOX_ICON_QUESTION
                | _WINDOWS_MESSAGE_BOX_TOPMOST
            ),
        )
        if result is None:
            return None
        return result == _WINDOWS_DIALOG_RESULT_YES

    while True:
        try:
            raw_answer = input(f"{question} [y/N]: ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            return None

        if raw_answer in {"", "n", "no"}:
            return False
        if raw_answer in {"y", "yes"}:
            return True

        print("Please answer y or n.")


def ask_native_permission() -> bool | None:
    """Permission prompt used by the native bridge at startup."""
    return prompt_yes_no("Allow DataFlow to show desktop notifications?")
