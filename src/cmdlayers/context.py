"""Line tokenizing and the per-invocation handler context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cmdlayers.dispatcher import Dispatcher
    from cmdlayers.session import Session


def split_command(line: str) -> tuple[str, str]:
    """Split an input line into (command word, payload).

    Examples:
        "volt 9.5"      -> ("volt", "9.5")
        "  set volt 1 " -> ("set", "volt 1")
        "exit"          -> ("exit", "")
        ""              -> ("", "")
    """
    stripped = line.strip()
    if not stripped:
        return "", ""
    parts = stripped.split(None, 1)
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], parts[1].strip()


def _first_token(payload: str) -> str:
    parts = payload.split(None, 1)
    return parts[0] if parts else ""


@dataclass
class DispatchContext:
    """What a handler sees of the line it was invoked for.

    ``line`` is the text the owning dispatcher received, ``command`` the word
    that resolved to the handler and ``payload`` everything after it.
    """

    session: Session
    dispatcher: Dispatcher
    line: str
    command: str
    payload: str

    def has_payload(self) -> bool:
        return bool(self.payload.strip())

    def extract_int(self) -> int | None:
        """Parse the first payload token as an int; None if absent or invalid."""
        token = _first_token(self.payload)
        if not token:
            return None
        try:
            return int(token)
        except ValueError:
            return None

    def extract_float(self) -> float | None:
        """Parse the first payload token as a finite float; None if absent or invalid."""
        token = _first_token(self.payload)
        if not token:
            return None
        try:
            value = float(token)
        except ValueError:
            return None
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return value

    def emit(self, text: str) -> None:
        self.session.transport.write(text)

    def emit_line(self, text: str = "") -> None:
        self.session.transport.write(text + "\n")

    def emit_as(self, dispatcher: Dispatcher, text: str) -> None:
        """Emit a line attributed to a named layer.

        Nested layers fed inline share the caller's output stream, so the
        layer name tells the user which one is speaking.
        """
        self.emit_line(f"{dispatcher.label(self.session)}: {text}")
