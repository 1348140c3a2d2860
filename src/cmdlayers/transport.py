"""Line-oriented byte-stream transports the command loop talks through."""

from __future__ import annotations

import logging
import os
import select
import sys
import time
from collections import deque
from typing import Callable, Iterable, Protocol, TextIO

import serial

from cmdlayers.errors import TransportError
from cmdlayers.logging_utils import log_event

LINE_ENCODING = "utf-8"
READ_CHUNK_BYTES = 4096
MAX_LINE_BYTES = 4096


class Transport(Protocol):
    """What the dispatcher core needs from a byte stream."""

    def available(self) -> bool: ...

    def read_line(self) -> str | None: ...

    def write(self, text: str) -> None: ...

    def elapsed_millis(self) -> int: ...

    def at_eof(self) -> bool: ...

    def close(self) -> None: ...


class _MonotonicClock:
    """Milliseconds since the transport was opened."""

    def __init__(self) -> None:
        self._started = time.monotonic()

    def elapsed_millis(self) -> int:
        return int((time.monotonic() - self._started) * 1000)


class ScriptTransport(_MonotonicClock):
    """Replays a fixed list of input lines and records everything written.

    Used for ``--script`` runs and for driving sessions in tests. When
    ``mirror`` is given, output is also copied there as it is written.
    """

    def __init__(self, lines: Iterable[str] = (), mirror: TextIO | None = None) -> None:
        super().__init__()
        self._pending: deque[str] = deque(line.rstrip("\r\n") for line in lines)
        self._mirror = mirror
        self.output: list[str] = []

    def push(self, line: str) -> None:
        self._pending.append(line.rstrip("\r\n"))

    def available(self) -> bool:
        return bool(self._pending)

    def read_line(self) -> str | None:
        if not self._pending:
            return None
        return self._pending.popleft()

    def write(self, text: str) -> None:
        self.output.append(text)
        if self._mirror is not None:
            self._mirror.write(text)
            self._mirror.flush()

    def at_eof(self) -> bool:
        return not self._pending

    def close(self) -> None:
        self._pending.clear()

    def getvalue(self) -> str:
        return "".join(self.output)

    def clear_output(self) -> None:
        self.output.clear()


def _split_line(buffer: bytearray) -> str | None:
    """Remove and decode the first complete line in ``buffer``, if any."""
    if b"\n" not in buffer:
        return None
    end = buffer.index(b"\n")
    raw = bytes(buffer[:end])
    del buffer[: end + 1]
    return raw.decode(LINE_ENCODING, "replace").rstrip("\r")


def _drop_overlong(buffer: bytearray, source: str) -> None:
    """Discard a partial line that has outgrown MAX_LINE_BYTES."""
    if len(buffer) > MAX_LINE_BYTES and b"\n" not in buffer:
        log_event("line_dropped", level=logging.WARNING, source=source, size=len(buffer))
        buffer.clear()


class ConsoleTransport(_MonotonicClock):
    """Interactive stdin/stdout transport.

    When stdin has a file descriptor, bytes are read from it directly and
    split into lines here, so lines that arrive together are never hidden
    in a text-layer buffer. Streams without a descriptor are read with
    blocking ``readline``.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        super().__init__()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._eof = False
        self._input_closed = False
        self._buffer = bytearray()
        try:
            self._fd: int | None = self._stdin.fileno()
        except (OSError, ValueError, AttributeError):
            self._fd = None

    def _ensure_open(self) -> None:
        if getattr(self._stdin, "closed", False):
            raise TransportError("Input stream is closed")

    def _fill(self) -> None:
        if self._input_closed:
            return
        try:
            readable, _, _ = select.select([self._fd], [], [], 0)
            if not readable:
                return
            data = os.read(self._fd, READ_CHUNK_BYTES)
        except (OSError, ValueError) as e:
            raise TransportError(f"Console read failed: {e}") from e
        if not data:
            self._input_closed = True
            return
        self._buffer.extend(data)
        _drop_overlong(self._buffer, "console")

    def available(self) -> bool:
        if self._eof:
            return False
        self._ensure_open()
        if self._fd is None:
            return True
        if b"\n" not in self._buffer:
            self._fill()
        if b"\n" in self._buffer:
            return True
        if self._input_closed:
            if self._buffer:
                return True
            self._eof = True
        return False

    def read_line(self) -> str | None:
        if self._eof:
            return None
        self._ensure_open()
        if self._fd is None:
            return self._read_text_line()

        if b"\n" not in self._buffer:
            self._fill()
        line = _split_line(self._buffer)
        if line is not None:
            return line
        if self._input_closed:
            if self._buffer:
                # Final line without a trailing newline.
                raw = bytes(self._buffer)
                self._buffer.clear()
                return raw.decode(LINE_ENCODING, "replace").rstrip("\r")
            self._eof = True
        return None

    def _read_text_line(self) -> str | None:
        try:
            line = self._stdin.readline()
        except (OSError, ValueError) as e:
            raise TransportError(f"Console read failed: {e}") from e
        if line == "":
            self._eof = True
            return None
        return line.rstrip("\r\n")

    def write(self, text: str) -> None:
        try:
            self._stdout.write(text)
            self._stdout.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"Console write failed: {e}") from e

    def at_eof(self) -> bool:
        return self._eof

    def close(self) -> None:
        self._stdout.flush()


class SerialTransport(_MonotonicClock):
    """Serial port transport backed by pyserial.

    Reads are non-blocking: incoming bytes are buffered until a full
    newline-terminated line is present. A partial line longer than
    MAX_LINE_BYTES is dropped.
    """

    def __init__(
        self,
        port: str,
        baud_rate: int = 115200,
        *,
        serial_factory: Callable[..., serial.Serial] = serial.Serial,
    ) -> None:
        super().__init__()
        self.port = port
        self._buffer = bytearray()
        self._closed = False
        try:
            self._serial = serial_factory(port=port, baudrate=baud_rate, timeout=0, write_timeout=1)
        except serial.SerialException as e:
            raise TransportError(f"Failed to open {port}: {e}") from e
        self._serial.reset_input_buffer()

    def _fill(self) -> None:
        try:
            waiting = self._serial.in_waiting
            if waiting:
                self._buffer.extend(self._serial.read(waiting))
                _drop_overlong(self._buffer, self.port)
        except serial.SerialException as e:
            raise TransportError(f"Serial read failed on {self.port}: {e}") from e

    def available(self) -> bool:
        if self._closed:
            return False
        self._fill()
        return b"\n" in self._buffer

    def read_line(self) -> str | None:
        if not self.available():
            return None
        return _split_line(self._buffer)

    def write(self, text: str) -> None:
        # Serial terminals expect CRLF line endings.
        data = text.replace("\n", "\r\n").encode(LINE_ENCODING)
        try:
            self._serial.write(data)
            self._serial.flush()
        except serial.SerialException as e:
            raise TransportError(f"Serial write failed on {self.port}: {e}") from e

    def at_eof(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._serial.close()
