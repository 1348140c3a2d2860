"""Cooperative scheduling loop: input dispatch plus the periodic report."""

import logging
import time
import traceback
from typing import Callable

from cmdlayers.errors import AppError, TransportError
from cmdlayers.formatters import format_report
from cmdlayers.logging_utils import log_event
from cmdlayers.models import Outcome
from cmdlayers.session import Session

GREETING = "Hello: Type 'help' to get help"
IDLE_SLEEP_SECONDS = 0.01


def _report_unexpected_error(session: Session, error: Exception) -> None:
    """Show an unexpected exception with optional debug traceback."""
    session.transport.write(f"ERROR: {error}\n")
    log_event(
        "unexpected_error",
        level=logging.ERROR,
        error_type=type(error).__name__,
        error=str(error),
    )
    if session.debug:
        session.transport.write("Debug traceback:\n")
        session.transport.write(traceback.format_exc())


def process_line(session: Session, line: str) -> Outcome:
    """Handle one input line behind the loop's error boundary."""
    try:
        return session.handle_line(line)
    except TransportError:
        raise
    except AppError as e:
        # Expected errors (usage, validation) are shown and the session goes on
        session.transport.write(f"ERROR: {e}\n")
    except Exception as e:
        _report_unexpected_error(session, e)
    session.active.print_prompt(session)
    return Outcome.FAILED


class ReportTask:
    """Renders the variable store once input has been idle for the report period."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.idle_since = session.transport.elapsed_millis()

    def note_input(self) -> None:
        self.idle_since = self.session.transport.elapsed_millis()

    def poll(self) -> bool:
        session = self.session
        if not session.reporting.enabled:
            return False
        now = session.transport.elapsed_millis()
        if now - self.idle_since <= session.reporting.period_ms:
            return False

        session.transport.write(format_report(session.store))
        session.active.print_prompt(session)
        self.idle_since = now
        log_event("report_rendered", level=logging.DEBUG, period_ms=session.reporting.period_ms)
        return True


class InputTask:
    """Feeds each complete received line to the active layer."""

    def __init__(self, session: Session, on_input: Callable[[], None] | None = None) -> None:
        self.session = session
        self.on_input = on_input

    def poll(self) -> bool:
        transport = self.session.transport
        if not transport.available():
            return False
        line = transport.read_line()
        if line is None:
            return False
        if self.on_input is not None:
            self.on_input()
        process_line(self.session, line)
        return True


def greet(session: Session) -> None:
    session.transport.write(GREETING + "\n")
    session.root.print_prompt(session)


def run(session: Session, sleep: Callable[[float], None] = time.sleep) -> None:
    """Run until the transport reaches end of input or the user interrupts."""
    greet(session)
    report_task = ReportTask(session)
    input_task = InputTask(session, on_input=report_task.note_input)

    try:
        while not session.transport.at_eof():
            reported = report_task.poll()
            received = input_task.poll()
            if not (reported or received):
                sleep(IDLE_SLEEP_SECONDS)
    except KeyboardInterrupt:
        session.transport.write("\n")
