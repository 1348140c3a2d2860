"""Command tables and the per-layer dispatcher."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

from cmdlayers.context import DispatchContext, split_command
from cmdlayers.errors import ConfigError
from cmdlayers.logging_utils import log_event, logger
from cmdlayers.models import Outcome, Settings

if TYPE_CHECKING:
    from cmdlayers.session import Session

Handler = Callable[[DispatchContext], Outcome]


@dataclass(frozen=True)
class CommandEntry:
    """One command string bound to a handler."""

    command: str
    handler: Handler
    help_text: str = ""
    usage: str = ""


@dataclass(frozen=True)
class CommandDocEntry:
    """Metadata for a single command in help output and doc checks."""

    command: str
    aliases: tuple[str, ...]
    summary: str
    usage: str = ""

    @property
    def display_usage(self) -> str:
        if not self.aliases:
            return self.command
        return f"{self.command} ({', '.join(self.aliases)})"


def with_aliases(
    command: str,
    handler: Handler,
    help_text: str,
    *aliases: str,
    usage: str = "",
) -> list[CommandEntry]:
    """Build a documented entry followed by its undocumented alias entries."""
    entries = [CommandEntry(command, handler, help_text, usage)]
    entries.extend(CommandEntry(alias, handler) for alias in aliases)
    return entries


class CommandTable:
    """Ordered, immutable mapping from command strings to handlers.

    Lookups are exact and case-sensitive. In strict mode (the default) a
    duplicate command string is a configuration error; otherwise the first
    registration wins and later ones are logged and ignored.
    """

    def __init__(self, entries: Iterable[CommandEntry], *, strict: bool = True) -> None:
        self._entries: tuple[CommandEntry, ...] = tuple(entries)
        if not self._entries:
            raise ConfigError("Command table must contain at least one command")

        index: dict[str, CommandEntry] = {}
        for entry in self._entries:
            if not isinstance(entry.command, str) or not entry.command.strip():
                raise ConfigError("Command strings must be non-empty")
            if entry.command != entry.command.strip() or len(entry.command.split()) != 1:
                raise ConfigError(f"Command string cannot contain whitespace: {entry.command!r}")
            if not callable(entry.handler):
                raise ConfigError(f"Handler for '{entry.command}' is not callable")
            if entry.command in index:
                if strict:
                    raise ConfigError(f"Duplicate command string: {entry.command}")
                log_event(
                    "command_shadowed",
                    level=logging.WARNING,
                    command=entry.command,
                )
                continue
            index[entry.command] = entry
        self._index = index

    def __iter__(self) -> Iterator[CommandEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, command: object) -> bool:
        return command in self._index

    def resolve(self, command: str) -> CommandEntry | None:
        """Return the first entry registered for ``command``, if any."""
        return self._index.get(command)

    def doc_entries(self) -> list[CommandDocEntry]:
        """Documented commands with the aliases that share their handler."""
        documented = [entry for entry in self._index.values() if entry.help_text]
        rows: list[CommandDocEntry] = []
        for entry in documented:
            aliases = tuple(
                other.command
                for other in self._index.values()
                if other.handler is entry.handler and not other.help_text
            )
            rows.append(CommandDocEntry(entry.command, aliases, entry.help_text, entry.usage))
        return rows


@dataclass
class Dispatcher:
    """One command layer: a table plus its name and interactive settings.

    ``title`` lets a layer derive its displayed name from session state; the
    shared parameter layer uses it to show the selected domain.
    """

    name: str
    table: CommandTable
    settings: Settings = field(default_factory=Settings)
    title: Callable[[Session], str] | None = None

    def label(self, session: Session) -> str:
        if self.title is not None:
            return self.title(session)
        return self.name

    def resolve(self, command: str) -> Handler | None:
        entry = self.table.resolve(command)
        return entry.handler if entry else None

    def feed(self, line: str, session: Session) -> Outcome:
        """Resolve the line's command word and run its handler."""
        command, payload = split_command(line)
        if not command:
            return Outcome.OK

        handler = self.resolve(command)
        if handler is None:
            session.transport.write(f"Command not recognized: {command}\n")
            log_event("command_unknown", layer=self.name, command=command)
            return Outcome.UNKNOWN

        ctx = DispatchContext(
            session=session,
            dispatcher=self,
            line=line,
            command=command,
            payload=payload,
        )
        outcome = handler(ctx)
        if logger.isEnabledFor(logging.DEBUG):
            log_event(
                "command_dispatched",
                level=logging.DEBUG,
                layer=self.name,
                command=command,
                payload=payload,
                outcome=outcome,
            )
        return outcome

    def snapshot_settings(self) -> Settings:
        return self.settings.copy()

    def restore_settings(self, settings: Settings) -> None:
        self.settings = settings.copy()

    def prompt_text(self, session: Session) -> str:
        return f"{self.label(session)}> "

    def print_prompt(self, session: Session) -> None:
        if self.settings.prompt_enabled:
            session.transport.write(self.prompt_text(session))

    def render_help(self, session: Session) -> str:
        """Render this layer's command list from table metadata."""
        rows = self.table.doc_entries()
        lines = [f"Available commands in '{self.label(session)}':"]
        if not rows:
            return "\n".join(lines)
        usages = [f"{row.display_usage} {row.usage}".rstrip() for row in rows]
        width = max(len(usage) for usage in usages)
        for usage, row in zip(usages, rows):
            lines.append(f"  {usage.ljust(width)} - {row.summary}")
        return "\n".join(lines)
