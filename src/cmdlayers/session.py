"""Session state container and layer transfer coordination."""

from __future__ import annotations

from dataclasses import dataclass, field

from cmdlayers.dispatcher import Dispatcher
from cmdlayers.errors import ConfigError, ValidationError
from cmdlayers.logging_utils import log_event
from cmdlayers.models import Domain, Outcome, Settings, VariableStore
from cmdlayers.transport import Transport


@dataclass
class LayerFrame:
    """One descent: the layer to return to and the child's own settings."""

    parent: Dispatcher
    child_settings: Settings


@dataclass
class ReportState:
    """Periodic report configuration."""

    enabled: bool = False
    period_ms: int = 1000


@dataclass
class Session:
    """In-memory runtime state for one command session.

    Holds the three pieces of shared mutable state the handlers work
    through: the active layer (with its descent stack), the selected
    domain and the variable store.
    """

    transport: Transport
    root: Dispatcher
    layers: dict[str, Dispatcher] = field(default_factory=dict)
    store: VariableStore = field(default_factory=VariableStore.with_defaults)
    domain: Domain = Domain.SET
    reporting: ReportState = field(default_factory=ReportState)
    debug: bool = False
    active: Dispatcher | None = None
    stack: list[LayerFrame] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.active is None:
            self.active = self.root

    @property
    def depth(self) -> int:
        return len(self.stack)

    def layer(self, key: str) -> Dispatcher:
        """Return a registered layer by key."""
        try:
            return self.layers[key]
        except KeyError:
            raise ConfigError(f"No command layer registered as '{key}'") from None

    def select_domain(self, domain: Domain, *, inline: bool = False) -> None:
        if not isinstance(domain, Domain):
            raise ValidationError(f"Invalid domain: {domain!r}")
        self.domain = domain
        log_event("domain_selected", domain=domain, inline=inline)

    def transfer_to(self, target: Dispatcher) -> None:
        """Hand input over to ``target`` until it exits.

        The target's own settings are saved on the stack, then it adopts the
        interactive style of the layer that sent the user there.
        """
        current = self.active
        if target is current:
            return
        self.stack.append(LayerFrame(parent=current, child_settings=target.snapshot_settings()))
        target.restore_settings(current.snapshot_settings())
        self.active = target
        log_event(
            "layer_transfer",
            from_layer=current.name,
            to_layer=target.name,
            depth=self.depth,
        )

    def return_to_previous(self) -> Dispatcher | None:
        """Leave the active layer for the one it was entered from.

        Undoes the style adoption done by ``transfer_to``. Returns the layer
        now active, or None when already at the root.
        """
        if not self.stack:
            return None
        frame = self.stack.pop()
        child = self.active
        child.restore_settings(frame.child_settings)
        self.active = frame.parent
        log_event(
            "layer_return",
            from_layer=child.name,
            to_layer=frame.parent.name,
            depth=self.depth,
        )
        return frame.parent

    def set_reporting(self, enabled: bool, period_seconds: int | None = None) -> None:
        if period_seconds is not None:
            if isinstance(period_seconds, bool) or not isinstance(period_seconds, int) or period_seconds <= 0:
                raise ValidationError("Report interval must be a positive number of seconds")
            self.reporting.period_ms = period_seconds * 1000
        self.reporting.enabled = enabled
        log_event(
            "reporting_changed",
            enabled=enabled,
            period_ms=self.reporting.period_ms,
        )

    def handle_line(self, line: str) -> Outcome:
        """Process one received line on the active layer.

        Echoes the line if the active layer echoes, dispatches it, then prints
        the prompt of whichever layer is active afterwards.
        """
        dispatcher = self.active
        if dispatcher.settings.echo_enabled:
            self.transport.write(line + "\n")
        outcome = dispatcher.feed(line, self) if line.strip() else Outcome.OK
        self.active.print_prompt(self)
        return outcome
