"""Command handlers for every layer.

Handlers take a DispatchContext and return an Outcome. The master layer's
domain commands select a Domain and then hand the rest of the line (or the
user) over to the shared parameter layer, whose editors read and write the
variable store through whatever domain is selected.
"""

from typing import Callable

from cmdlayers.context import DispatchContext
from cmdlayers.errors import UsageError
from cmdlayers.formatters import format_value_line
from cmdlayers.logging_utils import log_event
from cmdlayers.models import Domain, Outcome, Quantity

MAIN_LAYER = "main"
PARAMETER_LAYER = "parameters"
REPORT_LAYER = "report"

_ON_WORDS = frozenset(("on", "1", "true", "yes"))
_OFF_WORDS = frozenset(("off", "0", "false", "no"))


def _enter_or_feed(ctx: DispatchContext, layer_key: str) -> Outcome:
    """Descend into a layer, or run the payload there inline if one was given."""
    session = ctx.session
    target = session.layer(layer_key)
    if ctx.has_payload():
        ctx.emit(f"{target.label(session)} ")
        return target.feed(ctx.payload, session)
    session.transfer_to(target)
    return Outcome.OK


def _domain_command(domain: Domain) -> Callable[[DispatchContext], Outcome]:
    def handler(ctx: DispatchContext) -> Outcome:
        ctx.session.select_domain(domain, inline=ctx.has_payload())
        return _enter_or_feed(ctx, PARAMETER_LAYER)

    handler.__name__ = f"cmd_{domain.name.lower()}"
    handler.__doc__ = f"Select the {domain.prompt_label!r} domain and edit parameters in it."
    return handler


cmd_set = _domain_command(Domain.SET)
cmd_read = _domain_command(Domain.READ)
cmd_setmin = _domain_command(Domain.SET_MIN)
cmd_min = _domain_command(Domain.MIN)
cmd_setmax = _domain_command(Domain.SET_MAX)
cmd_max = _domain_command(Domain.MAX)


def cmd_report(ctx: DispatchContext) -> Outcome:
    """Enter the report layer, set the report interval, or run a report command inline.

    ``report`` descends, ``report <seconds>`` sets the interval and turns
    reporting on, and any other payload is fed to the report layer.
    """
    session = ctx.session
    ctx.emit_line("Report")
    if not ctx.has_payload():
        session.transfer_to(session.layer(REPORT_LAYER))
        return Outcome.OK

    seconds = ctx.extract_int()
    if seconds is None:
        return session.layer(REPORT_LAYER).feed(ctx.payload, session)
    if seconds <= 0:
        ctx.emit_line("Report interval must be at least 1 second")
        return Outcome.FAILED

    session.set_reporting(True, seconds)
    ctx.emit_line(f"Delay: {seconds} seconds")
    return Outcome.OK


def cmd_report_on(ctx: DispatchContext) -> Outcome:
    ctx.session.set_reporting(True)
    ctx.emit_as(ctx.dispatcher, "reporting ON")
    return Outcome.OK


def cmd_report_off(ctx: DispatchContext) -> Outcome:
    ctx.session.set_reporting(False)
    ctx.emit_as(ctx.dispatcher, "reporting OFF")
    return Outcome.OK


def _edit_quantity(ctx: DispatchContext, quantity: Quantity) -> Outcome:
    """Optionally write a quantity in the selected domain, then show it."""
    session = ctx.session
    domain = session.domain
    outcome = Outcome.OK

    value = ctx.extract_int() if quantity.integral else ctx.extract_float()
    if value is not None:
        if domain.read_only:
            ctx.emit_line("=> read only value")
            log_event(
                "read_only_rejected",
                domain=domain,
                quantity=quantity,
                payload=ctx.payload,
            )
            outcome = Outcome.FAILED
        else:
            session.store.set(quantity, domain, value)

    ctx.emit_line(format_value_line(quantity, session.store.get(quantity, domain)))
    return outcome


def cmd_volt(ctx: DispatchContext) -> Outcome:
    return _edit_quantity(ctx, Quantity.VOLTAGE)


def cmd_amp(ctx: DispatchContext) -> Outcome:
    return _edit_quantity(ctx, Quantity.AMPERAGE)


def cmd_speed(ctx: DispatchContext) -> Outcome:
    return _edit_quantity(ctx, Quantity.SPEED)


def cmd_reset(ctx: DispatchContext) -> Outcome:
    """Zero all quantities in the selected domain only."""
    domain = ctx.session.domain
    ctx.session.store.reset_domain(domain)
    log_event("domain_reset", domain=domain)
    ctx.emit_line("Values within this domain have been reset to '0'")
    return Outcome.OK


def cmd_exit(ctx: DispatchContext) -> Outcome:
    """Return to the layer the active one was entered from."""
    session = ctx.session
    parent = session.return_to_previous()
    if parent is None:
        ctx.emit_line(f"Already at '{session.root.label(session)}'")
        return Outcome.FAILED
    ctx.emit_line(f"Back to '{parent.label(session)}'")
    return Outcome.OK


def cmd_help(ctx: DispatchContext) -> Outcome:
    ctx.emit_line(ctx.dispatcher.render_help(ctx.session))
    return Outcome.OK


def _parse_switch(ctx: DispatchContext, name: str) -> bool | None:
    if not ctx.has_payload():
        return None
    word = ctx.payload.split()[0].lower()
    if word in _ON_WORDS:
        return True
    if word in _OFF_WORDS:
        return False
    raise UsageError(f"Usage: {name} [on|off]")


def cmd_echo(ctx: DispatchContext) -> Outcome:
    """Show or switch echo of received lines for the current layer."""
    settings = ctx.dispatcher.settings
    switch = _parse_switch(ctx, "echo")
    if switch is not None:
        settings.echo_enabled = switch
    ctx.emit_line(f"Echo {'ON' if settings.echo_enabled else 'OFF'}")
    return Outcome.OK


def cmd_prompt(ctx: DispatchContext) -> Outcome:
    """Show or switch the command prompt for the current layer."""
    settings = ctx.dispatcher.settings
    switch = _parse_switch(ctx, "prompt")
    if switch is not None:
        settings.prompt_enabled = switch
    ctx.emit_line(f"Prompt {'ON' if settings.prompt_enabled else 'OFF'}")
    return Outcome.OK
