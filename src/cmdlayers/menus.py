"""Static command tables and session wiring."""

from cmdlayers import commands
from cmdlayers.commands import MAIN_LAYER, PARAMETER_LAYER, REPORT_LAYER
from cmdlayers.dispatcher import CommandTable, Dispatcher, with_aliases
from cmdlayers.models import Profile, Settings, VariableStore
from cmdlayers.session import ReportState, Session
from cmdlayers.transport import Transport

MAIN_MENU_NAME = "Main menu"
PARAMETER_MENU_NAME = "parameters"
REPORT_MENU_NAME = "report"

_DOMAIN_USAGE = "[speed/volt/amp]"

MASTER_COMMANDS = CommandTable(
    [
        *with_aliases("set", commands.cmd_set, "edit the Set domain", "s", usage=_DOMAIN_USAGE),
        *with_aliases(
            "act", commands.cmd_read, "show the Actual domain (read only)", "a", usage=_DOMAIN_USAGE
        ),
        *with_aliases(
            "setmin", commands.cmd_setmin, "edit the Set minimum domain", "smi", usage=_DOMAIN_USAGE
        ),
        *with_aliases(
            "min", commands.cmd_min, "show the Actual minimum domain (read only)", "ami", usage=_DOMAIN_USAGE
        ),
        *with_aliases(
            "setmax", commands.cmd_setmax, "edit the Set maximum domain", "sma", usage=_DOMAIN_USAGE
        ),
        *with_aliases(
            "max", commands.cmd_max, "show the Actual maximum domain (read only)", "ama", usage=_DOMAIN_USAGE
        ),
        *with_aliases(
            "report", commands.cmd_report, "periodic report control", "r", usage="[#seconds|on|off]"
        ),
        *with_aliases("echo", commands.cmd_echo, "echo received lines", usage="[on|off]"),
        *with_aliases("prompt", commands.cmd_prompt, "show the command prompt", usage="[on|off]"),
        *with_aliases("help", commands.cmd_help, "show available commands", "?"),
    ]
)

PARAMETER_COMMANDS = CommandTable(
    [
        *with_aliases("volt", commands.cmd_volt, "show or set the voltage", "v", usage="[value]"),
        *with_aliases("amp", commands.cmd_amp, "show or set the amperage", "a", usage="[value]"),
        *with_aliases("speed", commands.cmd_speed, "show or set the speed", "r", usage="[value]"),
        *with_aliases("reset", commands.cmd_reset, "zero every value in the selected domain", "R"),
        *with_aliases("help", commands.cmd_help, "show available commands", "?"),
        *with_aliases("exit", commands.cmd_exit, "go back to the main menu", "x"),
    ]
)

REPORT_COMMANDS = CommandTable(
    [
        *with_aliases("on", commands.cmd_report_on, "reporting ON"),
        *with_aliases("off", commands.cmd_report_off, "reporting OFF"),
        *with_aliases("help", commands.cmd_help, "show available commands", "?"),
        *with_aliases("exit", commands.cmd_exit, "go back to the main menu", "x"),
    ]
)


def _parameter_title(session: Session) -> str:
    return session.domain.prompt_label


def build_layers() -> dict[str, Dispatcher]:
    """Create one dispatcher per command layer for a new session."""
    return {
        MAIN_LAYER: Dispatcher(MAIN_MENU_NAME, MASTER_COMMANDS),
        PARAMETER_LAYER: Dispatcher(
            PARAMETER_MENU_NAME,
            PARAMETER_COMMANDS,
            title=_parameter_title,
        ),
        REPORT_LAYER: Dispatcher(REPORT_MENU_NAME, REPORT_COMMANDS),
    }


def build_session(
    transport: Transport,
    profile: Profile | None = None,
    store: VariableStore | None = None,
) -> Session:
    """Wire the command layers, variable store and profile settings together.

    Only the master layer's settings come from the profile; nested layers
    adopt the master's style whenever the user descends into them.
    """
    prof = profile if profile is not None else Profile()
    layers = build_layers()
    root = layers[MAIN_LAYER]
    root.settings = Settings(prompt_enabled=prof.prompt, echo_enabled=prof.echo)

    return Session(
        transport=transport,
        root=root,
        layers=layers,
        store=store if store is not None else VariableStore.with_defaults(),
        reporting=ReportState(
            enabled=prof.reporting,
            period_ms=prof.report_period_seconds * 1000,
        ),
        debug=prof.debug,
    )
