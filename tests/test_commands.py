"""Tests for command handlers driven through a session."""

import logging

import pytest

from cmdlayers.commands import PARAMETER_LAYER, REPORT_LAYER, cmd_exit
from cmdlayers.context import DispatchContext
from cmdlayers.errors import UsageError
from cmdlayers.menus import build_session
from cmdlayers.models import Domain, Outcome, Profile, Quantity
from cmdlayers.transport import ScriptTransport


def _run(session, transport, line):
    """Feed a line to the session and return (outcome, output)."""
    transport.clear_output()
    outcome = session.handle_line(line)
    return outcome, transport.getvalue()


class TestDomainCommands:
    """Test domain entry commands and the layer-skip shortcut."""

    def test_inline_write_to_set_domain(self, session, transport):
        """Test that 'set volt 7.25' writes Set without changing layers."""
        outcome, output = _run(session, transport, "set volt 7.25")

        assert outcome is Outcome.OK
        assert output == "Set Volt = 7.25 V\n"
        assert session.store.get(Quantity.VOLTAGE, Domain.SET) == 7.25
        assert session.active is session.root
        assert session.domain is Domain.SET

    def test_domains_are_isolated(self, session, transport):
        """Test that writing Set leaves the Actual value alone."""
        _run(session, transport, "set volt 7.25")
        outcome, output = _run(session, transport, "act volt")

        assert outcome is Outcome.OK
        assert output == "Actual Volt = 4.50 V\n"
        assert session.store.get(Quantity.VOLTAGE, Domain.READ) == 4.5

    def test_aliases_select_same_domain(self, session, transport):
        _, output = _run(session, transport, "smi a 1.5")

        assert output == "Set min limit Amps = 1.50 A\n"
        assert session.domain is Domain.SET_MIN
        assert session.store.get(Quantity.AMPERAGE, Domain.SET_MIN) == 1.5

    @pytest.mark.parametrize(
        "command, domain",
        [
            ("set", Domain.SET),
            ("act", Domain.READ),
            ("setmin", Domain.SET_MIN),
            ("min", Domain.MIN),
            ("setmax", Domain.SET_MAX),
            ("max", Domain.MAX),
        ],
    )
    def test_bare_command_descends(self, session, transport, command, domain):
        outcome, _ = _run(session, transport, command)

        assert outcome is Outcome.OK
        assert session.domain is domain
        assert session.active is session.layer(PARAMETER_LAYER)

    def test_descend_edit_and_exit(self, prompt_session, transport):
        """Test the interactive path: enter, edit, then leave."""
        session = prompt_session

        _, output = _run(session, transport, "set")
        assert output == "Set> "

        _, output = _run(session, transport, "volt 7.25")
        assert output == "Volt = 7.25 V\nSet> "

        outcome, output = _run(session, transport, "exit")
        assert outcome is Outcome.OK
        assert output == "Back to 'Main menu'\nMain menu> "
        assert session.active is session.root

        _, output = _run(session, transport, "act volt")
        assert output == "Actual Volt = 4.50 V\nMain menu> "

    def test_layer_skip_matches_descent(self, transport):
        """Test that the one-line shortcut reaches the same state as descending."""
        inline = build_session(ScriptTransport(), Profile(prompt=False))
        inline.handle_line("set volt 9.5")

        stepwise = build_session(transport, Profile(prompt=False))
        stepwise.handle_line("set")
        stepwise.handle_line("volt 9.5")
        stepwise.handle_line("exit")

        assert inline.store == stepwise.store
        assert inline.store.get(Quantity.VOLTAGE, Domain.SET) == 9.5
        assert inline.active is inline.root
        assert stepwise.active is stepwise.root

    def test_parameter_prompt_follows_domain(self, prompt_session, transport):
        _, output = _run(prompt_session, transport, "setmax")
        assert output == "Set max limit> "

    def test_unknown_inline_command(self, session, transport):
        outcome, output = _run(session, transport, "set bogus")

        assert outcome is Outcome.UNKNOWN
        assert output == "Set Command not recognized: bogus\n"
        assert session.active is session.root

    def test_exit_is_unknown_on_master_layer(self, session, transport):
        outcome, output = _run(session, transport, "exit")

        assert outcome is Outcome.UNKNOWN
        assert output == "Command not recognized: exit\n"


class TestParameterEditors:
    """Test the shared volt/amp/speed editors."""

    def test_read_only_domain_rejects_write(self, session, transport, caplog):
        """Test that Actual values cannot be written and are still shown."""
        with caplog.at_level(logging.INFO, logger="cmdlayers"):
            outcome, output = _run(session, transport, "act volt 3")

        assert outcome is Outcome.FAILED
        assert output == "Actual => read only value\nVolt = 4.50 V\n"
        assert session.store.get(Quantity.VOLTAGE, Domain.READ) == 4.5
        assert "read_only_rejected" in caplog.text

    @pytest.mark.parametrize("command", ["min", "max"])
    def test_limit_domains_are_read_only(self, session, transport, command):
        before = session.store.row(Domain.MIN), session.store.row(Domain.MAX)

        outcome, _ = _run(session, transport, f"{command} amp 1")

        assert outcome is Outcome.FAILED
        assert (session.store.row(Domain.MIN), session.store.row(Domain.MAX)) == before

    def test_show_without_payload(self, session, transport):
        outcome, output = _run(session, transport, "act speed")

        assert outcome is Outcome.OK
        assert output == "Actual Rpm = 1 Rpm\n"

    def test_malformed_payload_shows_current_value(self, session, transport):
        """Test that an unparsable value is not written."""
        outcome, output = _run(session, transport, "set volt abc")

        assert outcome is Outcome.OK
        assert output == "Set Volt = 10.99 V\n"
        assert session.store.get(Quantity.VOLTAGE, Domain.SET) == 10.99

    def test_speed_requires_integer(self, session, transport):
        _, output = _run(session, transport, "set speed 2.5")
        assert output == "Set Rpm = 0 Rpm\n"

        _, output = _run(session, transport, "set r 3")
        assert output == "Set Rpm = 3 Rpm\n"
        assert session.store.get(Quantity.SPEED, Domain.SET) == 3

    def test_editor_aliases(self, session, transport):
        session.transfer_to(session.layer(PARAMETER_LAYER))

        _, output = _run(session, transport, "v 1")
        assert output == "Volt = 1.00 V\n"
        _, output = _run(session, transport, "a 2")
        assert output == "Amps = 2.00 A\n"


class TestReset:
    """Test zeroing one domain."""

    def test_reset_only_selected_domain(self, session, transport):
        """Test that resetting SetMax leaves every other domain untouched."""
        others = {d: session.store.row(d) for d in Domain if d is not Domain.SET_MAX}

        outcome, output = _run(session, transport, "setmax reset")

        assert outcome is Outcome.OK
        assert output == "Set max limit Values within this domain have been reset to '0'\n"
        assert session.store.row(Domain.SET_MAX) == {
            Quantity.VOLTAGE: 0.0,
            Quantity.AMPERAGE: 0.0,
            Quantity.SPEED: 0,
        }
        for domain, row in others.items():
            assert session.store.row(domain) == row

    def test_reset_alias(self, session, transport):
        session.select_domain(Domain.SET)
        session.transfer_to(session.layer(PARAMETER_LAYER))

        _run(session, transport, "R")

        assert session.store.get(Quantity.VOLTAGE, Domain.SET) == 0.0


class TestReportCommands:
    """Test report control on the master and report layers."""

    def test_report_interval(self, session, transport):
        outcome, output = _run(session, transport, "report 5")

        assert outcome is Outcome.OK
        assert output == "Report\nDelay: 5 seconds\n"
        assert session.reporting.enabled is True
        assert session.reporting.period_ms == 5000

    @pytest.mark.parametrize("payload", ["0", "-3"])
    def test_report_interval_must_be_positive(self, session, transport, payload):
        outcome, output = _run(session, transport, f"report {payload}")

        assert outcome is Outcome.FAILED
        assert output == "Report\nReport interval must be at least 1 second\n"
        assert session.reporting.enabled is False

    def test_report_on_off_inline(self, session, transport):
        _, output = _run(session, transport, "r on")
        assert output == "Report\nreport: reporting ON\n"
        assert session.reporting.enabled is True

        _, output = _run(session, transport, "report off")
        assert output == "Report\nreport: reporting OFF\n"
        assert session.reporting.enabled is False

    def test_report_descends(self, prompt_session, transport):
        _, output = _run(prompt_session, transport, "report")

        assert output == "Report\nreport> "
        assert prompt_session.active is prompt_session.layer(REPORT_LAYER)

        _, output = _run(prompt_session, transport, "on")
        assert output == "report: reporting ON\nreport> "

        _, output = _run(prompt_session, transport, "x")
        assert output == "Back to 'Main menu'\nMain menu> "


class TestExit:
    """Test leaving layers."""

    def test_exit_at_root_fails_softly(self, session, transport):
        ctx = DispatchContext(session, session.root, "exit", "exit", "")

        outcome = cmd_exit(ctx)

        assert outcome is Outcome.FAILED
        assert transport.getvalue() == "Already at 'Main menu'\n"
        assert session.active is session.root


class TestEchoAndPrompt:
    """Test interactive style switches."""

    def test_echo_on(self, session, transport):
        _, output = _run(session, transport, "echo on")
        assert output == "Echo ON\n"
        assert session.root.settings.echo_enabled is True

        _, output = _run(session, transport, "act amp")
        assert output == "act amp\nActual Amps = 7.90 A\n"

    def test_prompt_switch(self, session, transport):
        _, output = _run(session, transport, "prompt on")
        assert output == "Prompt ON\nMain menu> "

        _, output = _run(session, transport, "prompt off")
        assert output == "Prompt OFF\n"

    def test_show_current_state(self, session, transport):
        _, output = _run(session, transport, "echo")
        assert output == "Echo OFF\n"

    def test_bad_switch_raises_usage_error(self, session):
        with pytest.raises(UsageError, match=r"Usage: echo \[on\|off\]"):
            session.handle_line("echo maybe")


class TestHelp:
    """Test help on each layer."""

    def test_help_alias(self, session, transport):
        _, output = _run(session, transport, "?")
        assert output.startswith("Available commands in 'Main menu':\n")

    def test_parameter_help_uses_domain_label(self, session, transport):
        _, output = _run(session, transport, "max ?")
        assert output.startswith("Actual max Available commands in 'Actual max':\n")
        assert "exit (x)" in output
