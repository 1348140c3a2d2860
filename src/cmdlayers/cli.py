"""Command-line entry point for cmdlayers."""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from cmdlayers import profile
from cmdlayers.errors import AppError
from cmdlayers.logging_utils import log_event, setup_logging
from cmdlayers.menus import build_session
from cmdlayers.models import Profile
from cmdlayers.repl import run
from cmdlayers.transport import ConsoleTransport, ScriptTransport, SerialTransport, Transport


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdlayers",
        description="cmdlayers - layered command console for domain parameters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a profile with default settings
  cmdlayers init --profile ~/cmdlayers.json

  # Interactive console session
  cmdlayers -p ~/cmdlayers.json

  # Serve the command layers on a serial port
  cmdlayers --port /dev/ttyUSB0 --baud 115200

  # Replay a file of commands and exit
  cmdlayers --script commands.txt
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")
    parser_init = subparsers.add_parser("init", help="Create a new profile")
    parser_init.add_argument(
        "--profile", "-p",
        required=True,
        help="Path where to save the profile",
    )

    parser.add_argument("--profile", "-p", help="Path to profile JSON file")
    parser.add_argument("--port", help="Serial device to serve (implies serial transport)")
    parser.add_argument("--baud", type=int, help="Serial baud rate")
    parser.add_argument("--script", help="Replay commands from a file instead of reading input")
    parser.add_argument("--log-file", help="Write structured event logs to this file")
    parser.add_argument("--debug", action="store_true", help="Show tracebacks for unexpected errors")
    return parser


def _apply_overrides(prof: Profile, args: argparse.Namespace) -> Profile:
    """Let command-line flags take precedence over profile values."""
    updates: dict[str, object] = {}
    if args.port:
        updates["transport"] = "serial"
        updates["serial_port"] = args.port
    if args.baud is not None:
        if args.baud <= 0:
            raise AppError("--baud must be a positive integer")
        updates["baud_rate"] = args.baud
    if args.log_file:
        updates["log_file"] = profile.map_path(args.log_file)
    if args.debug:
        updates["debug"] = True
    return replace(prof, **updates)


def _open_transport(prof: Profile, script: str | None) -> Transport:
    if script:
        try:
            lines = Path(script).read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise AppError(f"Cannot read script {script}: {e}") from e
        return ScriptTransport(lines, mirror=sys.stdout)
    if prof.transport == "serial":
        if not prof.serial_port:
            raise AppError("No serial port configured. Use --port or set serial_port in the profile")
        return SerialTransport(prof.serial_port, prof.baud_rate)
    return ConsoleTransport()


def _run_init(profile_path: str) -> None:
    try:
        prof = profile.create_profile(profile_path)
    except AppError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Profile created: {profile_path}")
    print(f"Transport: {prof.transport}")
    print(f"Report period: {prof.report_period_seconds} s")
    print()
    print(f"Start the console with: cmdlayers --profile {profile_path}")


def _load_profile(profile_path: str | None) -> Profile:
    if not profile_path:
        return Profile()
    try:
        return profile.load_profile(profile_path)
    except FileNotFoundError:
        print(f"ERROR: Profile not found: {profile_path}")
        print(f"Create it with: cmdlayers init --profile {profile_path}")
        sys.exit(1)
    except AppError as e:
        print(f"ERROR: {e}")
        sys.exit(1)


def main() -> None:
    """Main entry point for the cmdlayers CLI."""
    args = _build_parser().parse_args()

    if args.command == "init":
        _run_init(args.profile)
        return

    prof = _load_profile(args.profile)

    try:
        prof = _apply_overrides(prof, args)
        setup_logging(prof.log_file, prof.debug)
        transport = _open_transport(prof, args.script)
    except AppError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    session = build_session(transport, prof)
    log_event(
        "app_start",
        transport="script" if args.script else prof.transport,
        profile_file=args.profile,
        log_file=prof.log_file,
        reporting=prof.reporting,
    )

    try:
        run(session)
    except AppError as e:
        # Transport failures end the session; everything else is handled per line
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        transport.close()
        log_event("app_stop")


if __name__ == "__main__":
    main()
