"""Entry point for running cmdlayers as a module."""

# run() in repl.py is the error boundary for each input line, and main() in
# cli.py handles startup and transport failures.

from cmdlayers.cli import main

if __name__ == "__main__":
    main()
