"""Module entrypoint to support ``python -m tlsync.cli`` invocation."""

from __future__ import annotations

from tlsync.cli.app import run


def main() -> None:
    """Execute the Typer application."""

    run()


if __name__ == "__main__":
    main()
