"""Entry point for `python -m treasurebot` command."""

import sys


def main(args: list[str] | None = None) -> int:
    """Main entry point for the treasurebot CLI."""
    if args is None:
        args = sys.argv[1:]

    if not args or args[0] in ["-h", "--help", "help"]:
        print_help()
        return 0

    command = args[0]

    if command == "version":
        print_version()
        return 0
    elif command == "run":
        return run_bot(args[1:])
    elif command == "config":
        return run_config(args[1:])
    else:
        print(f"Unknown command: {command}")
        print_help()
        return 1


def print_help() -> None:
    """Print CLI help message."""
    print(
        """treasurebot - Hero orchestration for treasure-map play

Usage:
    python -m treasurebot <command> [options]

Commands:
    version     Show version information
    run         Run the bot (see run --help)
    config      Configuration management
    help        Show this help message

Options:
    -h, --help  Show help message
"""
    )


def print_version() -> None:
    """Print version information."""
    from treasurebot import __version__
    from treasurebot.utils.version import VERSION_CODE

    print(f"treasurebot {__version__} (version code {VERSION_CODE})")


def run_bot(args: list[str]) -> int:
    """Run the bot command."""
    from treasurebot.cli.run import run

    try:
        run.main(args=args, prog_name="treasurebot run", standalone_mode=False)
        return 0
    except SystemExit as e:
        return e.code or 0  # type: ignore
    except Exception as e:
        print(f"Error: {e}")
        return 1


def run_config(args: list[str]) -> int:
    """Run the config command."""
    from treasurebot.cli.config import run_config_command

    return run_config_command(args)


if __name__ == "__main__":
    sys.exit(main())
