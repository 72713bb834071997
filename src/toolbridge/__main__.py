"""CLI entry point for toolbridge."""

import sys


def main() -> int:
    """Main entry point for the toolbridge CLI."""
    from toolbridge.cli import run_cli

    return run_cli(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
