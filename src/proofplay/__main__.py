"""Entry point for the proofplay client."""

import argparse
import logging
import sys


def main():
    """Main entry point for the proofplay CLI."""
    parser = argparse.ArgumentParser(
        description="proofplay - formula rewriting puzzle client",
        prog="proofplay",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    client_parser = subparsers.add_parser("client", help="Start the interactive text client")
    client_parser.add_argument(
        "--host",
        default=None,
        help="Proof engine host (default: from settings)",
    )
    client_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Proof engine port (default: from settings)",
    )
    client_parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level, e.g. DEBUG or INFO (default: from settings)",
    )

    args = parser.parse_args()

    if args.command == "client":
        from proofplay.client.text import run
        from proofplay.config import get_settings

        overrides = {
            key: value
            for key, value in (("host", args.host), ("port", args.port), ("log_level", args.log_level))
            if value is not None
        }
        settings = get_settings().model_copy(update=overrides)

        logging.basicConfig(level=settings.log_level.upper())
        run(settings)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
