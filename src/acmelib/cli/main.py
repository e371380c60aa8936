"""acmelib command-line entry point.

Usage::

    acmelib -c client.yaml account --email foo@bar.com
    acmelib -c client.yaml order --email foo@bar.com example.com www.example.com
    acmelib -c client.yaml certificate --email foo@bar.com example.com
    python -m acmelib -c client.yaml order --email foo@bar.com example.com
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acmelib.config.settings import ClientSettings

log = logging.getLogger(__name__)


def _get_version() -> str:
    from acmelib import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="acmelib",
        description="acmelib -- ACME client for account registration and order creation",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    account = subparsers.add_parser("account", help="Register or look up an account")
    account.add_argument("--email", required=True, help="Contact email (persistence realm)")
    account.add_argument(
        "--show-key",
        action="store_true",
        default=False,
        help="Print the account private key PEM",
    )

    order = subparsers.add_parser("order", help="Create a new order")
    order.add_argument("--email", required=True, help="Contact email (persistence realm)")
    order.add_argument("primary_name", help="Primary domain name (certificate CN)")
    order.add_argument("alt_names", nargs="*", help="Additional domain names")

    cert = subparsers.add_parser("certificate", help="Show a persisted certificate")
    cert.add_argument("--email", required=True, help="Contact email (persistence realm)")
    cert.add_argument("primary_name", help="Primary domain name")

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs a command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    from acmelib.config import ConfigError, load_settings

    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        _print_error(str(exc))
        sys.exit(1)

    from acmelib.logging import configure_logging

    configure_logging(settings.logging)

    from acmelib.errors import AcmeError

    try:
        _run(settings, args)
    except AcmeError as exc:
        if args.debug:
            raise
        _print_error(str(exc))
        sys.exit(1)


def _run(settings: ClientSettings, args: argparse.Namespace) -> None:
    from acmelib.directory import Directory

    directory = Directory.from_settings(settings)
    account = directory.account(args.email)

    if args.command == "certificate":
        cert = account.certificate(args.primary_name)
        if cert is None:
            print(f"no certificate persisted for {args.primary_name}")  # noqa: T201
            sys.exit(2)
        print(cert.certificate, end="")  # noqa: T201
    elif args.command == "account":
        print(account.account_url)  # noqa: T201
        if args.show_key:
            print(account.acme_private_key_pem(), end="")  # noqa: T201
    elif args.command == "order":
        order = account.new_order(args.primary_name, args.alt_names)
        print(  # noqa: T201
            json.dumps(
                {
                    "url": order.url,
                    "status": order.status,
                    "identifiers": [i.to_dict() for i in order.identifiers()],
                    "authorizations": list(order.authorization_urls),
                    "finalize": order.finalize_url,
                },
                indent=2,
            )
        )
