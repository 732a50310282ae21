"""Command-line interface for the RouterOS REST client.

Runs a single REST call and prints the decoded JSON result to stdout.
Configuration comes from a config file, environment variables and
command-line arguments, in increasing order of precedence.

Example:
    routeros-rest -u admin -p secret 192.168.88.1 print ip/address
    routeros-rest -u admin -p secret --insecure 192.168.88.1 set system/identity \\
        --data '{"name": "core-1"}'
"""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any

from routeros_rest import __version__
from routeros_rest.api import RouterOSRestClient
from routeros_rest.config import Settings, load_settings_from_file, set_settings
from routeros_rest.exceptions import RouterOSError
from routeros_rest.observability.logging import set_correlation_id, setup_logging

logger = logging.getLogger(__name__)

VERBS = ("print", "add", "set", "remove", "delete", "run", "command", "auth")
PAYLOAD_VERBS = ("add", "set", "run", "command")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="routeros-rest",
        description="RouterOS REST client - run one REST call against a MikroTik device",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--config", "-c", type=Path, help="Path to configuration file (YAML or TOML)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )

    parser.add_argument("--log-format", choices=["json", "text"], help="Log output format")

    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification (self-signed devices)",
    )

    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")

    parser.add_argument(
        "--protocol", choices=["http", "https"], help="Force protocol instead of probing port 443"
    )

    parser.add_argument("--username", "-u", default="", help="RouterOS username")
    parser.add_argument("--password", "-p", default="", help="RouterOS password")

    parser.add_argument("host", help="Device hostname or IP")
    parser.add_argument("verb", choices=VERBS, help="RouterOS verb")
    parser.add_argument(
        "command", nargs="?", default="", help="REST path, e.g. ip/address (unused for auth)"
    )
    parser.add_argument("--data", "-d", help="JSON payload for add/set/run")

    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    return parser


def load_config_from_args(parsed_args: argparse.Namespace) -> Settings:
    """Build Settings from a config file, the environment and CLI overrides.

    Args:
        parsed_args: Parsed command-line arguments

    Returns:
        Configured Settings instance
    """
    if parsed_args.config:
        settings = load_settings_from_file(parsed_args.config)
    else:
        settings = Settings()

    cli_overrides: dict[str, Any] = {}

    if parsed_args.log_level is not None:
        cli_overrides["log_level"] = parsed_args.log_level

    if parsed_args.log_format is not None:
        cli_overrides["log_format"] = parsed_args.log_format

    if parsed_args.insecure:
        cli_overrides["verify_ssl"] = False

    if parsed_args.timeout is not None:
        cli_overrides["timeout_seconds"] = parsed_args.timeout

    if cli_overrides:
        settings = Settings(**{**settings.model_dump(), **cli_overrides})

    return settings


async def run_command(parsed_args: argparse.Namespace) -> Any:
    """Execute the verb described by parsed arguments.

    Returns:
        Decoded JSON result (None for auth)
    """
    set_correlation_id(str(uuid.uuid4()))
    payload = parsed_args.data if parsed_args.verb in PAYLOAD_VERBS else None

    async with RouterOSRestClient(
        parsed_args.host,
        parsed_args.username,
        parsed_args.password,
        protocol=parsed_args.protocol,
    ) as client:
        if parsed_args.verb == "auth":
            await client.auth()
            return None
        if parsed_args.verb in PAYLOAD_VERBS:
            return await getattr(client, parsed_args.verb)(parsed_args.command, payload)
        return await getattr(client, parsed_args.verb)(parsed_args.command)


def main(args: list[str] | None = None) -> int:
    """CLI entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    parser = create_argument_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.verb != "auth" and not parsed_args.command:
        parser.error(f"command is required for {parsed_args.verb}")

    if parsed_args.data is not None:
        if parsed_args.verb not in PAYLOAD_VERBS:
            parser.error(f"--data is not accepted by {parsed_args.verb}")
        try:
            json.loads(parsed_args.data)
        except ValueError as e:
            parser.error(f"--data is not valid JSON: {e}")

    try:
        settings = load_config_from_args(parsed_args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    set_settings(settings)
    setup_logging(level=settings.log_level, json_format=settings.log_format == "json")

    try:
        result = asyncio.run(run_command(parsed_args))
    except RouterOSError as e:
        logger.error("%s failed: %s", parsed_args.verb, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed_args.verb == "auth":
        print("Authentication success")
    else:
        print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
