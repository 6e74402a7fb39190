"""
Command line interface.

    basketball-api [serve]       load, validate and serve
    basketball-api config show   print the sanitized configuration as JSON
    basketball-api config check  validate; exit 0 when valid, 1 otherwise
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from basketball_api import __version__
from basketball_api.config import (
    ConfigurationValidator,
    EnvironmentConfig,
    register_service_keys,
)
from basketball_api.exceptions import BasketballApiException
from basketball_api.main import load_configuration, serve


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basketball-api",
        description="Basketball API service.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--env-dir",
        default=None,
        help="Directory containing the .env files (defaults to the current directory).",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the HTTP server (default).")

    config_parser = subparsers.add_parser("config", help="Inspect the resolved configuration.")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_sub.add_parser("show", help="Print the sanitized configuration as JSON.")
    config_sub.add_parser("check", help="Validate required keys and secrets.")

    return parser


def _config_show(env_dir: Optional[str]) -> int:
    config = register_service_keys(EnvironmentConfig.load(working_dir=env_dir))
    print(json.dumps(config.get_sanitized_view(), indent=2, sort_keys=True))
    return 0


def _config_check(env_dir: Optional[str]) -> int:
    config = register_service_keys(EnvironmentConfig.load(working_dir=env_dir))
    validator = ConfigurationValidator(
        required_keys=config.required_keys,
        secret_keys=config.secret_keys,
        environment=config.environment,
    )
    result = validator.validate(config.values)

    for warning in validator.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if result.missing_keys:
        print(f"missing: {', '.join(sorted(result.missing_keys))}", file=sys.stderr)
    if result.insecure_keys:
        print(f"insecure: {', '.join(sorted(result.insecure_keys))}", file=sys.stderr)

    if result.is_valid:
        print(f"Configuration is valid for {config.environment} environment")
        return 0
    return 1


def _serve(env_dir: Optional[str]) -> int:
    try:
        config, settings = load_configuration(working_dir=env_dir)
    except BasketballApiException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    return asyncio.run(serve(config, settings))


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "config":
        try:
            if args.config_command == "show":
                return _config_show(args.env_dir)
            return _config_check(args.env_dir)
        except BasketballApiException as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 1

    return _serve(args.env_dir)


if __name__ == "__main__":
    sys.exit(main())
