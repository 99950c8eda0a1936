"""CLI entrypoint: run one Alexa directive against openHAB."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from alexa_gate.app import handle_event
from alexa_gate.config import ConfigError, load_config
from alexa_gate.services.openhab import OpenHABService

logger = logging.getLogger("alexa_gate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Supports:
        --config PATH    Config file path (default: config.yaml)
        directive        Directive JSON file, or - for stdin
    """
    parser = argparse.ArgumentParser(description="alexa-gate: Alexa directives for openHAB")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("directive", help="Directive JSON file (- for stdin)")
    return parser.parse_args(argv)


def read_event(path: str) -> dict:
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


async def run(args: argparse.Namespace) -> dict:
    """Load config, execute the directive and return the response."""
    config = load_config(args.config)
    logging.getLogger().setLevel(config.log_level)

    event = read_event(args.directive)
    openhab = OpenHABService(config.openhab)
    try:
        if not await openhab.health_check():
            logger.warning("openHAB unreachable at %s, continuing anyway", config.openhab.url)
        return await handle_event(event, openhab)
    finally:
        await openhab.close()


def main(argv: list[str] | None = None) -> None:
    """Synchronous entrypoint for the CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        stream=sys.stderr,
    )
    args = parse_args(argv)
    try:
        response = asyncio.run(run(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot read directive: %s", e)
        sys.exit(1)
    print(json.dumps(response, indent=2))


if __name__ == "__main__":
    main()
