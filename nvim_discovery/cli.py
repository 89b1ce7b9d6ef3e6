"""Argument parsing, configuration loading, and discovery bootstrap."""

from __future__ import annotations

import argparse
import logging
import sys

from .config import AppConfig, EnvironmentConfig, load_config
from .exceptions import ConfigError, ConfigurationMissing
from .logging_config import configure_logging
from .selector import InstanceSelector

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_MATCH = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nvim-discovery",
        description="Find the running Neovim server whose working directory contains a path",
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="File or directory to find an owning Neovim instance for",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to an optional YAML configuration file",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print every responding instance and its working directory",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.target is None and not args.list:
        parser.error("a target path is required unless --list is given")

    config = AppConfig()
    if args.config:
        try:
            config = load_config(args.config)
        except ConfigError as exc:
            print(f"Configuration error: {exc}", file=sys.stderr)
            return EXIT_ERROR

    configure_logging(config.logging)

    selector = InstanceSelector(config, EnvironmentConfig.from_environ())

    try:
        if args.list:
            for instance in selector.discover():
                print(f"{instance.server_address}\t{instance.working_directory}")
            return EXIT_OK
        instance = selector.select(args.target)
    except ConfigurationMissing as exc:
        print(f"Error: {exc}.", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_ERROR

    if instance is None:
        return EXIT_NO_MATCH
    print(instance.server_address)
    return EXIT_OK
