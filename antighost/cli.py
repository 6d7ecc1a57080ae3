#!/usr/bin/env python3
"""
Command line entry point for Anti-Ghost-Ping.

Usage:
    anti-ghost-ping                 # same as 'run'
    anti-ghost-ping run [--debug]
    anti-ghost-ping init-config
    anti-ghost-ping sweep [--ttl-hours 12]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config
from .exceptions import AntiGhostError, ConfigurationError
from .log_manager import configure_logging, get_logger
from .reporting import ConsoleDisplay
from .watcher import GhostPingWatcher


def load_config(args) -> Config:
    config = Config.load(args.config)
    if args.db_path:
        config.db_path = str(args.db_path)
    return config


async def cmd_run_async(args, display: ConsoleDisplay):
    watcher = GhostPingWatcher(load_config(args), display=display)
    try:
        await watcher.run_forever()
    finally:
        await watcher.close()


async def cmd_sweep_async(args, display: ConsoleDisplay):
    config = load_config(args)
    if args.ttl_hours is not None:
        if args.ttl_hours <= 0:
            raise ConfigurationError(f"--ttl-hours must be positive, got {args.ttl_hours}")
        config.pending_ttl_hours = args.ttl_hours
    watcher = GhostPingWatcher(config, display=display)
    await watcher.store.initialize()
    try:
        evicted = await watcher.sweep()
        remaining = await watcher.mentions.count()
    finally:
        await watcher.store.close()
    display.info(f"Evicted {evicted} pending mentions, {remaining} still pending.")


def cmd_init_config(args, display: ConsoleDisplay) -> int:
    path = Path(args.config) if args.config else Config.default_path()
    if path.exists():
        display.info(f"{path} already exists.")
    else:
        Config.write_template(path)
        display.info(f"Created {path}. Please fill it out and restart the script.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='anti-ghost-ping',
        description='Report mentions that were edited away or deleted in your Discord client'
    )
    parser.add_argument('--config', type=Path, default=None,
                        help='Config file (default: $ANTIGHOST_HOME/config.yaml)')
    parser.add_argument('--db-path', type=Path, default=None,
                        help='SQLite database overriding the configured one')
    parser.add_argument('--debug', action='store_true',
                        help='Verbose file logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.add_parser('run', help='Watch for ghost pings (default)')
    subparsers.add_parser('init-config', help='Write a config template')
    sweep_parser = subparsers.add_parser('sweep', help='Drop stale pending mentions and exit')
    sweep_parser.add_argument('--ttl-hours', type=float, default=None,
                              help='Override the configured retention')
    return parser


def main(argv: Optional[List[str]] = None, display: Optional[ConsoleDisplay] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(debug=args.debug or None)
    logger = get_logger('cli')
    display = display or ConsoleDisplay()

    command = args.command or 'run'
    try:
        if command == 'init-config':
            return cmd_init_config(args, display)
        if command == 'sweep':
            asyncio.run(cmd_sweep_async(args, display))
            return 0
        asyncio.run(cmd_run_async(args, display))
        return 0
    except ConfigurationError as e:
        display.error(str(e))
        return 1
    except AntiGhostError as e:
        logger.error(f"Fatal: {e}", exc_info=True)
        display.error(str(e))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == '__main__':
    sys.exit(main())
