#!/usr/bin/env python3
"""Start a node and wallet stack and keep it running until interrupted.

Usage:
    cardano-launcher jormungandr self ./test/data/jormungandr ./state
    cardano-launcher byron mainnet $BYRON_CONFIGS ./state --api-port 8090
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import IO, Any, Optional, Sequence

from .backends import ByronNodeConfig, JormungandrConfig, NodeConfig
from .config import ConfigurationError
from .errors import LaunchError
from .launcher import EXIT_EVENT, LaunchConfig, Launcher, LauncherExitStatus
from .launcher_helpers import install_signal_handlers
from .log import StdlibLogger
from .logging_config import setup_logging
from .service_runner import StateDirLock, run_async_service

logger = logging.getLogger("cardano_launcher.cli")

BACKEND_KINDS = ("jormungandr", "byron")
MAX_PORT = 65535


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardano-launcher",
        description="Start a blockchain node and its wallet backend as one stack.",
    )
    parser.add_argument("backend", choices=BACKEND_KINDS, help="Node backend kind")
    parser.add_argument("network", help="Network name (e.g. self, itn_rewards_v1, mainnet, testnet)")
    parser.add_argument("config_dir", type=Path, help="Directory containing the network configuration files")
    parser.add_argument("state_dir", type=Path, help="Directory for chain data, wallet databases and sockets")
    parser.add_argument("--api-port", type=int, default=None, help="Wallet API port (default: a free port)")
    parser.add_argument("--stop-timeout", type=float, default=None, help="Seconds to wait before SIGKILL on shutdown")
    parser.add_argument("--log-file", type=Path, default=None, help="Write node and wallet output to this file")
    parser.add_argument("--log-dir", type=Path, default=None, help="Also write launcher logs to <dir>/cardano-launcher.log")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug messages to the console")
    parser.add_argument(
        "--node-arg",
        dest="extra_args",
        action="append",
        default=[],
        help="Extra argument passed to the node (repeatable)",
    )
    return parser


def node_config_from_args(args: argparse.Namespace) -> NodeConfig:
    extra_args = tuple(args.extra_args)
    if args.backend == "jormungandr":
        return JormungandrConfig(configuration_dir=str(args.config_dir), network=args.network, extra_args=extra_args)
    if args.backend == "byron":
        return ByronNodeConfig(configuration_dir=str(args.config_dir), network=args.network, extra_args=extra_args)
    raise ConfigurationError.unknown_backend(args.backend)


def validate_args(args: argparse.Namespace) -> None:
    """Reject option values argparse cannot range-check."""
    if args.api_port is not None and not 0 < args.api_port <= MAX_PORT:
        raise ConfigurationError.invalid_value("--api-port", args.api_port, f"Expected a TCP port between 1 and {MAX_PORT}")
    if args.stop_timeout is not None and args.stop_timeout < 0:
        raise ConfigurationError.invalid_value("--stop-timeout", args.stop_timeout, "Durations cannot be negative")


def exit_code_for(status: Optional[LauncherExitStatus]) -> int:
    """0 when the stack was stopped on request, 1 when a service brought it down."""
    if status is None or not status.requested:
        return 1
    return 0


async def run_launcher(launch_config: LaunchConfig, lock: Optional[StateDirLock] = None) -> int:
    launcher = Launcher(launch_config, StdlibLogger(logging.getLogger("cardano_launcher")))
    finished: asyncio.Future = asyncio.get_running_loop().create_future()

    def _on_exit(status: LauncherExitStatus) -> None:
        if not finished.done():
            finished.set_result(status)

    launcher.events.once(EXIT_EVENT, _on_exit)
    remove_handlers = install_signal_handlers(launcher)
    try:
        try:
            api = await launcher.start()
        except LaunchError as exc:
            if launcher.stop_requested:
                logger.info("Stopped while starting:\n%s", exc)
                return 0
            logger.error("Failed to start:\n%s", exc)
            return 1
        logger.info("Wallet API running at %s", api.base_url)
        if lock is not None:
            lock.record_api_port(api.port)
        status = await finished
        logger.info("Stack stopped:\n%s", status.describe())
        return exit_code_for(status)
    finally:
        remove_handlers()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("cardano-launcher", log_dir=args.log_dir, verbose=args.verbose)

    try:
        validate_args(args)
        node_config = node_config_from_args(args)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    log_stream: Optional[IO[Any]] = None
    if args.log_file is not None:
        args.log_file.parent.mkdir(parents=True, exist_ok=True)
        log_stream = open(args.log_file, "ab")

    launch_config = LaunchConfig(
        state_dir=str(args.state_dir),
        network_name=args.network,
        node_config=node_config,
        api_port=args.api_port,
        child_process_log_write_stream=log_stream,
        stop_timeout_seconds=args.stop_timeout,
    )
    try:
        return run_async_service(lambda lock: run_launcher(launch_config, lock), state_dir=args.state_dir)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2
    finally:
        if log_stream is not None:
            log_stream.close()


if __name__ == "__main__":
    raise SystemExit(main())
