"""
Connector Process Bootstrap

Every connector is a standalone script started by a parent process with:

    python my_connector.py --config config.json --state state.json \\
        --credentials credentials.json [--debug]

process() parses these flags, loads the files, sets up logging and hands
a ConnectorRun to the connector's entry point.

Usage:
    from connector_sdk.cli import process

    def run(ctx):
        for item in ctx.work_items():
            rows = fetch(item)
            ctx.messages.upsert_frame(rows, item.checkpoint_state(), item.request.id, item.ad_account_id)
            ctx.messages.checkpoint(item.checkpoint_state())

    if __name__ == "__main__":
        sys.exit(process(run))
"""

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from connector_sdk.accounts import get_normalized_ad_accounts
from connector_sdk.config import (
    ConfigFile,
    RunOptions,
    load_config_file,
    load_credentials_file,
    load_state_file,
)
from connector_sdk.dates import get_date_range_from_config
from connector_sdk.errors import ConnectorError
from connector_sdk.messages import MessageWriter
from connector_sdk.models import AdAccount, DateRange, Request, ResumeState, WorkItem
from connector_sdk.requests import get_requests
from connector_sdk.scheduler import get_work_items
from connector_sdk.utils import setup_connector_logging


def create_connector_parser(description: str) -> argparse.ArgumentParser:
    """
    Create the standard argument parser for connector scripts.

    Includes:
    - --config: Configuration file (default: config.json)
    - --state: Resume state file (default: state.json)
    - --credentials: Credentials file (default: credentials.json)
    - --debug: Human-readable output, no protocol messages
    - --verbose/-v: DEBUG log level

    Args:
        description: Description for the argument parser

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description=description,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python {script}                                  # Files from DATA_PATH
  python {script} --config conf/config.json        # Explicit config path
  python {script} --debug                          # Readable output, local files
        """.format(script="connector.py"),
    )

    files_group = parser.add_argument_group('Input Files')

    files_group.add_argument(
        "--config",
        default="config.json",
        metavar="PATH",
        help="Configuration file (default: config.json)",
    )

    files_group.add_argument(
        "--state",
        default="state.json",
        metavar="PATH",
        help="Resume state file (default: state.json)",
    )

    files_group.add_argument(
        "--credentials",
        default="credentials.json",
        metavar="PATH",
        help="Credentials file, optional (default: credentials.json)",
    )

    exec_group = parser.add_argument_group('Execution Options')

    exec_group.add_argument(
        "--debug",
        action="store_true",
        help="Debug mode: readable logs, rows not base64-encoded",
    )

    exec_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def options_from_args(args: argparse.Namespace) -> RunOptions:
    """Build RunOptions from parsed flags and the environment."""
    return RunOptions.from_env(
        debug=args.debug,
        config_path=args.config,
        state_path=args.state,
        credentials_path=args.credentials,
        log_level="DEBUG" if args.verbose else None,
    )


@dataclass
class ConnectorRun:
    """
    Everything a connector needs for one run.

    Attributes:
        config: Parsed configuration
        state: Raw resume state mapping
        credentials: Refreshed credentials, if a credentials file exists
        options: Process options (debug flag, paths)
        messages: Writer for protocol messages
        logger: Connector logger
    """
    config: ConfigFile
    state: Dict[str, str]
    options: RunOptions
    messages: MessageWriter
    logger: logging.Logger
    credentials: Optional[Dict[str, Any]] = None
    _work_items: Optional[List[WorkItem]] = field(default=None, repr=False)

    def date_range(self) -> DateRange:
        return get_date_range_from_config(self.config)

    def requests(self) -> List[Request]:
        return get_requests(self.config)

    def ad_accounts(self) -> List[AdAccount]:
        return get_normalized_ad_accounts(self.config)

    def resume_state(self) -> ResumeState:
        return ResumeState.from_mapping(self.state)

    def work_items(self) -> List[WorkItem]:
        """Scheduled work items, computed once per run."""
        if self._work_items is None:
            self._work_items = get_work_items(self.config, self.state)
        return self._work_items


def process(
    process_func: Callable[[ConnectorRun], None],
    argv: Optional[Sequence[str]] = None,
    name: str = "connector",
    description: str = "Connector process",
) -> int:
    """
    Run a connector entry point.

    Args:
        process_func: Connector entry point, called with the ConnectorRun
        argv: Command-line arguments (defaults to sys.argv[1:])
        name: Logger name for the connector
        description: Help text for the argument parser

    Returns:
        Process exit code: 0 on success, 1 if bootstrap or the run raised
        a ConnectorError (reported through a checkpoint message)
    """
    args = create_connector_parser(description).parse_args(argv)
    options = options_from_args(args)

    messages = MessageWriter(debug=options.debug)
    setup_connector_logging("connector_sdk", options.debug, options.log_level, messages)
    logger = setup_connector_logging(name, options.debug, options.log_level, messages)
    messages.logger = logger

    state: Dict[str, str] = {}
    try:
        config = load_config_file(options.config_path, options)
        state = load_state_file(options.state_path, options)
        credentials = load_credentials_file(options.credentials_path, options)

        if options.debug:
            logger.debug(f"Configuration: {config}")
            logger.debug(f"State: {state}")
            logger.debug(f"Credentials: {credentials}")

        run = ConnectorRun(
            config=config,
            state=state,
            options=options,
            messages=messages,
            logger=logger,
            credentials=credentials,
        )
        process_func(run)
    except ConnectorError as e:
        logger.error(f"Connector run failed: {e}")
        messages.checkpoint(state, e.to_qerror())
        return 1

    return 0
