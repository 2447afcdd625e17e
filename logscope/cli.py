"""
CLI — Command interface for job log queries

Quiet by default: prints the operation result and nothing else.
Diagnostics go to stderr through logging (--verbose for DEBUG).

    logscope [--project-dir DIR] [--timeout SECONDS] [--verbose] <command> ORG PIPELINE BUILD JOB [options]

Exit status is 1 when the result is an error.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigManager
from .core.cache import LogCache, SnapshotCache
from .core.cancellation import CancellationToken
from .delivery import AdaptiveDeliveryController
from .services.sources import LogSource, get_source
from . import __version__


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class LogScopeCLI:
    """
    Holds the resources handlers share: config, log source, cache,
    delivery controller and cancellation token.

    Resources are created on first use, so `logscope config` never
    touches the cache directory or the network.
    """

    def __init__(self, project_dir: Path, source_dir: Optional[Path] = None,
                 timeout: Optional[float] = None):
        self.project_dir = Path(project_dir)
        self.config_manager = ConfigManager(self.project_dir)
        self.config = self.config_manager.load()

        if source_dir:
            self.config.source.kind = "directory"
            self.config.source.directory = str(source_dir)

        self.token = CancellationToken(timeout)
        self._source: Optional[LogSource] = None
        self._cache: Optional[LogCache] = None
        self._delivery: Optional[AdaptiveDeliveryController] = None

    @property
    def source(self) -> LogSource:
        if self._source is None:
            self._source = get_source(self.config)
        return self._source

    @property
    def cache(self) -> LogCache:
        if self._cache is None:
            self._cache = SnapshotCache(self.config.cache.path, self.source)
        return self._cache

    @property
    def delivery(self) -> AdaptiveDeliveryController:
        if self._delivery is None:
            self._delivery = AdaptiveDeliveryController(self.config.delivery.token_threshold)
        return self._delivery


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logscope",
        description="LogScope -- Query and fetch CI job logs",
        epilog="Set BUILDKITE_API_TOKEN to read logs from Buildkite.",
    )

    parser.add_argument(
        '--project-dir', '-p',
        default=os.environ.get("LOGSCOPE_PROJECT_PATH", "."),
        help='Project directory for .logscope/config.yaml (default: LOGSCOPE_PROJECT_PATH or current)'
    )
    parser.add_argument(
        '--timeout',
        type=float,
        metavar='SECONDS',
        help='Abandon the query once it has run this long (default: no limit)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Debug logging on stderr'
    )
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'logscope {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Register all handlers (self-registration pattern)
    from .handlers import register_all
    register_all(subparsers)

    return parser


def main(argv=None) -> int:
    """
    Main entry point for the LogScope CLI.

    Returns:
        Process exit status (0 success, 1 error result)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.timeout is not None and args.timeout < 0:
        parser.error("--timeout must be >= 0")

    configure_logging(args.verbose)

    cli = LogScopeCLI(
        Path(args.project_dir),
        source_dir=getattr(args, 'source_dir', None),
        timeout=args.timeout,
    )

    if args.command != 'config':
        error = cli.config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    from .handlers import dispatch, get_registered_commands
    if args.command not in get_registered_commands():
        print(f"Error: Unknown command: {args.command}", file=sys.stderr)
        parser.print_help()
        return 1

    result = dispatch(args.command, cli, args)

    print(result.text)
    return 1 if result.is_error else 0


if __name__ == '__main__':
    sys.exit(main())
