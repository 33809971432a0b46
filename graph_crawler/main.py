"""
Command-line entry point.

    graph-crawler <startNode> <depth> [workerCount]

Visited nodes are written to stdout as "- <node>" lines in the order their
processing began; the run summary goes to stderr.
"""

import sys
import argparse
from typing import List, Optional, TextIO

from graph_crawler.config import ConfigManager, CrawlerConfig, LOG_LEVELS
from graph_crawler.concurrent.controller import bfs_parallel
from graph_crawler.concurrent.models import CrawlResult
from graph_crawler.services.neighbor_service import NeighborService
from graph_crawler.utils.logging import setup_logging, get_logger
from graph_crawler.utils.errors import ArgumentError, ConfigurationError, CrawlerError, GraphCrawlerError


logger = get_logger(__name__)


class CrawlerArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises ArgumentError instead of exiting."""

    def error(self, message):
        raise ArgumentError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = CrawlerArgumentParser(
        prog="graph-crawler",
        description="Parallel breadth-first crawl of a remote graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  graph-crawler "Tom Hanks" 2          # depth 2 with the default 8 workers
  graph-crawler "Tom Hanks" 3 32       # depth 3 with 32 workers
  graph-crawler "Tom Hanks" 1 --debug  # log every request and response
        """
    )

    parser.add_argument('start_node', help='Node to start the crawl from')
    parser.add_argument('depth', help='Maximum distance from the start node (integer >= 0)')
    parser.add_argument('workers', nargs='?', default=None,
                        help='Number of worker threads (integer > 0, default from config)')

    options = parser.add_argument_group('service options')
    options.add_argument('--config', help='Path to a JSON configuration file')
    options.add_argument('--service-url', help='Base URL of the neighbor service')
    options.add_argument('--timeout', help='Per-request timeout in seconds')
    options.add_argument('--debug', action='store_true', default=None,
                         help='Log every request URL and response body')
    options.add_argument('--log-level', choices=LOG_LEVELS, help='Logging level')

    return parser


def parse_int(value: str, name: str) -> int:
    """
    Parse a whole-string integer argument.

    Raises:
        ArgumentError: If value is not an integer
    """
    try:
        return int(value.strip())
    except ValueError:
        raise ArgumentError(f"Invalid numeric argument for {name}: {value!r}", {name: value})


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse and validate command-line arguments.

    Raises:
        ArgumentError: On any malformed or out-of-range argument
    """
    args = build_parser().parse_args(argv)

    args.depth = parse_int(args.depth, "depth")
    if args.depth < 0:
        raise ArgumentError("depth must be >= 0", {"depth": args.depth})

    if args.workers is not None:
        args.workers = parse_int(args.workers, "workers")
        if args.workers <= 0:
            raise ArgumentError("workerCount must be > 0", {"workers": args.workers})

    if args.timeout is not None:
        try:
            args.timeout = float(args.timeout)
        except ValueError:
            raise ArgumentError(f"Invalid timeout: {args.timeout!r}")

    return args


def load_config(args: argparse.Namespace) -> CrawlerConfig:
    """Build the run configuration: file and environment first, then CLI flags."""
    manager = ConfigManager(args.config)
    manager.load_config()
    config_data = manager.export_config()

    if args.service_url:
        config_data["service_url"] = args.service_url
    if args.timeout is not None:
        config_data["request_timeout"] = args.timeout
    if args.debug:
        config_data["debug"] = True
        config_data["log_level"] = "DEBUG"
    if args.log_level:
        config_data["log_level"] = args.log_level

    return CrawlerConfig(**config_data)


def write_result(result: CrawlResult, out: TextIO, err: TextIO) -> None:
    """Write the node listing to out and the summary line to err."""
    for node in result.nodes:
        out.write(f"- {node}\n")
    out.flush()
    err.write(result.summary_line() + "\n")


def run(args: argparse.Namespace, config: CrawlerConfig,
        service: Optional[NeighborService] = None) -> CrawlResult:
    """Crawl using service, or an HTTPNeighborService built from config."""
    logger.debug(f"Neighbor service: {config.service_url} (timeout {config.request_timeout}s)")
    return bfs_parallel(args.start_node, args.depth, args.workers, service=service, config=config)


def report_error(error: GraphCrawlerError) -> None:
    """Write an error and any listed violations to stderr."""
    errors = error.details.get("errors")
    if errors:
        sys.stderr.write(f"Error: {error.message}: {'; '.join(errors)}\n")
    else:
        sys.stderr.write(f"Error: {error.message}\n")


def main(argv: Optional[List[str]] = None, service: Optional[NeighborService] = None) -> int:
    """
    CLI entry point.

    Returns:
        Process exit code: 0 on success, 1 on argument or configuration errors
    """
    try:
        args = parse_arguments(argv)
    except ArgumentError as e:
        sys.stderr.write("Usage: graph-crawler <node_name> <depth> [num_threads]\n")
        report_error(e)
        return 1

    try:
        config = load_config(args)
    except ConfigurationError as e:
        report_error(e)
        return 1

    setup_logging(config.log_level, config.log_file)

    try:
        result = run(args, config, service)
    except CrawlerError as e:
        report_error(e)
        return 1

    write_result(result, sys.stdout, sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
