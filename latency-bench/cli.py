"""
Command-line interface for the HTTP latency benchmark.
"""

import os
import sys
import logging
import argparse

import uvloop

# Add the current directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from configuration import (
    DEFAULT_CONCURRENCY,
    CONNECT_TIMEOUT_SECONDS,
    READ_TIMEOUT_SECONDS,
    LOG_LEVEL,
    LOG_FORMAT,
)
from common.errors import AllProbesFailed, BenchmarkError
from common.run_config import BenchmarkConfig
from visualization.report import render_summary

# Set up logging (only if not already configured)
if not logging.root.handlers:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class LatencyBenchCLI:
    """CLI interface for the HTTP latency benchmark."""

    def __init__(self, stdout=None):
        self.parser = self._create_parser()
        self.stdout = stdout or sys.stdout

    def _create_parser(self):
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description='HTTP request latency breakdown benchmark',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Ten concurrent requests, one per worker
  python cli.py benchmark -c 10 example.com

  # 200 samples over 16 workers, keep going when probes fail
  python cli.py benchmark -c 16 -n 200 --collect-errors https://example.com/

  # Phase breakdown of a single request
  python cli.py probe https://example.com/
            """
        )

        subparsers = parser.add_subparsers(dest='command', help='Available commands')

        # Benchmark command
        benchmark_parser = subparsers.add_parser('benchmark', help='Concurrent latency benchmark')
        benchmark_parser.add_argument('url', help='Target URL (http:// is assumed without a scheme)')
        benchmark_parser.add_argument('-c', '--concurrency', type=int, default=DEFAULT_CONCURRENCY,
                                      help=f'Number of concurrent workers (default: {DEFAULT_CONCURRENCY})')
        benchmark_parser.add_argument('-n', '--total-samples', type=int, default=None,
                                      help='Total samples to collect (default: one per worker)')
        benchmark_parser.add_argument('--collect-errors', action='store_true',
                                      help='Record failed probes and keep going instead of aborting')
        benchmark_parser.add_argument('--share-connections', action='store_true',
                                      help='Reuse pooled connections across probes')
        self._add_client_arguments(benchmark_parser)

        # Probe command
        probe_parser = subparsers.add_parser('probe', help='Measure a single request')
        probe_parser.add_argument('url', help='Target URL (http:// is assumed without a scheme)')
        self._add_client_arguments(probe_parser)

        return parser

    @staticmethod
    def _add_client_arguments(parser):
        parser.add_argument('--no-redirects', action='store_true',
                            help='Measure the first response instead of following redirects')
        parser.add_argument('--connect-timeout', type=float, default=CONNECT_TIMEOUT_SECONDS,
                            help=f'TCP connect and TLS handshake timeout in seconds (default: {CONNECT_TIMEOUT_SECONDS})')
        parser.add_argument('--read-timeout', type=float, default=READ_TIMEOUT_SECONDS,
                            help=f'Socket read timeout in seconds (default: {READ_TIMEOUT_SECONDS})')

    def _build_config(self, args) -> BenchmarkConfig:
        return BenchmarkConfig(
            url=args.url,
            concurrency=getattr(args, 'concurrency', 1),
            total_samples=getattr(args, 'total_samples', None),
            fail_fast=not getattr(args, 'collect_errors', False),
            share_connections=getattr(args, 'share_connections', False),
            follow_redirects=not args.no_redirects,
            connect_timeout=args.connect_timeout,
            read_timeout=args.read_timeout,
        )

    async def run_benchmark(self, args):
        """Run the concurrent benchmark."""
        from benchmark import BenchmarkRunner

        config = self._build_config(args)
        try:
            runner = BenchmarkRunner(config)
            outcome = await runner.run_benchmark()
        except AllProbesFailed as e:
            logger.error(f"Benchmark failed: {e}")
            return 1
        except BenchmarkError as e:
            logger.error(f"Benchmark aborted: {e}")
            return 1

        run_result = None if config.fail_fast else outcome.run_result
        self.stdout.write(render_summary(outcome.summary, run_result, requested=outcome.requested))
        return 0

    async def run_probe(self, args):
        """Measure a single request."""
        from benchmark import run_single_probe

        try:
            measurement = await run_single_probe(self._build_config(args))
        except BenchmarkError as e:
            logger.error(f"Probe failed: {e}")
            return 1

        self.stdout.write(render_summary(measurement))
        return 0

    def run(self, args=None):
        """Run the CLI with the given arguments."""
        if args is None:
            args = sys.argv[1:]

        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        try:
            if parsed_args.command == 'benchmark':
                return uvloop.run(self.run_benchmark(parsed_args))
            elif parsed_args.command == 'probe':
                return uvloop.run(self.run_probe(parsed_args))
            else:
                logger.error(f"Unknown command: {parsed_args.command}")
                return 1

        except KeyboardInterrupt:
            logger.info("Operation interrupted by user")
            return 1


def main():
    """Main entry point."""
    cli = LatencyBenchCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
