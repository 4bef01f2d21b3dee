"""
CLI for running the record reformer over JSON-lines event files.

Provides commands to validate a reformer configuration and to reform events.
"""

import argparse
import json
import sys

from record_reformer.core.reform import RecordReformer, ReformerConfigLoader
from record_reformer.observability.logger import get_logger, log_operation, setup_logger
from record_reformer.observability.metrics import start_metrics_server
from record_reformer.streaming.pipeline import ReformPipeline, event_to_json
from record_reformer.utils.config_values import ConfigurationError

logger = get_logger(__name__)


def check_config(args: argparse.Namespace) -> int:
    """
    Validate a configuration file and print the resolved configuration.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for a valid configuration)
    """
    try:
        config = ReformerConfigLoader(args.config).load_config()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        print(json.dumps({"status": "invalid", "error": str(e)}), file=sys.stderr)
        return 1

    output = {
        "status": "valid",
        "config": config.model_dump(by_alias=True),
    }
    print(json.dumps(output, indent=2))
    return 0


def run_reformer(args: argparse.Namespace) -> int:
    """
    Reform JSON-lines events from a file or stdin.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        reformer = RecordReformer.from_yaml(args.config, hostname=args.hostname)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        print(json.dumps({"status": "invalid", "error": str(e)}), file=sys.stderr)
        return 1

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    pipeline = ReformPipeline(reformer)

    input_stream = sys.stdin if args.input == "-" else open(args.input, encoding="utf-8")
    output_stream = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8")

    def write_event(event) -> None:
        output_stream.write(event_to_json(event) + "\n")

    try:
        with log_operation("Reforming events", logger=logger, source=args.input):
            pipeline.process_lines(input_stream, write_event)
    finally:
        if input_stream is not sys.stdin:
            input_stream.close()
        if output_stream is not sys.stdout:
            output_stream.close()
        else:
            output_stream.flush()

    summary = {"status": "completed", **pipeline.get_metrics()}
    print(json.dumps(summary), file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the reformer CLI."""
    parser = argparse.ArgumentParser(
        description="Rewrite event tags and records from templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate a configuration
  %(prog)s check --config reformer.yaml

  # Reform events from a file
  %(prog)s run --config reformer.yaml --input events.jsonl --output reformed.jsonl

  # Reform events from stdin to stdout
  cat events.jsonl | %(prog)s run --config reformer.yaml
        """
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL env var or INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "text"],
        default=None,
        help="Log output format (default: LOG_FORMAT env var or json)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Check command
    check_parser = subparsers.add_parser("check", help="Validate a reformer configuration")
    check_parser.add_argument("--config", required=True, help="Path to the YAML configuration")

    # Run command
    run_parser = subparsers.add_parser("run", help="Reform JSON-lines events")
    run_parser.add_argument("--config", required=True, help="Path to the YAML configuration")
    run_parser.add_argument(
        "--input",
        default="-",
        help="Input file of JSON-lines events (default: stdin)"
    )
    run_parser.add_argument(
        "--output",
        default="-",
        help="Output file for reformed events (default: stdout)"
    )
    run_parser.add_argument(
        "--hostname",
        help="Value for ${hostname} (default: this host's name)"
    )
    run_parser.add_argument(
        "--metrics-port",
        type=int,
        help="Expose Prometheus metrics on this port"
    )

    args = parser.parse_args(argv)

    setup_logger(level=args.log_level, format_type=args.log_format)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "check":
        return check_config(args)
    elif args.command == "run":
        return run_reformer(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
