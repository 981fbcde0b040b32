"""
Command-Line Interface

CLI for growing corals and inspecting configurations from the command line.
"""

import argparse
import json
import logging
import sys

from .policies import CoralConfig
from .api.generate import grow_coral


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="coral-gen",
        description="Coral Generation - space-colonization coral growth and meshing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Grow command
    grow_parser = subparsers.add_parser("grow", help="Grow a coral and report its statistics")
    grow_parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to a JSON configuration (default: built-in defaults)",
    )
    grow_parser.add_argument(
        "--iterations", "-n",
        type=int,
        default=100,
        help="Maximum growth iterations (default: 100)",
    )
    grow_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    grow_parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Write the JSON report to this path instead of stdout",
    )
    grow_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Hide the progress bar",
    )

    # Config command
    config_parser = subparsers.add_parser("config", help="Print a configuration as JSON")
    config_parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to a JSON configuration to validate and normalise",
    )

    for p in [grow_parser, config_parser]:
        p.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable verbose output",
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "grow":
        return run_grow(args)
    elif args.command == "config":
        return run_config(args)
    return 1


def _load_config(path):
    if path is None:
        return CoralConfig()
    return CoralConfig.from_json(path)


def run_grow(args) -> int:
    """Run the grow command."""
    config = _load_config(args.config)
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    print(f"Growing coral for up to {args.iterations} iterations...", file=sys.stderr)
    simulation, mesh, report = grow_coral(
        config,
        iterations=args.iterations,
        seed=args.seed,
        disable_progress=args.no_progress,
    )

    if args.report:
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(report.to_json())
    else:
        print(report.to_json())
    return 0


def run_config(args) -> int:
    """Run the config command."""
    config = _load_config(args.config)
    errors = config.validate()
    for error in errors:
        print(f"Error: {error}", file=sys.stderr)
    print(json.dumps(config.to_dict(), indent=2))
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
