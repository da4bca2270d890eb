#!/usr/bin/env python3
"""
Reihtuag - Main Entry Point
===========================

Command-line interface for the Reihtuag chat server.

Usage:
    python main.py                   # Start the chat server
    python main.py --port 9000       # Start on another port
    python main.py --say "Hello"     # Print one reply and exit
    python main.py --status          # Show configuration and categories
    python main.py --setup           # Write default config and catalog
    python main.py --help            # Show help
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, create_default_config, Config
from core.logging import setup_logging, get_logger
from core.exceptions import ReihtuagError

logger = get_logger("main")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Reihtuag - a pattern-matching chat robot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                        Start the chat server on the configured port
  python main.py --port 9000            Start the chat server on port 9000
  python main.py --say "can you fly?"   Print one reply
  python main.py --status               Show configuration and categories
  python main.py --setup                Write default config.yaml and categories.yaml
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--web",
        action="store_true",
        help="Start the chat server (default)"
    )
    mode_group.add_argument(
        "--say",
        type=str,
        metavar="MESSAGE",
        help="Print the reply to MESSAGE and exit"
    )
    mode_group.add_argument(
        "--status",
        action="store_true",
        help="Show configuration and categories"
    )
    mode_group.add_argument(
        "--setup",
        action="store_true",
        help="Write default configuration and category catalog"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind (default: from config, 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: from config, 8088)"
    )
    parser.add_argument(
        "--categories",
        type=str,
        metavar="PATH",
        help="YAML category catalog to use instead of the built-in one"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the random source for reproducible replies"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    return parser.parse_args(argv)


def run_setup(config_dir: str = None) -> None:
    """Write default config.yaml and categories.yaml."""
    from rules.catalog import write_default_catalog

    config = create_default_config(config_dir)
    catalog_path = write_default_catalog(str(Path(config.config_dir) / "categories.yaml"))

    print(f"✓ Wrote {Path(config.config_dir) / 'config.yaml'}")
    print(f"✓ Wrote {catalog_path}")
    print("\nTo use the catalog, set engine.categories_file in config.yaml")


def run_say(config: Config, message: str) -> None:
    """Print one reply."""
    from rules.engine import ResponseEngine

    engine = ResponseEngine.from_config(config.engine)
    category = engine.classify(message)

    print(engine.respond(message))
    logger.debug(f"Category: {category.name if category else 'fallback'}")


def run_status(config: Config) -> None:
    """Display configuration and categories."""
    from rules.engine import ResponseEngine

    engine = ResponseEngine.from_config(config.engine)

    print("\n" + "=" * 50)
    print(f"{config.app_name} {config.version} - Status")
    print("=" * 50 + "\n")

    print("Server")
    print("-" * 30)
    print(f"  Address: {config.server.host}:{config.server.port}")
    print(f"  Events: '{config.channel.inbound_event}' -> '{config.channel.outbound_event}'")
    print(f"  On error: {config.channel.on_error}")

    print("\nCategories (priority order)")
    print("-" * 30)
    for category in engine.categories:
        print(f"  {category.name}: {len(category.phrases)} phrase(s)")
    print(f"  fallback: {config.engine.fallback}")

    print("\n" + "=" * 50 + "\n")


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        if args.setup:
            run_setup(str(Path(args.config).parent) if args.config else None)
            return 0

        config = load_config(args.config)

        if args.categories:
            config.engine.categories_file = args.categories
        if args.seed is not None:
            config.engine.seed = args.seed
        if args.host:
            config.server.host = args.host
        if args.port:
            config.server.port = args.port
        if args.debug:
            config.server.debug = True
        config.validate()

        setup_logging(
            log_dir=config.logging.log_dir or None,
            log_level="DEBUG" if args.debug else config.logging.level,
            json_format=config.logging.json_format,
            console_output=True
        )

        if args.say is not None:
            run_say(config, args.say)
        elif args.status:
            run_status(config)
        else:
            from ui.web.app import run_app
            run_app(config=config, debug=args.debug)

        return 0

    except ReihtuagError as e:
        print(f"\nError: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
