"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

Run the server as a module:

    python -m staticserver                     # Port 3000, bundled public/
    python -m staticserver --port 8000         # Custom port
    python -m staticserver --root ./site       # Serve another directory
    python -m staticserver --idle-timeout 30   # Drop idle clients after 30s

Every flag falls back to its environment variable (see ServerConfig.from_env)
and then to the built-in default.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import HTTPServer
from .config import ServerConfig, LOG_FORMATS


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """
    Build the argument parser.

    Args:
        defaults: Configuration supplying each flag's default value.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Static file HTTP server built on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver                      # Run with defaults
  python -m staticserver --port 8000          # Custom port
  python -m staticserver --host 127.0.0.1     # Localhost only
  python -m staticserver --root ./public      # Serve a directory
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root,
        help="Directory to serve files from (default: bundled public/)"
    )

    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=defaults.idle_timeout,
        help="Seconds to wait for a request line before dropping the client "
             "(default: wait forever)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}"
    )

    return parser


def config_from_args(argv=None) -> ServerConfig:
    """
    Resolve configuration: CLI flags over environment over defaults.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        The resulting ServerConfig (not yet validated).
    """
    env_config = ServerConfig.from_env()
    args = build_parser(env_config).parse_args(argv)

    return ServerConfig(
        host=args.host,
        port=args.port,
        root=args.root,
        idle_timeout=args.idle_timeout,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv=None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 on a startup
        failure (bad configuration, port already in use, ...).
    """
    try:
        config = config_from_args(argv)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
