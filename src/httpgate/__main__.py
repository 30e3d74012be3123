"""
=============================================================================
HTTPGATE CLI ENTRY POINT
=============================================================================

Serves a directory with default headers, gzip, a method gate and a
custom 404 page.

=============================================================================
USAGE
=============================================================================

    # Serve the current directory on localhost:8080
    python -m httpgate

    # Serve ./public on all interfaces
    python -m httpgate ./public --host 0.0.0.0

    # Extra response headers (repeatable)
    python -m httpgate ./public \\
        --header "X-Content-Type-Options: nosniff" \\
        --header "X-Frame-Options: DENY"

    # Only same-site browser requests
    python -m httpgate ./public --origins https://example.com

Environment variables (HTTPGATE_*) provide the defaults; flags given on
the command line win. See ServerConfig.from_env().

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .middleware.headers import parse_header_argument
from .server import create_app, run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpgate",
        description="Serve a directory with default headers, gzip and a custom 404 page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpgate ./public                          # Serve ./public
  python -m httpgate ./public --port 3000              # Custom port
  python -m httpgate --header "X-Frame-Options: DENY"  # Extra header
  python -m httpgate --methods GET,HEAD,OPTIONS        # Gate methods
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("root", nargs="?", default=None, help="Directory to serve (default: .)")
    parser.add_argument("--host", "-H", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: 8080)")

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--header",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Default response header (repeatable)",
    )
    parser.add_argument(
        "--methods",
        default=None,
        help="Comma-separated allowed methods (default: GET,HEAD)",
    )
    parser.add_argument(
        "--origins",
        default=None,
        help="Comma-separated allowed Origin values (default: any)",
    )
    parser.add_argument(
        "--not-found",
        default=None,
        help="Not-found document below ROOT (default: /error404.html)",
    )
    parser.add_argument(
        "--level",
        type=int,
        default=None,
        help="gzip compression level 0-9 (default: 6)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", "-v", action="version", version=f"httpgate {__version__}")

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Overlay command-line arguments on the environment configuration."""
    config = ServerConfig.from_env()

    if args.root is not None:
        config.root_dir = args.root
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.methods is not None:
        config.allowed_methods = tuple(m.strip() for m in args.methods.split(",") if m.strip())
    if args.origins is not None:
        config.allowed_origins = tuple(o.strip() for o in args.origins.split(",") if o.strip())
    if args.not_found is not None:
        config.not_found_document = args.not_found
    if args.level is not None:
        config.compression_level = args.level
    if args.log_level is not None:
        config.log_level = args.log_level

    # Malformed --header values come through as 1-tuples and are skipped
    # when applied, like any other malformed default header.
    config.default_headers = list(config.default_headers) + [
        parse_header_argument(text) for text in args.header
    ]
    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        run(create_app(config), config)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
