"""
=============================================================================
RANGEFETCH CLI ENTRY POINT
=============================================================================

Command-line interface for running one chunked download.

=============================================================================
USAGE
=============================================================================

    # Download / from 127.0.0.1:8080 in 64 KB ranges
    python -m rangefetch

    # Another server and resource
    python -m rangefetch --host 10.0.0.5 --port 9000 --path /data.bin

    # Smaller windows, check the result against a known digest
    python -m rangefetch --window-size 16384 --expected 3a7bd3e2...

    # Keep the payload
    python -m rangefetch --output data.bin

=============================================================================
EXIT CODES
=============================================================================

    0   COMPLETE (and digest matches, if --expected was given)
    1   FAILED: connection, parse or status error
    2   TRUNCATED: the server stopped sending before the end
    3   Digest mismatch

=============================================================================
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config import ClientConfig
from .downloader import ChunkRecord, DownloadSession
from .errors import RangeFetchError


EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TRUNCATED = 2
EXIT_DIGEST_MISMATCH = 3


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Unset options fall back to the environment."""
    parser = argparse.ArgumentParser(
        prog="rangefetch",
        description="Download a resource in HTTP byte ranges and fingerprint it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m rangefetch                              # 127.0.0.1:8080, 64 KB ranges
  python -m rangefetch --port 9000 --path /big.bin  # Other server/resource
  python -m rangefetch --window-size 16384          # 16 KB ranges
  python -m rangefetch --expected <sha256 hex>      # Verify the payload
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Server host (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Server port (default: 8080)"
    )

    parser.add_argument(
        "--path",
        default=None,
        help="Resource path (default: /)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # DOWNLOAD ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--window-size", "-w",
        type=int,
        default=None,
        help="Bytes requested per range (default: 65536)"
    )

    parser.add_argument(
        "--algorithm", "-a",
        default=None,
        help="Digest algorithm (default: sha256)"
    )

    parser.add_argument(
        "--expected", "-e",
        default=None,
        help="Expected hex digest of the payload"
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Write the downloaded payload to this file"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"rangefetch {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ClientConfig:
    """Environment first, then any CLI argument that was given."""
    config = ClientConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "path": args.path,
        "window_size": args.window_size,
        "digest_algorithm": args.algorithm,
        "log_level": args.log_level,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    return config


def setup_logging(level_name: str) -> None:
    """Configure logging based on config."""
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("rangefetch").setLevel(level)


def print_chunk(record: ChunkRecord) -> None:
    print(f"Downloaded chunk: {record.accepted_length} bytes (requested {record.requested})")


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code (see module docstring).
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    setup_logging(config.log_level)

    session = DownloadSession(config, on_chunk=print_chunk)
    try:
        total_length = session.discover_length()
        print(f"Total length of data: {total_length}")
        result = session.download()
    except RangeFetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILED

    print(f"State: {result.state.value} ({len(result.data)}/{result.total_length} bytes)")
    print(f"{result.digest.algorithm.upper()} hash of downloaded data: {result.digest}")

    if args.output is not None:
        try:
            args.output.write_bytes(result.data)
        except OSError as e:
            print(f"Error: cannot write {args.output}: {e}", file=sys.stderr)
            return EXIT_FAILED
        print(f"Saved payload to: {args.output}")

    if not result.is_complete:
        return EXIT_TRUNCATED

    if args.expected is not None:
        if not result.digest.matches(args.expected):
            print(f"Digest mismatch: expected {args.expected}", file=sys.stderr)
            return EXIT_DIGEST_MISMATCH
        print("Digest verified")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
