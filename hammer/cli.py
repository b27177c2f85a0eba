"""Command line entry point."""

from __future__ import annotations

import asyncio
import sys
from typing import Iterable, Optional

from .config import build_parser, parse_args
from .errors import ConfigurationError
from .logging_utils import configure_logging
from .runner import run

EXIT_OK = 0
EXIT_ADMISSION_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def main(argv: Optional[Iterable[str]] = None) -> int:
    """Entry point for the CLI."""
    args = list(argv if argv is not None else sys.argv[1:])
    try:
        config, namespace = parse_args(args)
    except ConfigurationError as exc:
        print(f"Incorrect usage: {exc}\n", file=sys.stderr)
        build_parser().print_help(sys.stderr)
        return EXIT_USAGE

    configure_logging(namespace.log_file, verbose=namespace.verbose)

    try:
        result = asyncio.run(run(config))
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    return EXIT_ADMISSION_FAILED if result.admission_failed else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
