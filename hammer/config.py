"""
Run configuration and command line parsing.
"""

from __future__ import annotations

import argparse
import dataclasses
import math
import os
import re
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

import httpx

from .errors import ConfigurationError

DEFAULT_EXPECTED_STATUSES: FrozenSet[int] = frozenset({200, 404})
DEFAULT_TIMEOUT_SECONDS = 10.0

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

Header = Tuple[str, str]


def default_concurrency() -> int:
    """Return the host's available parallelism."""
    return os.cpu_count() or 1


def parse_duration(raw: str) -> float:
    """Parse ``250ms``, ``1.5s``, ``1m30s`` or bare seconds into seconds."""
    text = raw.strip()
    if not text:
        raise ConfigurationError("Duration must not be empty")
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        while pos < len(text):
            match = _DURATION_PART.match(text, pos)
            if match is None:
                raise ConfigurationError(f"Invalid duration: {raw!r}") from None
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
    if seconds < 0 or not math.isfinite(seconds):
        raise ConfigurationError(f"Duration must be a finite, non-negative value: {raw!r}")
    return seconds


def parse_header(raw: str) -> Header:
    """Split ``"name: value"`` into a header pair."""
    name, sep, value = raw.partition(":")
    name = name.strip()
    if not sep or not name:
        raise ConfigurationError('Header must be in the form "header-name: header-value"')
    return name, value.strip()


@dataclasses.dataclass(frozen=True)
class RunConfig:
    """Immutable settings shared by every request cycle of a run."""

    urls: Tuple[str, ...]
    concurrency: int = dataclasses.field(default_factory=default_concurrency)
    delay: float = 0.0
    use_http2: bool = False
    headers: Tuple[Header, ...] = ()
    expected_statuses: FrozenSet[int] = DEFAULT_EXPECTED_STATUSES
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    max_iterations: Optional[int] = None

    def __post_init__(self) -> None:
        # Accept any sequence from callers but store tuples.
        object.__setattr__(self, "urls", tuple(self.urls))
        object.__setattr__(self, "headers", tuple((str(k), str(v)) for k, v in self.headers))
        object.__setattr__(self, "expected_statuses", frozenset(int(c) for c in self.expected_statuses))

        if not self.urls:
            raise ConfigurationError("must specify at least one url")
        if self.concurrency < 1:
            raise ConfigurationError(f"Concurrency factor must be positive, got {self.concurrency}")
        if self.delay < 0:
            raise ConfigurationError(f"Delay must not be negative, got {self.delay}")
        for name, value in self.headers:
            if not (name.isascii() and value.isascii()):
                raise ConfigurationError(f"Header must contain only ASCII characters: {name}: {value}")
        if not self.expected_statuses:
            raise ConfigurationError("At least one expected status code is required")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ConfigurationError(f"Iteration limit must be positive, got {self.max_iterations}")

    def clone_headers(self) -> httpx.Headers:
        """Return a fresh, mutable copy of the configured headers."""
        return httpx.Headers(list(self.headers))

    def is_expected(self, status_code: int) -> bool:
        return status_code in self.expected_statuses

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RunConfig":
        """Create a run config from parsed CLI arguments."""
        return cls(
            urls=tuple(args.urls),
            concurrency=args.concurrency,
            delay=args.delay,
            use_http2=args.http2,
            headers=tuple(args.headers or ()),
            expected_statuses=frozenset(args.expect_status or DEFAULT_EXPECTED_STATUSES),
            timeout=args.timeout or None,
            max_iterations=args.iterations,
        )


def _duration_arg(raw: str) -> float:
    try:
        return parse_duration(raw)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _header_arg(raw: str) -> Header:
    try:
        return parse_header(raw)
    except ConfigurationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


class _UsageParser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting on bad input."""

    def error(self, message: str):  # type: ignore[override]
        raise ConfigurationError(message)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    """Construct and return the CLI argument parser."""
    parser = _UsageParser(
        prog=prog,
        usage="%(prog)s [options] <url> [urls...]",
        description="Continuously issue GET requests against one or more URLs.",
    )
    parser.add_argument("urls", nargs="*", metavar="url", help="Target URLs, requested round-robin.")
    parser.add_argument(
        "-c",
        dest="concurrency",
        type=int,
        default=default_concurrency(),
        help="Concurrency factor, number of requests to make concurrently (default: CPU count).",
    )
    parser.add_argument(
        "-d",
        dest="delay",
        type=_duration_arg,
        default=0.0,
        help="Delay to wait after making a request, e.g. 250ms or 1s (default: 0).",
    )
    parser.add_argument("--http2", action="store_true", help="Use HTTP/2 for requests.")
    parser.add_argument(
        "--header",
        dest="headers",
        action="append",
        type=_header_arg,
        metavar="HEADER",
        help='Set a request header in the form "header-name: header-value" (multiple invocations allowed).',
    )
    parser.add_argument(
        "--expect-status",
        action="append",
        type=int,
        metavar="CODE",
        help="Status code that does not produce a warning (repeatable, default: 200 and 404).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="Transport timeout in seconds, 0 disables it (default: %(default)s).",
    )
    parser.add_argument(
        "-n",
        dest="iterations",
        type=int,
        default=None,
        help="Stop after dispatching this many requests (default: run until interrupted).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write diagnostics to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def parse_args(argv: Iterable[str], prog: Optional[str] = None) -> Tuple[RunConfig, argparse.Namespace]:
    """Parse CLI arguments into a RunConfig plus the raw namespace."""
    args = build_parser(prog).parse_args(list(argv))
    return RunConfig.from_args(args), args


def select_target(urls: Sequence[str], iteration: int) -> str:
    """Round-robin choice of the target for a dispatch iteration."""
    return urls[iteration % len(urls)]
