import pytest

from hammer.config import (
    DEFAULT_EXPECTED_STATUSES,
    RunConfig,
    build_parser,
    parse_args,
    parse_duration,
    parse_header,
    select_target,
)
from hammer.errors import ConfigurationError


def test_parse_header_splits_on_first_colon():
    assert parse_header("X-Token: abc") == ("X-Token", "abc")
    assert parse_header("Referer: http://example.com:8080/") == ("Referer", "http://example.com:8080/")
    assert parse_header("X-Empty:") == ("X-Empty", "")


def test_parse_header_rejects_malformed_input():
    with pytest.raises(ConfigurationError):
        parse_header("no-colon-here")
    with pytest.raises(ConfigurationError):
        parse_header(": value")


def test_parse_duration_accepts_go_style_and_seconds():
    assert parse_duration("50ms") == pytest.approx(0.05)
    assert parse_duration("1.5s") == pytest.approx(1.5)
    assert parse_duration("1m30s") == pytest.approx(90.0)
    assert parse_duration("2") == pytest.approx(2.0)
    assert parse_duration("0") == 0.0


@pytest.mark.parametrize("raw", ["", "fast", "10 parsecs", "-1s", "-2"])
def test_parse_duration_rejects_invalid_values(raw):
    with pytest.raises(ConfigurationError):
        parse_duration(raw)


def test_run_config_requires_a_url():
    with pytest.raises(ConfigurationError):
        RunConfig(urls=())


@pytest.mark.parametrize(
    "overrides",
    [
        {"concurrency": 0},
        {"delay": -0.1},
        {"expected_statuses": frozenset()},
        {"timeout": 0},
        {"max_iterations": 0},
    ],
)
def test_run_config_rejects_invalid_settings(overrides):
    with pytest.raises(ConfigurationError):
        RunConfig(urls=("http://a",), **overrides)


def test_run_config_is_immutable():
    config = RunConfig(urls=["http://a"], headers=[("X-Token", "1")])
    assert config.urls == ("http://a",)
    assert config.headers == (("X-Token", "1"),)
    with pytest.raises(AttributeError):
        config.delay = 1.0


def test_clone_headers_returns_independent_copies():
    config = RunConfig(urls=("http://a",), headers=(("X-Token", "1"), ("X-Token", "2")))

    first = config.clone_headers()
    second = config.clone_headers()
    first["X-Token"] = "changed"
    second.update({"X-Other": "added"})

    assert config.headers == (("X-Token", "1"), ("X-Token", "2"))
    assert config.clone_headers().get_list("x-token") == ["1", "2"]
    assert "x-other" not in config.clone_headers()


def test_default_expected_statuses():
    config = RunConfig(urls=("http://a",))
    assert config.expected_statuses == DEFAULT_EXPECTED_STATUSES
    assert config.is_expected(200)
    assert config.is_expected(404)
    assert not config.is_expected(500)


def test_parse_args_builds_run_config():
    config, args = parse_args(
        [
            "-c", "4",
            "-d", "250ms",
            "--http2",
            "--header", "X-Token: a",
            "--header", "X-Token: b",
            "--expect-status", "200",
            "--timeout", "0",
            "-n", "10",
            "http://a",
            "http://b",
        ]
    )
    assert config.urls == ("http://a", "http://b")
    assert config.concurrency == 4
    assert config.delay == pytest.approx(0.25)
    assert config.use_http2 is True
    assert config.headers == (("X-Token", "a"), ("X-Token", "b"))
    assert config.expected_statuses == frozenset({200})
    assert config.timeout is None
    assert config.max_iterations == 10
    assert args.verbose is False


def test_parse_args_defaults():
    config, _ = parse_args(["http://a"])
    assert config.delay == 0.0
    assert config.use_http2 is False
    assert config.headers == ()
    assert config.max_iterations is None
    assert config.concurrency >= 1


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["-c", "0", "http://a"],
        ["-d", "soon", "http://a"],
        ["--header", "broken", "http://a"],
        ["--unknown", "http://a"],
    ],
)
def test_parse_args_raises_configuration_error(argv):
    with pytest.raises(ConfigurationError):
        parse_args(argv)


def test_usage_line_mentions_urls():
    assert "<url> [urls...]" in build_parser(prog="hammer").format_usage()


def test_select_target_is_round_robin():
    urls = ("http://a", "http://b", "http://c")
    chosen = [select_target(urls, i) for i in range(7)]
    assert chosen == ["http://a", "http://b", "http://c", "http://a", "http://b", "http://c", "http://a"]


@pytest.mark.parametrize("length", [1, 2, 5])
def test_select_target_repeats_every_list_length(length):
    urls = tuple(f"http://host{n}" for n in range(length))
    for i in range(50):
        assert select_target(urls, i) == select_target(urls, i + length)


def test_non_ascii_headers_are_rejected():
    with pytest.raises(ConfigurationError, match="ASCII"):
        RunConfig(urls=("http://a",), headers=(("X-Name", "café"),))
    with pytest.raises(ConfigurationError):
        parse_args(["--header", "X-Name: café", "http://a"])
