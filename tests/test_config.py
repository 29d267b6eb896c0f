"""Tests for config.ini parsing."""

import pytest

from server.config import FailurePolicy, load_config, parse_policy


def test_load_config_reads_sections(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(
        "[server]\nhost = 127.0.0.1\nport = 9090\n\n"
        "[client]\napi_url = http://titles.local:9090/\ntimeout_seconds = 2.5\n\n"
        "[picking]\nfailure_policy = rollback\n"
    )

    config = load_config(path)

    assert config.server_host == "127.0.0.1"
    assert config.server_port == 9090
    assert config.client.api_url == "http://titles.local:9090"
    assert config.client.timeout_seconds == 2.5
    assert config.picking.failure_policy is FailurePolicy.ROLLBACK


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("")

    config = load_config(path)

    assert config.server_port == 8080
    assert config.client.api_url == "http://localhost:8080"
    assert config.picking.failure_policy is FailurePolicy.LOG


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.ini")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("log", FailurePolicy.LOG),
        ("ROLLBACK", FailurePolicy.ROLLBACK),
        (" rollback ", FailurePolicy.ROLLBACK),
        ("retry", FailurePolicy.LOG),
        (None, FailurePolicy.LOG),
    ],
)
def test_parse_policy(value, expected):
    assert parse_policy(value) is expected
