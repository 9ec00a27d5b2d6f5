"""
CLI Tests
=========
End-to-end runs of the ``yksoft`` command.
"""

import json

import pytest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def cli(token_dir, monkeypatch, reset_logging):
    from yksoft_core.cli import app

    for name in ("YKSOFT_TOKEN_DIR", "YKSOFT_DIGITS", "YKSOFT_ALGORITHM", "YKSOFT_LOG_LEVEL", "YKSOFT_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)

    def invoke(*args, **kwargs):
        return runner.invoke(app, ["--dir", str(token_dir), *args], **kwargs)

    return invoke


def enroll(cli, label="vpn", *extra):
    result = cli("new", label, "--json", *extra)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestNew:
    """Tests for `yksoft new`."""

    def test_new_prints_registration_info(self, cli):
        result = cli("new", "vpn")

        assert result.exit_code == 0
        assert "Token created: dddd" in result.stdout
        assert "otpauth://hotp/" in result.stdout

    def test_new_json(self, cli, store):
        data = enroll(cli, "vpn", "--encoding", "hex", "--digits", "8")

        record = store.load(data["identifier"])

        assert bytes.fromhex(data["secret"]) == record.secret
        assert data["moving_factor"] == 0
        assert data["digits"] == 8

    def test_new_rejects_digit_count(self, cli):
        result = cli("new", "vpn", "--digits", "5")

        assert result.exit_code == 1
        assert "Unsupported digit count" in result.output


class TestEnvironment:
    """Bad environment configuration is reported, not raised."""

    @pytest.mark.parametrize("name", ["YKSOFT_DIGITS", "YKSOFT_SECRET_BYTES", "YKSOFT_ENROLL_ATTEMPTS"])
    def test_non_numeric_variable(self, cli, monkeypatch, name):
        monkeypatch.setenv(name, "six")

        result = cli("list")

        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert f"Error: {name} must be an integer" in result.output

    def test_short_secret_variable(self, cli, monkeypatch, store):
        monkeypatch.setenv("YKSOFT_SECRET_BYTES", "4")

        result = cli("new", "vpn")

        assert result.exit_code == 1
        assert "at least 128 bits" in result.output
        assert store.list() == []


class TestCode:
    """Tests for `yksoft code`."""

    def test_codes_advance(self, cli, store):
        data = enroll(cli)

        first = cli("code", data["identifier"])
        second = cli("code", data["identifier"])

        assert first.exit_code == 0
        assert len(first.stdout.strip()) == 6
        assert first.stdout.strip().isdigit()
        assert store.load(data["identifier"]).moving_factor == 2
        assert second.exit_code == 0

    def test_code_unknown_token(self, cli):
        result = cli("code", "ddddnotthere")

        assert result.exit_code == 1
        assert "not found" in result.output


class TestManage:
    """Tests for list, info, label and delete."""

    def test_list(self, cli):
        data = enroll(cli, "vpn")

        result = cli("list")

        assert result.exit_code == 0
        assert data["identifier"] in result.stdout
        assert "counter=0" in result.stdout

    def test_list_empty(self, cli):
        result = cli("list")

        assert result.exit_code == 0
        assert "No tokens found." in result.stdout

    def test_info_never_shows_secret(self, cli):
        data = enroll(cli, "vpn")

        result = cli("info", data["identifier"])

        assert result.exit_code == 0
        assert "counter: 0" in result.stdout
        assert data["secret"] not in result.stdout

    def test_label(self, cli, store):
        data = enroll(cli, "vpn")

        result = cli("label", data["identifier"], "home")

        assert result.exit_code == 0
        assert store.load(data["identifier"]).label == "home"

    def test_delete_with_yes(self, cli, store):
        data = enroll(cli)

        result = cli("delete", data["identifier"], "--yes")

        assert result.exit_code == 0
        assert not store.exists(data["identifier"])

    def test_delete_declined(self, cli, store):
        data = enroll(cli)

        result = cli("delete", data["identifier"], input="n\n")

        assert result.exit_code == 1
        assert store.exists(data["identifier"])

    def test_delete_missing(self, cli):
        result = cli("delete", "ddddnotthere", "--yes")

        assert result.exit_code == 1
        assert "not found" in result.output
