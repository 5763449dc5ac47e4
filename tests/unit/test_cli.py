"""Tests for the command line interface."""

import pytest
from click.testing import CliRunner

from blindbid.cli.main import cli
from blindbid.core.auction import compute_commitment
from blindbid.crypto import bytes_to_hex


@pytest.fixture
def runner():
    return CliRunner()


class TestCommit:
    def test_with_secret(self, runner):
        secret = b"\x01" * 32
        result = runner.invoke(cli, ["commit", "--value", "5", "--secret", bytes_to_hex(secret)])

        assert result.exit_code == 0, result.output
        expected = bytes_to_hex(compute_commitment(5, False, secret))
        assert f"Commitment: {expected}" in result.output
        assert "Decoy:  no" in result.output

    def test_decoy_with_random_secret(self, runner):
        result = runner.invoke(cli, ["commit", "--value", "0", "--fake"])
        assert result.exit_code == 0, result.output
        assert "Decoy:  yes" in result.output

    def test_negative_value_rejected(self, runner):
        result = runner.invoke(cli, ["commit", "--value", "-1"])
        assert result.exit_code != 0

    def test_bad_secret_rejected(self, runner):
        result = runner.invoke(cli, ["commit", "--value", "1", "--secret", "0xzz"])
        assert result.exit_code != 0
        assert "secret" in result.output

    def test_oversized_secret_rejected(self, runner):
        result = runner.invoke(cli, ["commit", "--value", "1", "--secret", "0x" + "ab" * 1025])
        assert result.exit_code != 0
        assert "exceeds max length" in result.output


class TestDemo:
    def test_demo_runs(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "demo"])

        assert result.exit_code == 0, result.output
        assert "Bob reveals 3000: refunded 0, highest=3000" in result.output
        assert "refunded 3400, highest=3100" in result.output
        assert "Bob withdraws 3000" in result.output
        assert "Beneficiary received 3100" in result.output
        assert "Funds balanced: True" in result.output
        assert "Demo complete!" in result.output
        assert not (tmp_path / "auction.db").exists()

    def test_demo_persist_then_show(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "demo", "--persist"])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "auction.db").exists()

        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "show"])
        assert result.exit_code == 0, result.output
        assert "Highest bid:    3100" in result.output
        assert "Ended:          True" in result.output
        assert "Bids: 3" in result.output
        assert "(sealed)" not in result.output

    def test_demo_persist_twice_starts_fresh(self, runner, tmp_path):
        for _ in range(2):
            result = runner.invoke(cli, ["--data-dir", str(tmp_path), "demo", "--persist"])
            assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "show"])
        assert "Bids: 3" in result.output

    def test_debug_flag_enables_debug_logging(self, runner, tmp_path):
        result = runner.invoke(cli, ["--debug", "--data-dir", str(tmp_path), "demo"])
        assert result.exit_code == 0, result.output
        assert "Bid #0 from" in result.output


class TestShow:
    def test_missing_database(self, runner, tmp_path):
        result = runner.invoke(cli, ["--data-dir", str(tmp_path), "show"])
        assert result.exit_code == 1
        assert "No auction found" in result.output
