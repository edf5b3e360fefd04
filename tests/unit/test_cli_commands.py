"""Tests for the CLI commands.

Covers command registration, payload decoding, the in-process demo,
bootstrap replay into a log file and the log index, all invoked via
typer.testing.CliRunner.
"""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from conftest import ALICE, OWNER
from guestbook.cli.app import app
from guestbook.core.codec import encode_hex
from guestbook.core.public_log import PublicLog
from guestbook.indexer import SignatureIndexer

runner = CliRunner()

BOOTSTRAP_CSV = f"""\
# historical signatures
{ALICE},Alice,first post,30101,1700000000
{OWNER},Owner,"hello, world"
"""


def _write_bootstrap(tmp_dir: Path, text: str = BOOTSTRAP_CSV) -> Path:
    path = tmp_dir / "bootstrap.csv"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("decode", "demo", "bootstrap", "index"):
            assert command in result.output

    def test_subcommand_help(self):
        for command in ("decode", "demo", "bootstrap", "index"):
            result = runner.invoke(app, [command, "--help"])
            assert result.exit_code == 0, command


# ---------------------------------------------------------------------------
# Test: decode
# ---------------------------------------------------------------------------


class TestDecodeCommand:
    def test_decodes_payload(self, make_record):
        payload = encode_hex(make_record(origin_chain_id=7, name="Alice", message="gm"))
        result = runner.invoke(app, ["decode", payload, "--local-chain-id", "1"])
        assert result.exit_code == 0
        assert "Alice" in result.output
        assert "replicated" in result.output

    def test_local_record(self, make_record):
        payload = encode_hex(make_record(origin_chain_id=1))
        result = runner.invoke(app, ["decode", payload, "-c", "1"])
        assert result.exit_code == 0
        assert "local" in result.output

    def test_garbage_payload_fails(self):
        result = runner.invoke(app, ["decode", "0xdeadbeef"])
        assert result.exit_code == 1
        assert "Cannot decode payload" in result.output


# ---------------------------------------------------------------------------
# Test: demo
# ---------------------------------------------------------------------------


class TestDemoCommand:
    def test_demo_delivers_to_every_peer(self):
        result = runner.invoke(app, ["demo", "--chains", "1,2,3", "--seed", "7"])
        assert result.exit_code == 0
        assert "Delivered 2/2" in result.output
        assert "Refunded: 500" in result.output

    def test_demo_in_order(self):
        result = runner.invoke(app, ["demo", "--chains", "5,6", "--in-order"])
        assert result.exit_code == 0
        assert "Delivered 1/1" in result.output

    def test_demo_budget_too_small(self):
        result = runner.invoke(app, ["demo", "--chains", "1,2", "--budget", "10"])
        assert result.exit_code == 1
        assert "Publish aborted" in result.output

    def test_demo_needs_two_chains(self):
        result = runner.invoke(app, ["demo", "--chains", "1"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# Test: bootstrap and index
# ---------------------------------------------------------------------------


class TestBootstrapCommand:
    def test_dry_run_writes_nothing(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir)
        db = tmp_dir / "log.db"
        result = runner.invoke(
            app,
            ["bootstrap", str(csv_path), "--owner", OWNER, "--log", str(db), "--dry-run"],
        )
        assert result.exit_code == 0
        assert "Found 2 entries" in result.output
        assert "DRY RUN" in result.output
        assert not db.exists()

    def test_replays_into_log(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir)
        db = tmp_dir / "log.db"
        result = runner.invoke(
            app,
            [
                "bootstrap", str(csv_path),
                "--owner", OWNER,
                "--log", str(db),
                "--chain-id", "40161",
                "--batch-size", "1",
            ],
        )
        assert result.exit_code == 0
        assert "[2/2]" in result.output

        log = PublicLog(db)
        try:
            records = [s.record for s in SignatureIndexer(log).signatures()]
        finally:
            log.close()
        assert [r.name for r in records] == ["Alice", "Owner"]
        assert records[0].origin_chain_id == 30101
        assert records[0].timestamp == 1_700_000_000
        assert records[1].origin_chain_id == 40161
        assert records[1].message == "hello, world"

    def test_bad_line_rejected(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir, "not-an-address,Alice,gm\n")
        result = runner.invoke(
            app, ["bootstrap", str(csv_path), "--owner", OWNER, "--dry-run"]
        )
        assert result.exit_code == 1
        assert "line 1" in result.output

    def test_missing_file(self, tmp_dir: Path):
        result = runner.invoke(
            app, ["bootstrap", str(tmp_dir / "absent.csv"), "--owner", OWNER]
        )
        assert result.exit_code == 1

    def test_invalid_owner(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir)
        result = runner.invoke(app, ["bootstrap", str(csv_path), "--owner", "bob"])
        assert result.exit_code == 1
        assert "Invalid owner" in result.output


class TestIndexCommand:
    def test_missing_log(self, tmp_dir: Path):
        result = runner.invoke(app, ["index", "--log", str(tmp_dir / "none.db")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_verify_and_list(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir)
        db = tmp_dir / "log.db"
        runner.invoke(app, ["bootstrap", str(csv_path), "--owner", OWNER, "--log", str(db)])

        result = runner.invoke(app, ["index", "--log", str(db), "--verify-chain"])
        assert result.exit_code == 0
        assert "Chain valid" in result.output

    def test_filter_with_no_matches(self, tmp_dir: Path):
        csv_path = _write_bootstrap(tmp_dir)
        db = tmp_dir / "log.db"
        runner.invoke(app, ["bootstrap", str(csv_path), "--owner", OWNER, "--log", str(db)])

        result = runner.invoke(app, ["index", "--log", str(db), "--origin", "999"])
        assert result.exit_code == 0
        assert "No signatures found" in result.output
