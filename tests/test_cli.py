"""Tests for the ballot CLI: proves commands parse and dispatch correctly."""

import json
from pathlib import Path

import pytest

from ballot.cli import build_parser, main
from check_invariants import check

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


def _run(tmp_path: Path, *argv: str) -> int:
    return main(["--config", str(CONFIG_DIR), "--data", str(tmp_path), *argv])


class TestCLIParsing:
    def test_create_command(self) -> None:
        parser = build_parser()
        args = parser.parse_args([
            "create", "--chairperson", "chair",
            "--proposal", "yes", "--proposal", "no",
        ])
        assert args.command == "create"
        assert args.proposal == ["yes", "no"]

    def test_enroll_command(self) -> None:
        args = build_parser().parse_args(["enroll", "--caller", "chair", "a", "b"])
        assert args.targets == ["a", "b"]

    def test_vote_index_is_int(self) -> None:
        args = build_parser().parse_args(["vote", "--caller", "a", "--proposal", "1"])
        assert args.proposal == 1

    def test_vote_index_must_be_int(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["vote", "--caller", "a", "--proposal", "one"])


class TestCLIExecution:
    def test_no_command_shows_help(self, capsys) -> None:
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_election_e2e(self, tmp_path, capsys) -> None:
        assert _run(tmp_path, "create", "--chairperson", "chair",
                    "--proposal", "keep", "--proposal", "change") == 0
        assert _run(tmp_path, "enroll", "--caller", "chair", "a", "b") == 0
        assert _run(tmp_path, "delegate", "--caller", "a", "--to", "b") == 0
        assert _run(tmp_path, "vote", "--caller", "b", "--proposal", "1") == 0
        capsys.readouterr()

        assert _run(tmp_path, "winner") == 0
        assert capsys.readouterr().out.strip() == "1: change"

        assert _run(tmp_path, "results") == 0
        rows = json.loads(capsys.readouterr().out)
        assert [r["vote_count"] for r in rows] == [0, 2]

        assert _run(tmp_path, "show-voter", "--id", "a") == 0
        voter = json.loads(capsys.readouterr().out)
        assert voter["delegate_target"] == "b"
        assert voter["delegation_chain"] == ["a", "b"]

        assert _run(tmp_path, "status") == 0
        status = json.loads(capsys.readouterr().out)
        assert status["election"]["winner_name"] == "change"

        assert _run(tmp_path, "check-invariants") == 0
        assert (tmp_path / "events.jsonl").exists()
        assert (tmp_path / "state.json").exists()

    def test_rejection_exits_nonzero(self, tmp_path, capsys) -> None:
        _run(tmp_path, "create", "--chairperson", "chair", "--proposal", "x")
        assert _run(tmp_path, "enroll", "--caller", "mallory", "a") == 1
        assert "Failed:" in capsys.readouterr().err

    def test_reads_without_election_fail(self, tmp_path, capsys) -> None:
        assert _run(tmp_path, "winner") == 1
        assert _run(tmp_path, "show-voter", "--id", "a") == 1


class TestInvariantTool:
    def test_clean_repository_config(self, tmp_path) -> None:
        assert check(CONFIG_DIR / "election_params.json", tmp_path / "state.json") == 0

    def test_corrupted_state_fails(self, tmp_path) -> None:
        assert _run(tmp_path, "create", "--chairperson", "chair", "--proposal", "x") == 0
        state_path = tmp_path / "state.json"
        document = json.loads(state_path.read_text())
        document["election"]["proposals"][0]["vote_count"] = 9
        state_path.write_text(json.dumps(document))
        assert check(CONFIG_DIR / "election_params.json", state_path) == 1
        assert _run(tmp_path, "check-invariants") == 1

    def test_tampered_event_log_reported(self, tmp_path, capsys) -> None:
        assert _run(tmp_path, "create", "--chairperson", "chair", "--proposal", "x") == 0
        log_path = tmp_path / "events.jsonl"
        record = json.loads(log_path.read_text())
        record["actor_id"] = "mallory"
        log_path.write_text(json.dumps(record) + "\n")
        capsys.readouterr()
        assert _run(tmp_path, "check-invariants") == 1
        assert "FAIL: state: Integrity check failed" in capsys.readouterr().err

    def test_unsupported_state_format_reported(self, tmp_path, capsys) -> None:
        (tmp_path / "state.json").write_text(json.dumps({"format_version": 99}))
        assert _run(tmp_path, "check-invariants") == 1
        assert "Unsupported state format version 99" in capsys.readouterr().err
        assert check(CONFIG_DIR / "election_params.json", tmp_path / "state.json") == 1

    def test_non_integer_config_reported(self, tmp_path, capsys) -> None:
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        params = config_dir / "election_params.json"
        params.write_text(json.dumps({"max_proposals": "10"}))
        assert main(["--config", str(config_dir), "--data", str(tmp_path / "data"),
                     "check-invariants"]) == 1
        assert "FAIL: config: max_proposals must be an integer" in capsys.readouterr().err
        assert check(params, tmp_path / "state.json") == 1
