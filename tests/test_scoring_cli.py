# ABOUTME: Verifies the scoring CLI commands end to end with temporary input files.
# ABOUTME: Uses Typer's CliRunner so no subprocesses or real data are needed.

import json

import pandas as pd
from typer.testing import CliRunner

from src.scoring import cli

runner = CliRunner()


def _alternating_clicks(count: int = 10):
    return [{"timestamp": i * 600, "type": "click", "value": {"correct": i % 2 == 0}} for i in range(count)]


def test_cli_registers_commands():
    command_names = {cmd.name or cmd.callback.__name__ for cmd in cli.app.registered_commands}
    assert {"score", "domains", "batch", "behavior"} <= command_names


def test_score_command_prints_json_report(tmp_path):
    events_path = tmp_path / "session.json"
    events_path.write_text(json.dumps({"events": _alternating_clicks()}), encoding="utf-8")

    result = runner.invoke(
        cli.app, ["score", "--events", str(events_path), "--game", "memory", "--age", "7", "--json"]
    )

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["score"] == 75
    assert report["status"] == "good"


def test_score_command_text_output(tmp_path):
    events_path = tmp_path / "session.json"
    events_path.write_text(json.dumps(_alternating_clicks()), encoding="utf-8")

    result = runner.invoke(cli.app, ["score", "--events", str(events_path), "--game", "memory", "--age", "7"])

    assert result.exit_code == 0, result.output
    assert "75/100" in result.output


def test_score_command_asks_for_replay_on_sparse_session(tmp_path):
    events_path = tmp_path / "session.json"
    events_path.write_text(json.dumps(_alternating_clicks(3)), encoding="utf-8")

    result = runner.invoke(cli.app, ["score", "--events", str(events_path), "--game", "attention", "--age", "6"])

    assert result.exit_code == 1
    assert "replay" in result.output.lower()


def test_domains_command(tmp_path):
    reports_path = tmp_path / "reports.json"
    reports_path.write_text(
        json.dumps([{"game": "logic", "score": 60}, {"game": "pattern", "score": 80}]), encoding="utf-8"
    )

    result = runner.invoke(cli.app, ["domains", "--reports", str(reports_path)])

    assert result.exit_code == 0, result.output
    assert "reasoning" in result.output
    assert "66" in result.output


def test_batch_command_writes_csv(tmp_path):
    sessions_path = tmp_path / "sessions.json"
    sessions_path.write_text(
        json.dumps(
            [
                {"session_id": "s1", "game": "memory", "age": 7, "events": _alternating_clicks()},
                {"session_id": "s2", "game": "attention", "age": 5, "events": _alternating_clicks(2)},
            ]
        ),
        encoding="utf-8",
    )
    output = tmp_path / "out" / "reports.csv"

    result = runner.invoke(cli.app, ["batch", "--sessions", str(sessions_path), "--output", str(output)])

    assert result.exit_code == 0, result.output
    frame = pd.read_csv(output)
    assert list(frame["session_id"]) == ["s1", "s2"]
    assert frame.loc[0, "score"] == 75
    assert pd.isna(frame.loc[0, "error"])
    assert "replay" in frame.loc[1, "error"]


def test_missing_input_file_exits(tmp_path):
    result = runner.invoke(
        cli.app, ["score", "--events", str(tmp_path / "nope.json"), "--game", "memory", "--age", "7"]
    )
    assert result.exit_code == 1


def test_batch_command_rejects_non_list_payload(tmp_path):
    sessions_path = tmp_path / "sessions.json"
    sessions_path.write_text(
        json.dumps({"session_id": "s1", "game": "memory", "age": 7, "events": _alternating_clicks()}),
        encoding="utf-8",
    )

    result = runner.invoke(
        cli.app, ["batch", "--sessions", str(sessions_path), "--output", str(tmp_path / "out.csv")]
    )

    assert result.exit_code == 2
    assert not (tmp_path / "out.csv").exists()


def test_malformed_json_is_a_usage_error(tmp_path):
    events_path = tmp_path / "session.json"
    events_path.write_text("[{\"timestamp\": 0,", encoding="utf-8")

    result = runner.invoke(cli.app, ["score", "--events", str(events_path), "--game", "memory", "--age", "7"])

    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)


def test_behavior_command_lists_alerts(tmp_path):
    sessions_path = tmp_path / "sessions.json"
    sessions_path.write_text(
        json.dumps(
            [
                {"child_id": "k1", "game": "memory", "completed": False, "score": 20, "created_at": f"2024-01-0{day}"}
                for day in range(1, 5)
            ]
        ),
        encoding="utf-8",
    )

    result = runner.invoke(cli.app, ["behavior", "--sessions", str(sessions_path)])

    assert result.exit_code == 0, result.output
    assert "avoidant" in result.output
    assert "stable" in result.output
