"""Tests for the bridge command-line interface."""

import json

from click.testing import CliRunner

from agent_bridge import __version__
from agent_bridge.cli import cli, sanitize_for_terminal

from conftest import claude_session, codex_session, write_jsonl


def _invoke(*args):
    return CliRunner().invoke(cli, list(args))


def test_version():
    result = _invoke("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_sanitize_for_terminal():
    assert sanitize_for_terminal("a\x1b[31mb\x07c\n\td\x9b") == "a[31mbc\n\td"


class TestReadCommand:
    def test_text_output(self, codex_home, project_dir):
        path = write_jsonl(
            codex_home / "rollout-1.jsonl", codex_session(str(project_dir), "s1", ["the answer"])
        )

        result = _invoke("read", "--agent", "codex", "--cwd", str(project_dir))

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == f"SOURCE: Codex Session ({path})"
        assert lines[1] == "---"
        assert lines[2] == "the answer"

    def test_json_output(self, codex_home, project_dir):
        write_jsonl(
            codex_home / "rollout-1.jsonl",
            codex_session(str(project_dir), "s1", ["one", "two", "three"]),
        )

        result = _invoke(
            "read", "--agent", "codex", "--cwd", str(project_dir), "--last", "2", "--json"
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["agent"] == "codex"
        assert data["content"] == "two\n---\nthree"
        assert data["messages_returned"] == 2
        assert data["message_count"] == 3
        assert data["session_id"] == "s1"
        assert data["warnings"] == []

    def test_control_characters_stripped(self, codex_home, project_dir):
        write_jsonl(
            codex_home / "rollout-1.jsonl",
            codex_session(str(project_dir), "s1", ["red\x1b[31mtext"]),
        )

        result = _invoke("read", "--agent", "codex", "--cwd", str(project_dir))

        assert result.exit_code == 0
        assert "\x1b" not in result.output
        assert "red[31mtext" in result.output

    def test_fallback_warning_printed(self, codex_home, project_dir, tmp_path):
        write_jsonl(
            codex_home / "rollout-1.jsonl", codex_session(str(project_dir), "s1", ["x"])
        )
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()

        result = _invoke("read", "--agent", "codex", "--cwd", str(elsewhere))

        assert result.exit_code == 0
        assert "Warning: no Codex session matched cwd" in result.output

    def test_unsupported_agent_json_error(self):
        result = _invoke("read", "--agent", "copilot", "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "UNSUPPORTED_AGENT"

    def test_not_found_json_error(self, project_dir):
        result = _invoke("read", "--agent", "claude", "--cwd", str(project_dir), "--json")

        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["error_code"] == "NOT_FOUND"
        assert payload["message"]

    def test_not_found_text_error(self, project_dir):
        result = _invoke("read", "--agent", "claude", "--cwd", str(project_dir))

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestCompareCommand:
    def test_markdown_report(self, codex_home, claude_home, project_dir):
        write_jsonl(
            codex_home / "rollout-1.jsonl", codex_session(str(project_dir), "s1", ["same"])
        )
        write_jsonl(claude_home / "p" / "c.jsonl", claude_session(str(project_dir), ["same"]))

        result = _invoke(
            "compare", "--source", "codex", "--source", "claude", "--cwd", str(project_dir)
        )

        assert result.exit_code == 0
        assert result.output.startswith("### Agent Bridge Coordinator Report")
        assert "**Verdict:** ANALYSIS_COMPLETE" in result.output
        assert "All available agent outputs are aligned" in result.output

    def test_json_report(self, codex_home, project_dir):
        write_jsonl(
            codex_home / "rollout-1.jsonl", codex_session(str(project_dir), "s1", ["same"])
        )

        result = _invoke(
            "compare",
            "--source",
            "codex",
            "--source",
            "gemini:abc",
            "--cwd",
            str(project_dir),
            "--json",
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "analyze"
        assert data["findings"][0]["summary"].startswith("Source unavailable: gemini")
        assert data["findings"][0]["evidence"] == ["[gemini:abc]"]

    def test_bad_source(self):
        result = _invoke("compare", "--source", "copilot", "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "UNSUPPORTED_AGENT"


class TestReportCommand:
    def test_handoff_report(self, codex_home, project_dir, tmp_path):
        write_jsonl(
            codex_home / "rollout-1.jsonl", codex_session(str(project_dir), "s1", ["done"])
        )
        handoff = tmp_path / "handoff.json"
        handoff.write_text(
            json.dumps(
                {
                    "mode": "verify",
                    "task": "Check",
                    "success_criteria": ["works"],
                    "sources": [{"agent": "codex", "current_session": True}],
                }
            )
        )

        result = _invoke("report", "--handoff", str(handoff), "--cwd", str(project_dir), "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["verdict"] == "PASS"
        assert data["task"] == "Check"

    def test_invalid_handoff(self, tmp_path):
        handoff = tmp_path / "handoff.json"
        handoff.write_text('{"mode": "verify", "extra": 1}')

        result = _invoke("report", "--handoff", str(handoff), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "INVALID_HANDOFF"

    def test_missing_handoff_file(self, tmp_path):
        result = _invoke("report", "--handoff", str(tmp_path / "missing.json"), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "IO_ERROR"

    def test_non_utf8_handoff(self, tmp_path):
        handoff = tmp_path / "handoff.json"
        handoff.write_bytes(b"\xff\xfe")

        result = _invoke("report", "--handoff", str(handoff), "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "INVALID_HANDOFF"


class TestCatalogCommands:
    def test_list_json(self, codex_home, project_dir):
        for i in range(3):
            write_jsonl(
                codex_home / f"rollout-{i}.jsonl",
                codex_session(str(project_dir), str(i), ["x"]),
                mtime=1_000 + i,
            )

        result = _invoke("list", "--agent", "codex", "--limit", "2", "--json")

        assert result.exit_code == 0
        entries = json.loads(result.output)
        assert [e["session_id"] for e in entries] == ["rollout-2", "rollout-1"]
        assert entries[0]["agent"] == "codex"
        assert entries[0]["cwd"] == str(project_dir)

    def test_list_empty_table(self, codex_home):
        result = _invoke("list", "--agent", "codex")

        assert result.exit_code == 0
        assert "No sessions found." in result.output

    def test_search_json(self, codex_home, project_dir):
        write_jsonl(
            codex_home / "rollout-a.jsonl",
            codex_session(str(project_dir), "a", ["found the Needle"]),
        )
        write_jsonl(
            codex_home / "rollout-b.jsonl", codex_session(str(project_dir), "b", ["nothing"])
        )

        result = _invoke("search", "needle", "--agent", "codex", "--json")

        assert result.exit_code == 0
        assert [e["session_id"] for e in json.loads(result.output)] == ["rollout-a"]

    def test_search_unknown_agent(self):
        result = _invoke("search", "x", "--agent", "copilot", "--json")

        assert result.exit_code == 1
        assert json.loads(result.output)["error_code"] == "UNSUPPORTED_AGENT"
