import json
import os
from pathlib import Path

import pytest

from agent_bridge.config import SOURCE_ENV_VARS, _clear_config_cache
from agent_bridge.paths import hash_path


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point every provider and the config file at empty temporary locations."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("BRIDGE_CONFIG", str(home / "config.toml"))
    for env_var in SOURCE_ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    _clear_config_cache()
    yield
    _clear_config_cache()


@pytest.fixture
def project_dir(tmp_path):
    """A real working directory that sessions can be scoped to."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def other_project_dir(tmp_path):
    path = tmp_path / "other-project"
    path.mkdir()
    return path


def write_jsonl(path: Path, records: list, mtime: float | None = None) -> Path:
    """Write records (dicts, or raw strings for malformed lines) as JSON Lines."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def write_json(path: Path, document, mtime: float | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def codex_session(cwd: str, session_id: str, replies: list[str]) -> list[dict]:
    """Modern Codex event log with one user prompt and the given assistant replies."""
    records: list[dict] = [
        {"type": "session_meta", "payload": {"id": session_id, "cwd": cwd}},
        {
            "type": "response_item",
            "payload": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": "do the thing"}],
            },
        },
    ]
    for reply in replies:
        records.append(
            {
                "type": "response_item",
                "payload": {
                    "type": "message",
                    "role": "assistant",
                    "content": [{"type": "output_text", "text": reply}],
                },
            }
        )
    return records


def claude_session(cwd: str, replies: list[str]) -> list[dict]:
    records: list[dict] = [
        {
            "type": "user",
            "cwd": cwd,
            "message": {"role": "user", "content": "please help"},
        }
    ]
    for reply in replies:
        records.append(
            {
                "type": "assistant",
                "cwd": cwd,
                "message": {"role": "assistant", "content": [{"type": "text", "text": reply}]},
            }
        )
    return records


@pytest.fixture
def codex_home(tmp_path, monkeypatch):
    path = tmp_path / "codex-sessions"
    path.mkdir()
    monkeypatch.setenv("BRIDGE_CODEX_SESSIONS_DIR", str(path))
    return path


@pytest.fixture
def claude_home(tmp_path, monkeypatch):
    path = tmp_path / "claude-projects"
    path.mkdir()
    monkeypatch.setenv("BRIDGE_CLAUDE_PROJECTS_DIR", str(path))
    return path


@pytest.fixture
def gemini_home(tmp_path, monkeypatch):
    path = tmp_path / "gemini-tmp"
    path.mkdir()
    monkeypatch.setenv("BRIDGE_GEMINI_TMP_DIR", str(path))
    return path


@pytest.fixture
def cursor_home(tmp_path, monkeypatch):
    path = tmp_path / "cursor-data"
    (path / "User" / "workspaceStorage").mkdir(parents=True)
    monkeypatch.setenv("BRIDGE_CURSOR_DATA_DIR", str(path))
    return path


def gemini_chats_dir(gemini_home: Path, cwd) -> Path:
    """The hashed chats directory Gemini uses for ``cwd``."""
    return gemini_home / hash_path(str(cwd)) / "chats"


def write_config(contents: str) -> Path:
    """Write the isolated config file and drop the cached config."""
    path = Path(os.environ["BRIDGE_CONFIG"])
    path.write_text(contents, encoding="utf-8")
    _clear_config_cache()
    return path
