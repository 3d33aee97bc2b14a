import pytest

from agent_bridge.adapters import CursorAdapter
from agent_bridge.errors import NotFoundError

from conftest import write_json, write_jsonl


@pytest.fixture
def workspaces(cursor_home):
    return cursor_home / "User" / "workspaceStorage"


class TestCursorAdapter:
    @pytest.fixture
    def adapter(self):
        return CursorAdapter()

    def test_session_file_names(self, adapter, tmp_path):
        assert adapter.is_session_file(tmp_path / "chat-123.json")
        assert adapter.is_session_file(tmp_path / "ComposerData.jsonl")
        assert adapter.is_session_file(tmp_path / "conversation.json")
        assert not adapter.is_session_file(tmp_path / "settings.json")
        assert not adapter.is_session_file(tmp_path / "chat.txt")

    def test_missing_data_directory(self, adapter, project_dir):
        with pytest.raises(NotFoundError):
            adapter.read_session(cwd=str(project_dir))

    def test_messages_document(self, adapter, workspaces, project_dir):
        document = {
            "workspace": str(project_dir),
            "messages": [
                {"role": "user", "content": "question"},
                {"role": "assistant", "content": "first"},
                {"role": "assistant", "content": [{"type": "text", "text": "second"}]},
            ],
        }
        path = write_json(workspaces / "ws1" / "chat-1.json", document)

        session = adapter.read_session(cwd=str(project_dir))

        assert session.agent == "cursor"
        assert session.content == "second"
        assert session.session_id == "chat-1"
        assert session.cwd is None
        assert session.source == str(path)
        assert session.message_count == 2
        assert session.warnings == []

    def test_single_content_document(self, adapter, workspaces, project_dir):
        write_json(workspaces / "ws1" / "composer.json", {"content": f"in {project_dir}"})

        session = adapter.read_session(cwd=str(project_dir))

        assert session.content == f"in {project_dir}"
        assert session.message_count == 1

    def test_unrecognized_document_uses_raw_lines(self, adapter, workspaces, project_dir):
        write_json(workspaces / "ws1" / "chat.json", {"other": str(project_dir)})

        session = adapter.read_session(cwd=str(project_dir))

        assert session.messages_returned == 0
        assert session.content.startswith("Could not extract structured messages.")

    def test_jsonl_fallback_counts_bad_lines(self, adapter, workspaces, project_dir):
        path = write_jsonl(
            workspaces / "ws1" / "conversation.jsonl",
            [
                {"role": "user", "content": f"cd {project_dir}"},
                "{broken",
                {"role": "assistant", "content": "jsonl answer"},
            ],
        )

        session = adapter.read_session(cwd=str(project_dir))

        assert session.content == "jsonl answer"
        assert session.warnings == [f"Warning: skipped 1 unparseable line(s) in {path}"]

    def test_cwd_substring_match(self, adapter, workspaces, project_dir, other_project_dir):
        mine = write_json(
            workspaces / "ws1" / "chat-mine.json",
            {"messages": [{"role": "assistant", "content": f"working in {project_dir}"}]},
            mtime=1_000,
        )
        write_json(
            workspaces / "ws2" / "chat-other.json",
            {"messages": [{"role": "assistant", "content": f"working in {other_project_dir}"}]},
            mtime=2_000,
        )

        session = adapter.read_session(cwd=str(project_dir))

        assert session.source == str(mine)
        assert session.warnings == []

    def test_no_cwd_match_falls_back(self, adapter, workspaces, project_dir):
        latest = write_json(
            workspaces / "ws1" / "chat-any.json",
            {"messages": [{"role": "assistant", "content": "unrelated"}]},
        )

        session = adapter.read_session(cwd=str(project_dir))

        assert session.source == str(latest)
        assert session.warnings[0].startswith("Warning: no Cursor session matched cwd")

    def test_explicit_id(self, adapter, workspaces, project_dir):
        wanted = write_json(
            workspaces / "ws1" / "chat-7f3a.json",
            {"messages": [{"role": "assistant", "content": "wanted"}]},
            mtime=1_000,
        )
        write_json(
            workspaces / "ws1" / "chat-9999.json",
            {"messages": [{"role": "assistant", "content": "newer"}]},
            mtime=2_000,
        )

        session = adapter.read_session(session_id="7f3a", cwd=str(project_dir))

        assert session.source == str(wanted)

    def test_list_sessions_filters_by_content(
        self, adapter, workspaces, project_dir, other_project_dir
    ):
        write_json(workspaces / "ws1" / "chat-mine.json", {"content": str(project_dir)})
        write_json(workspaces / "ws2" / "chat-other.json", {"content": str(other_project_dir)})

        scoped = adapter.list_sessions(cwd=str(project_dir))

        assert [e.session_id for e in scoped] == ["chat-mine"]
        assert len(adapter.list_sessions()) == 2
