"""Tests for the studio handlers behind the gradio UI."""

import json
from pathlib import Path

import pytest

from app import Studio
from conftest import ScriptedModel, reply


@pytest.fixture()
def studio(settings):
    def _make(replies, **overrides):
        return Studio(settings.model_copy(update=overrides), model=ScriptedModel(replies))
    return _make


def test_handle_chat_returns_reply_transcript_and_events(studio):
    s = studio([
        reply("creating", calls=[("createFile", {"filename": "index.html", "content": "<h1>hi</h1>"})]),
        reply("Done, index.html is ready."),
    ])
    answer, transcript, events = s.handle_chat("site", "create index.html with a hello heading")

    assert answer == "Done, index.html is ready."
    assert json.loads(transcript)[0] == {"role": "user", "content": "create index.html with a hello heading"}
    assert json.loads(events)[0]["payload"]["action"] == "render_table"
    assert s.preview("site") == "<h1>hi</h1>"
    # events are drained per turn
    assert s.channel.events == []


def test_handle_chat_rejects_blank_input(studio):
    s = studio([])

    assert s.handle_chat("site", "   ") == ("Type a message first.", "[]", "[]")
    assert s.handle_chat("", "hello")[0] == "Error: Missing or invalid projectId"


def test_handle_chat_saves_history(studio, tmp_path):
    path = tmp_path / "history.json"
    s = studio([reply("hello there")], history_path=path)
    s.handle_chat("site", "hi")

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["site"][-1] == {"role": "assistant", "content": "hello there"}


def test_file_and_backup_handlers(studio):
    s = studio([])

    assert s.save_file("site", "style.css", "a{}") == "File updated successfully"
    assert s.save_file("site", "style.css", "b{}") == "File updated successfully"
    assert s.list_files("site") == ["style.css"]
    assert s.open_file("site", "style.css") == ("b{}", "Opened style.css")
    assert s.save_file("site", "evil.py", "x").startswith("Error: Invalid file path")

    (backup,) = s.list_backups("site", "style.css")
    assert s.restore_backup("site", "style.css", backup) == f"File style.css restored from backup {backup}"
    assert s.open_file("site", "style.css")[0] == "a{}"
    assert s.delete_backup("site", "style.css", backup) == f"Backup {backup} deleted successfully"

    actions = [p["action"] for p in s.channel.payloads()]
    assert actions == ["update_component"] * 4


def test_missing_things_degrade_quietly(studio):
    s = studio([])

    assert s.list_files("ghost") == []
    assert s.open_file("ghost", "index.html")[1] == "Error: File does not exist"
    assert s.preview("ghost") == "<p>File does not exist</p>"
    assert s.export_history("ghost", "json") is None


def test_export_history(studio):
    s = studio([reply("hello there")])
    s.handle_chat("site", "hi")

    path = s.export_history("site", "csv")

    assert path.endswith("site.csv")
    assert "hello there" in Path(path).read_text(encoding="utf-8")


def test_chat_events_exclude_earlier_handler_events(studio):
    s = studio([reply("nothing to do")])
    s.save_file("site", "index.html", "<p>x</p>")

    _, _, events = s.handle_chat("site", "thanks")

    assert json.loads(events) == []
