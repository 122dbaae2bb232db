"""Shared test fixtures."""

import json

import pytest

from config import Settings
from orchestrator.router import TaskOrchestrator
from tools.notifications import RecordingChannel
from tools.registry import build_registry
from tools.sandbox import FileSandbox


class ScriptedModel:
    """Fake chat model: returns queued replies in order, records what it was sent.

    An Exception instance in the queue is raised instead of returned. With
    repeat_last=True the final reply is served forever.
    """

    def __init__(self, replies, repeat_last=False):
        self.replies = list(replies)
        self.repeat_last = repeat_last
        self.calls = []

    def complete(self, messages):
        self.calls.append(list(messages))
        if not self.replies:
            raise AssertionError("ScriptedModel ran out of replies")
        reply = self.replies[0] if (self.repeat_last and len(self.replies) == 1) else self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def reply(explanation="ok", calls=(), meta=()):
    """Build a JSON reply in the response format the model is asked for."""
    return json.dumps({
        "explanation": explanation,
        "function_calls": [{"name": name, "arguments": args} for name, args in calls],
        "meta_actions": list(meta),
    })


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        projects_dir=tmp_path / "projects",
        sqlite_path=tmp_path / "db.sqlite",
        process_commands={
            "stop_website": "true",
            "restart_website": "true",
            "restart_backend": "true",
            "install_sqlite": "true",
        },
    )


@pytest.fixture()
def sandbox(settings):
    return FileSandbox(settings.projects_dir, settings.allowed_extensions)


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def registry(sandbox, channel, settings):
    return build_registry(sandbox, channel, settings)


@pytest.fixture()
def make_orchestrator(registry, channel):
    def _make(model, **kwargs):
        return TaskOrchestrator(model, registry, channel, **kwargs)
    return _make
