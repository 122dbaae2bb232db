"""Tests for the orchestration loop: stop conditions, failure streaks, repeats."""

import pytest

from conftest import ScriptedModel, reply
from orchestrator.models import CallStatus, FunctionCall, Role, StopReason, system, user
from orchestrator.router import (
    MSG_CONSECUTIVE_FAILURES,
    MSG_MAX_ITERATIONS,
    MSG_REPEATING,
    TaskOrchestrator,
)

SEED = [user("create a file named x.html with '<h1>hi</h1>'")]


def test_create_file_then_finish(make_orchestrator, sandbox):
    model = ScriptedModel([
        reply("creating file", calls=[("createFile", {"filename": "x.html", "content": "<h1>hi</h1>"})]),
        reply("all done"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.NO_FUNCTION_CALLS
    assert result.iterations == 1
    assert len(model.calls) == 2
    assert sandbox.read("site", "x.html") == "<h1>hi</h1>"

    contents = [m.content for m in result.messages]
    assert "creating file" in contents
    assert "✅ createFile succeeded: File x.html created successfully." in contents
    assert contents[-1] == "all done"
    assert not any("repeating" in c for c in contents)
    assert result.function_results[0].status == CallStatus.SUCCESS
    assert result.reply == "all done"


def test_unparsable_reply_is_kept_verbatim(make_orchestrator):
    raw = "Sure! I just changed the header colour for you."
    model = ScriptedModel([raw])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.UNPARSABLE_REPLY
    assert result.messages[-1].role == Role.ASSISTANT
    assert result.messages[-1].content == raw
    assert result.function_results == []


def test_unparsable_reply_after_calls_stops_execution(make_orchestrator, channel):
    model = ScriptedModel([
        reply("refresh", calls=[("refreshUI", {})]),
        "{not json at all",
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.UNPARSABLE_REPLY
    assert result.messages[-1].content == "{not json at all"
    assert len(result.function_results) == 1
    assert len(model.calls) == 2


def test_empty_reply_stops_without_message(make_orchestrator):
    model = ScriptedModel(["   "])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.EMPTY_REPLY
    assert result.messages == SEED
    assert result.reply == ""


def test_no_function_calls_broadcasts_meta_actions(make_orchestrator, channel):
    meta = {"action": "refresh_page", "target": "main", "data": {"x": 1}}
    model = ScriptedModel([reply("nothing to run", meta=[meta])])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.NO_FUNCTION_CALLS
    assert result.iterations == 0
    assert channel.payloads() == [meta]
    assert not any(m.content == MSG_CONSECUTIVE_FAILURES for m in result.messages)


def test_three_failing_rounds_end_the_run(make_orchestrator):
    model = ScriptedModel([
        reply("try 1", calls=[("doMagic", {})]),
        reply("try 2", calls=[("doMoreMagic", {})]),
        reply("try 3", calls=[("doMagic", {"x": 1})]),
        reply("never sent"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.CONSECUTIVE_FAILURES
    assert len(model.calls) == 3
    assert result.messages[-1].content == MSG_CONSECUTIVE_FAILURES
    assert "Multiple consecutive failures" in result.messages[-1].content
    assert all(r.error == "Unknown function" for r in result.function_results)


def test_success_resets_failure_streak(make_orchestrator):
    model = ScriptedModel([
        reply("bad", calls=[("nope", {})]),
        reply("bad", calls=[("nope2", {})]),
        reply("good", calls=[("refreshUI", {})]),
        reply("bad", calls=[("nope3", {})]),
        reply("bad", calls=[("nope4", {})]),
        reply("done"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.NO_FUNCTION_CALLS
    assert len(model.calls) == 6


def test_failing_call_does_not_skip_the_rest(make_orchestrator, sandbox):
    model = ScriptedModel([
        reply("two things", calls=[
            ("readFile", {"filename": "missing.html"}),
            ("createFile", {"filename": "a.css", "content": "body{}"}),
        ]),
        reply("done"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    first, second = result.function_results
    assert first.status == CallStatus.ERROR
    assert first.error == "File does not exist"
    assert second.status == CallStatus.SUCCESS
    assert sandbox.read("site", "a.css") == "body{}"
    contents = [m.content for m in result.messages]
    assert "❌ readFile failed: File does not exist" in contents
    assert "Some tasks failed. Please adjust your instructions or try a different approach." in contents


def test_repeat_warning_is_advisory(make_orchestrator):
    model = ScriptedModel([
        reply("r1", calls=[("refreshUI", {})]),
        reply("r2", calls=[("refreshUI", {})]),
        reply("done"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    warnings = [m for m in result.messages if "repeating" in m.content]
    assert len(warnings) == 1
    assert warnings[0].role == Role.SYSTEM
    assert len(model.calls) == 3
    assert result.stop_reason == StopReason.NO_FUNCTION_CALLS


def test_repeat_window_is_one_round(make_orchestrator, sandbox):
    sandbox.ensure_project_dir("site")
    model = ScriptedModel([
        reply("a", calls=[("refreshUI", {})]),
        reply("b", calls=[("displayLogs", {"logs": ["x"]})]),
        reply("a", calls=[("refreshUI", {})]),
        reply("b", calls=[("displayLogs", {"logs": ["y"]})]),
        reply("done"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert not any(m.content == MSG_REPEATING for m in result.messages)


def test_always_refreshing_hits_max_iterations(make_orchestrator):
    model = ScriptedModel([reply("refresh", calls=[("refreshUI", {})])], repeat_last=True)
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.MAX_ITERATIONS
    assert result.iterations == 20
    assert len(model.calls) == 20
    assert result.messages[-1].content == MSG_MAX_ITERATIONS
    assert sum(1 for m in result.messages if m.content == MSG_REPEATING) == 19


def test_custom_iteration_bound(make_orchestrator):
    model = ScriptedModel([reply("refresh", calls=[("refreshUI", {})])], repeat_last=True)
    result = make_orchestrator(model, max_iterations=3).run(SEED, "site")

    assert result.iterations == 3
    assert len(model.calls) == 3


def test_model_error_is_terminal(make_orchestrator):
    model = ScriptedModel([
        reply("refresh", calls=[("refreshUI", {})]),
        RuntimeError("quota exceeded"),
        reply("never sent"),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.MODEL_ERROR
    assert result.messages[-1].role == Role.SYSTEM
    assert result.messages[-1].content == "Error during orchestration: quota exceeded"
    assert len(model.calls) == 2


def test_bad_arguments_for_known_function_are_malformed(make_orchestrator):
    raw = reply("write", calls=[("writeFile", {"filename": "a.html"})])
    model = ScriptedModel([raw])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.UNPARSABLE_REPLY
    assert result.messages[-1].content == raw


def test_unknown_function_is_always_the_same_error(make_orchestrator):
    orchestrator = make_orchestrator(ScriptedModel([]))
    for args in ({}, {"filename": "a.html"}, {"anything": [1, 2, 3]}):
        res = orchestrator.execute_call(FunctionCall(name="frobnicate", arguments=args), "site")
        assert res.status == CallStatus.ERROR
        assert res.error == "Unknown function"


def test_unknown_function_message_suggests_close_name(make_orchestrator):
    model = ScriptedModel([reply("oops", calls=[("writefile", {})]), reply("done")])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.function_results[0].error == "Unknown function"
    assert any(m.content == "❌ writefile failed: Unknown function (did you mean writeFile?)" for m in result.messages)


def test_seed_messages_are_replayed_first(make_orchestrator):
    seed = [system("be brief"), user("hello")]
    model = ScriptedModel([reply("hi")])
    make_orchestrator(model).run(seed, "site")

    assert model.calls[0] == seed


def test_run_requires_seed_and_project(make_orchestrator):
    orchestrator = make_orchestrator(ScriptedModel([]))
    with pytest.raises(ValueError):
        orchestrator.run([], "site")
    with pytest.raises(ValueError):
        orchestrator.run(SEED, "")


def test_bounds_must_be_positive(registry, channel):
    with pytest.raises(ValueError):
        TaskOrchestrator(ScriptedModel([]), registry, channel, max_iterations=0)


def test_meta_actions_follow_tool_events(make_orchestrator, channel):
    meta = {"action": "update_component", "target": "fileViewer", "data": {"filename": "a.html"}}
    model = ScriptedModel([reply("refresh", calls=[("refreshUI", {})], meta=[meta]), reply("done")])
    make_orchestrator(model).run(SEED, "site")

    assert [p["action"] for p in channel.payloads()] == ["refresh_page", "update_component"]
    assert channel.payloads()[-1] == meta


def test_failure_streak_end_skips_meta_actions(make_orchestrator, channel):
    meta = {"action": "refresh_page", "target": "main", "data": {}}
    model = ScriptedModel([
        reply("try 1", calls=[("doMagic", {})], meta=[meta]),
        reply("try 2", calls=[("doMagic", {})], meta=[meta]),
        reply("try 3", calls=[("doMagic", {})], meta=[meta]),
    ])
    result = make_orchestrator(model).run(SEED, "site")

    assert result.stop_reason == StopReason.CONSECUTIVE_FAILURES
    assert channel.payloads() == [meta, meta]
