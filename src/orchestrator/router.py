"""
src/orchestrator/router.py

Router: runs the propose/execute loop against the model, dispatches function
calls through the registry and decides when to stop.

One run ends on the first of:
  - empty reply
  - reply that is not a well-formed response (kept verbatim as the answer)
  - reply with no function calls
  - too many failing rounds in a row
  - the iteration bound
  - any unexpected error (model transport errors included)
"""


import json
import logging
from typing import Any, List, Sequence

from config import MAX_CONSECUTIVE_FAILURES, MAX_ITERATIONS
from context.selectors import suggest_function_name
from orchestrator.llm_openai import ChatModel
from orchestrator.models import (
    AuditEntry,
    CallStatus,
    ConversationMessage,
    FunctionCall,
    FunctionResult,
    MetaAction,
    OrchestrationState,
    OrchestratorResult,
    StopReason,
    assistant,
    system,
)
from orchestrator.parsing import ParseFailure, parse_model_response
from tools.notifications import META_ACTION_EVENT, NotificationChannel
from tools.registry import FunctionRegistry


logger = logging.getLogger(__name__)

UNKNOWN_FUNCTION = "Unknown function"
MSG_CONSECUTIVE_FAILURES = "Multiple consecutive failures. Ending orchestration."
MSG_ADJUST = "Some tasks failed. Please adjust your instructions or try a different approach."
MSG_REPEATING = "You are repeating the same function calls as before. Please propose a different approach or end."
MSG_MAX_ITERATIONS = "Max iterations reached. Orchestration ended."


def _format_result(value: Any) -> str:

    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


class TaskOrchestrator:

    def __init__(
            self,
            model: ChatModel,
            registry: FunctionRegistry,
            channel: NotificationChannel,
            *,
            max_iterations: int = MAX_ITERATIONS,
            max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES,
    ):

        if max_iterations <= 0 or max_consecutive_failures <= 0:
            raise ValueError("Loop bounds must be positive.")

        self.model = model
        self.registry = registry
        self.channel = channel
        self.max_iterations = max_iterations
        self.max_consecutive_failures = max_consecutive_failures

    # -------- Dispatch ---------------------------------------------------------
    def execute_call(self, call: FunctionCall, project_id: str) -> FunctionResult:
        """Run one call. Never raises: failures come back as error results."""

        spec = self.registry.get(call.name)

        if spec is None:
            return FunctionResult(function_name=call.name, status=CallStatus.ERROR, error=UNKNOWN_FUNCTION)

        try:
            params = call.params if call.params is not None else spec.args_model.model_validate(call.arguments)
            out = spec.handler(params, project_id)
        except Exception as e:
            logger.info("%s failed: %s", call.name, e)
            return FunctionResult(function_name=call.name, status=CallStatus.ERROR, error=str(e) or type(e).__name__)

        return FunctionResult(function_name=call.name, status=CallStatus.SUCCESS, result=out)

    def _result_message(self, res: FunctionResult) -> ConversationMessage:

        if res.ok:
            return system(f"✅ {res.function_name} succeeded: {_format_result(res.result)}")

        text = f"❌ {res.function_name} failed: {res.error}"
        if res.error == UNKNOWN_FUNCTION:
            hint = suggest_function_name(res.function_name, self.registry.names())
            if hint:
                text += f" (did you mean {hint}?)"

        return system(text)

    def _broadcast(self, actions: List[MetaAction]) -> None:

        for action in actions:
            self.channel.broadcast(META_ACTION_EVENT, action.model_dump())
            logger.info("Emitted meta-action: %s on %s", action.action, action.target)

    # -------- Orchestrate ------------------------------------------------------
    def run(self, seed_messages: Sequence[ConversationMessage], project_id: str) -> OrchestratorResult:
        """
        Entry point: iterate model -> execute -> feed back until a stop condition.

        Args:
            seed_messages: Non-empty starting transcript (system prompt, history, user text).
            project_id: Sandbox the file tools operate on.

        Returns:
            OrchestratorResult with the whole transcript (seed included) and why it stopped.
        """

        if not seed_messages:
            raise ValueError("seed_messages must not be empty")
        if not project_id:
            raise ValueError("project_id must not be empty")

        state = OrchestrationState(messages=list(seed_messages))
        results: List[FunctionResult] = []
        audit: List[AuditEntry] = []

        while state.stop_reason is None:
            logger.info("Orchestration iteration %d (project %s)", state.iteration + 1, project_id)
            try:
                self._iterate(state, project_id, results, audit)
            except Exception as e:
                logger.exception("Orchestration iteration %d failed", state.iteration + 1)
                state.messages.append(system(f"Error during orchestration: {e}"))
                audit.append(AuditEntry(step="error", ok=False, detail=str(e)))
                state.stop_reason = StopReason.MODEL_ERROR

        logger.info("Orchestration stopped after %d iteration(s): %s", state.iteration, state.stop_reason.value)

        return OrchestratorResult(
            messages=state.messages,
            stop_reason=state.stop_reason,
            iterations=state.iteration,
            function_results=results,
            audit=audit,
        )

    def _iterate(
            self,
            state: OrchestrationState,
            project_id: str,
            results: List[FunctionResult],
            audit: List[AuditEntry],
    ) -> None:
        """One round. Sets state.stop_reason when the run should end."""

        round_no = state.iteration + 1
        reply = self.model.complete(list(state.messages))

        if not reply or not reply.strip():
            logger.warning("Model returned an empty response.")
            audit.append(AuditEntry(step=f"model_round_{round_no}", ok=True, detail="Empty reply."))
            state.stop_reason = StopReason.EMPTY_REPLY
            return

        logger.debug("Model reply: %s", reply)
        parsed = parse_model_response(reply, self.registry)

        if isinstance(parsed, ParseFailure):
            logger.warning("Model reply is not a valid response (%s). Ending orchestration.", parsed.reason)
            state.messages.append(assistant(reply))
            audit.append(AuditEntry(step=f"model_round_{round_no}", ok=True, detail=f"Plain text reply: {parsed.reason}"))
            state.stop_reason = StopReason.UNPARSABLE_REPLY
            return

        response = parsed.response
        state.messages.append(assistant(response.explanation))

        if not response.function_calls:
            logger.info("No function calls; %d meta-action(s).", len(response.meta_actions))
            self._broadcast(response.meta_actions)
            audit.append(AuditEntry(step=f"model_round_{round_no}", ok=True, detail="No function calls: done."))
            state.stop_reason = StopReason.NO_FUNCTION_CALLS
            return

        # Execute each function call in order; one failure does not skip the rest
        round_results = []
        for call in response.function_calls:
            audit.append(AuditEntry(step="function_call", ok=True, detail=f"Calling {call.name}", function_call=call))
            res = self.execute_call(call, project_id)
            audit.append(AuditEntry(
                step="function_result",
                ok=res.ok,
                detail="ok" if res.ok else (res.error or "error"),
                function_call=call,
                function_result=res,
            ))
            round_results.append(res)
        results.extend(round_results)

        for res in round_results:
            state.messages.append(self._result_message(res))

        # Failure streak
        if all(res.ok for res in round_results):
            state.consecutive_failures = 0
        else:
            state.consecutive_failures += 1
            if state.consecutive_failures >= self.max_consecutive_failures:
                logger.warning("%d consecutive failing rounds. Ending orchestration.", state.consecutive_failures)
                state.messages.append(system(MSG_CONSECUTIVE_FAILURES))
                state.stop_reason = StopReason.CONSECUTIVE_FAILURES
                return
            state.messages.append(system(MSG_ADJUST))

        # Repeat detection (previous round only)
        names = [call.name for call in response.function_calls]
        if names == state.last_function_call_names:
            logger.warning("Repeated function calls: %s", ", ".join(names))
            state.messages.append(system(MSG_REPEATING))
        state.last_function_call_names = names

        self._broadcast(response.meta_actions)

        state.iteration += 1
        if state.iteration >= self.max_iterations:
            logger.warning("Reached maximum iterations (%d).", self.max_iterations)
            state.messages.append(system(MSG_MAX_ITERATIONS))
            state.stop_reason = StopReason.MAX_ITERATIONS
