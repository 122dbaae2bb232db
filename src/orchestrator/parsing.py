"""
src/orchestrator/parsing.py

Turns the model's free-form reply into a ModelResponse, or says why it could not.

The reply is expected to contain one JSON object (JSON mode usually gives us
exactly that, but models still wrap it in prose or code fences). We take the
span from the first "{" to the last "}", decode it, validate the envelope, and
decode the arguments of every *registered* function into its typed model.
Anything that does not fit is a ParseFailure; the caller treats the reply as
plain text.
"""


import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import ValidationError

from orchestrator.models import ModelResponse
from tools.registry import FunctionRegistry


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseSuccess:

    response: ModelResponse

    ok = True


@dataclass(frozen=True)
class ParseFailure:

    reason: str

    ok = False


ParseResult = Union[ParseSuccess, ParseFailure]


def extract_json_block(text: str) -> Optional[str]:
    """Return the substring from the first '{' to the last '}', if any."""

    start = text.find("{")
    end = text.rfind("}")

    if start == -1 or end < start:
        return None

    return text[start:end + 1]

def parse_model_response(text: str, registry: Optional[FunctionRegistry] = None) -> ParseResult:
    """
    Parse one model reply.

    Args:
        text: Raw reply content.
        registry: When given, arguments of registered functions are decoded
            into their argument models and a mismatch fails the whole reply.

    Returns:
        ParseSuccess(response) or ParseFailure(reason).
    """

    block = extract_json_block(text or "")

    if block is None:
        return ParseFailure("no JSON object found")

    try:
        payload = json.loads(block)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse JSON: %s", e)
        return ParseFailure(f"invalid JSON: {e}")

    if not isinstance(payload, dict):
        return ParseFailure("top-level JSON value is not an object")

    try:
        response = ModelResponse.model_validate(payload)
    except ValidationError as e:
        logger.warning("Reply does not match the response schema: %s", e.errors()[:3])
        return ParseFailure(f"schema mismatch: {e.error_count()} error(s)")

    if registry is not None:
        for call in response.function_calls:
            spec = registry.get(call.name)
            if spec is None:
                continue # dispatched later as "Unknown function"
            try:
                call.params = spec.args_model.model_validate(call.arguments)
            except ValidationError as e:
                logger.warning("Arguments for %s do not match: %s", call.name, e.errors()[:3])
                return ParseFailure(f"invalid arguments for {call.name}")

    return ParseSuccess(response)
