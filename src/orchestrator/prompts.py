"""
src/orchestrator/prompts.py

System prompt template, message classification and per-message directives.
"""


import json
from typing import Any, Dict, List

from config import MessageType
from orchestrator.models import ConversationMessage, system


COMMAND_KEYWORDS = ("create", "delete", "update", "install", "run", "stop", "restart")
QUERY_KEYWORDS = ("what", "how", "list", "show", "describe")
STATUS_KEYWORDS = ("status", "running", "error", "issue")

DIRECTIVES: Dict[MessageType, str] = {
    MessageType.COMMAND: 'Handle the following command: "{message}"',
    MessageType.QUERY: 'Respond to the following query: "{message}"',
    MessageType.STATUS: 'Provide status information for: "{message}"',
    MessageType.OTHER: 'Process the following message: "{message}"',
}

SYSTEM_TEMPLATE = """
You are a sophisticated coding assistant capable of managing complex, multi-step tasks to help build and modify a website.

JSON mode is on: your whole reply must be a single valid JSON object.

## What you can do:
{functions}

## Please follow these rules:
1. Always return valid JSON.
2. Provide a short, clear `explanation` of your plan or actions.
3. If you need no actions, set `function_calls` and `meta_actions` to empty arrays.
4. You may propose multiple function calls and meta-actions at once if necessary (multi-step).
5. If a function fails, you can propose a new plan or ask the user for more info.

**Response Format** (JSON):
{{
  "explanation": "...",
  "function_calls": [
    {{
      "name": "someFunction",
      "arguments": {{}}
    }}
  ],
  "meta_actions": [
    {{
      "action": "refresh_page",
      "target": "main",
      "data": {{}}
    }}
  ]
}}
"""


def classify_message(message: str) -> MessageType:
    """
    Keyword heuristic: command words anywhere win, then question openers,
    then status words.
    """

    text = message.lower()

    if any(word in text for word in COMMAND_KEYWORDS):
        return MessageType.COMMAND
    if any(text.startswith(word) for word in QUERY_KEYWORDS):
        return MessageType.QUERY
    if any(word in text for word in STATUS_KEYWORDS):
        return MessageType.STATUS

    return MessageType.OTHER

def base_system_message(function_listing: str) -> ConversationMessage:

    return system(SYSTEM_TEMPLATE.format(functions=function_listing))

def project_structure_message(tree: Dict[str, Any]) -> ConversationMessage:

    return system(f"Here is the current project structure:\n{json.dumps(tree, indent=2)}")

def directive_messages(user_messages: List[str]) -> List[ConversationMessage]:
    """One system directive per user message, worded by its type."""

    return [system(DIRECTIVES[classify_message(m)].format(message=m)) for m in user_messages]
