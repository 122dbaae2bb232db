"""
src/context/selectors.py
"""


from typing import List, Optional, Sequence
from rapidfuzz import fuzz, process

from orchestrator.models import ConversationMessage, Role


def last_assistant_message(messages: Sequence[ConversationMessage]) -> Optional[ConversationMessage]:

    return next((m for m in reversed(messages) if m.role == Role.ASSISTANT), None)

def messages_by_role(messages: Sequence[ConversationMessage], role: Role) -> List[ConversationMessage]:

    return [m for m in messages if m.role == role]

def suggest_function_name(name: str, known: Sequence[str], cutoff: int = 80) -> Optional[str]:
    """Closest registered name for a misspelt call ("writefile" -> "writeFile"), or None."""

    if not name or not known:
        return None

    match = process.extractOne(name, list(known), scorer=fuzz.WRatio, processor=str.lower, score_cutoff=cutoff)

    if not match:
        return None

    best, score, idx = match

    return best
