"""
src/tools/exports.py — export chat transcripts in JSON and CSV formats.

Provides:
- export_transcript_json(messages, path): write [{"role", "content"}, ...]
- export_transcript_csv(messages, path): one row per message (index, role, content)

Notes:
- Both accept ConversationMessage objects or plain {"role", "content"} dicts.
- Parent directories are created as needed.
"""


import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from orchestrator.models import ConversationMessage


MessageLike = Union[ConversationMessage, Dict[str, Any]]


def _rows(messages: Sequence[MessageLike]) -> List[Dict[str, str]]:

    rows = []
    for m in messages:
        if isinstance(m, ConversationMessage):
            rows.append(m.as_dict())
        else:
            rows.append({"role": str(m["role"]), "content": str(m["content"])})

    return rows


# --- JSON ----------------------------------------------------------------------
def export_transcript_json(messages: Sequence[MessageLike], path: Union[str, Path]) -> Path:
    """
    Export a transcript as a JSON array.

    Args:
        messages: Transcript, oldest first.
        path: file path for saving

    Returns: path
    """

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(_rows(messages), f, indent=2, ensure_ascii=False)

    return path


# --- CSV -----------------------------------------------------------------------
def export_transcript_csv(messages: Sequence[MessageLike], path: Union[str, Path]) -> Path:
    """
    Export a transcript to CSV with headers index, role, content.

    Returns: path
    """

    rows = _rows(messages)

    if not rows:
        raise ValueError("No messages to export.")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["index", "role", "content"])
        writer.writeheader()
        for i, r in enumerate(rows):
            writer.writerow({"index": i, **r})

    return path
