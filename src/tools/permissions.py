"""
src/tools/permissions.py — minimal file access policy for project sandboxes

Two rules decide whether the model (or the UI) may touch a path:
  1) Jail: the resolved path must stay inside the project directory. "../"
     tricks and absolute paths resolve outside and are refused.
  2) Extension allow-list: only web assets (.html, .css, .js by default) may
     be read or written. Everything else, including backups, is off limits.

Usage:
    from tools.permissions import is_allowed_path
    if not is_allowed_path(project_dir, target, ALLOWED_EXTENSIONS):
        raise InvalidPathError(...)
"""


from pathlib import Path
from typing import Iterable


def is_within(root: Path, candidate: Path) -> bool:
    """
    Return True if `candidate` resolves to `root` itself or somewhere below it.

    Both paths are resolved first so symlinks and ".." segments cannot escape.
    """

    root = root.resolve()
    candidate = candidate.resolve()

    return candidate == root or root in candidate.parents

def has_allowed_extension(filename: str, allowed: Iterable[str]) -> bool:
    """Case-insensitive extension check against the allow-list."""

    suffix = Path(filename).suffix.lower()

    return suffix in {ext.lower() for ext in allowed}

def is_allowed_path(project_dir: Path, filename: str, allowed: Iterable[str]) -> bool:
    """
    Return True if `filename` (relative to `project_dir`) passes both rules.

    Args:
        project_dir: The project's root directory.
        filename: Path as supplied by the caller, e.g. "css/site.css".
        allowed: Allowed extensions including the dot.
    """

    if not filename or not filename.strip():
        return False

    target = project_dir / filename

    return is_within(project_dir, target) and target.resolve() != project_dir.resolve() \
        and has_allowed_extension(target.name, allowed)
