"""
src/tools/sandbox.py — per-project file jail with automatic backups

This module provides FileSandbox, the only component that touches project files:
- read / write / create / delete inside `<projects_dir>/<project_id>/`
- a timestamped backup in `.backups/` before every overwrite or delete
- listing helpers for the UI (files, backups, directory tree)
- restore / delete of individual backups

Path rules live in tools.permissions (directory jail + extension allow-list).
Backups are named `<filename>.<timestamp>.bak`, where the timestamp is ISO-8601
UTC with ':' and '.' replaced by '-' so it is safe in file names.
"""


from __future__ import annotations
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from config import ALLOWED_EXTENSIONS, BACKUPS_DIRNAME
from tools.permissions import is_allowed_path, is_within


logger = logging.getLogger(__name__)


# --- Errors --------------------------------------------------------------------
class SandboxError(Exception):
    """Base class for sandbox failures. The message is shown to the model as-is."""


class InvalidPathError(SandboxError):

    def __init__(self, message: str = "Invalid file path"):
        super().__init__(message)


class FileMissingError(SandboxError):

    def __init__(self, message: str = "File does not exist"):
        super().__init__(message)


class FileAlreadyExistsError(SandboxError):

    def __init__(self, message: str = "File already exists"):
        super().__init__(message)


class ProjectNotFoundError(SandboxError):

    def __init__(self, message: str = "Project not found"):
        super().__init__(message)


class BackupMissingError(SandboxError):

    def __init__(self, message: str = "Backup file does not exist"):
        super().__init__(message)


# --- Helpers -------------------------------------------------------------------
def backup_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' swapped for '-'."""

    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")

    return stamp.replace(":", "-").replace(".", "-")


# --- Sandbox -------------------------------------------------------------------
class FileSandbox:

    def __init__(self, root: Path, allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS):

        self.root = Path(root)
        self.allowed_extensions = tuple(allowed_extensions)
        self.root.mkdir(parents=True, exist_ok=True)

    # Paths
    def project_dir(self, project_id: str) -> Path:
        """Return the project's directory, refusing ids that escape the root."""

        if not project_id or not project_id.strip():
            raise InvalidPathError("Missing or invalid projectId")

        project_dir = self.root / project_id

        if not is_within(self.root, project_dir) or project_dir.resolve() == self.root.resolve():
            raise InvalidPathError("Invalid project id")

        return project_dir

    def ensure_project_dir(self, project_id: str) -> Path:

        project_dir = self.project_dir(project_id)
        project_dir.mkdir(parents=True, exist_ok=True)

        return project_dir

    def backups_dir(self, project_id: str) -> Path:

        return self.project_dir(project_id) / BACKUPS_DIRNAME

    def validate(self, project_id: str, filename: str) -> bool:
        """True if `filename` may be touched inside this project."""

        try:
            project_dir = self.project_dir(project_id)
        except InvalidPathError:
            return False

        if not isinstance(filename, str) or not is_allowed_path(project_dir, filename, self.allowed_extensions):
            return False

        # The backups folder is managed by the sandbox only
        return not is_within(project_dir / BACKUPS_DIRNAME, project_dir / filename)

    def resolve(self, project_id: str, filename: str) -> Path:
        """Validated absolute path for a project file, or InvalidPathError."""

        if not self.validate(project_id, filename):
            raise InvalidPathError()

        return self.project_dir(project_id) / filename

    # File operations
    def read(self, project_id: str, filename: str) -> str:

        path = self.resolve(project_id, filename)

        if not path.is_file():
            raise FileMissingError()

        return path.read_text(encoding="utf-8")

    def write(self, project_id: str, filename: str, content: str) -> Path:
        """Overwrite (or create) a file, backing up any previous content first."""

        path = self.resolve(project_id, filename)
        self.ensure_project_dir(project_id)
        self.backup(project_id, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote %s/%s (%d chars)", project_id, filename, len(content))

        return path

    def create(self, project_id: str, filename: str, content: str) -> Path:

        path = self.resolve(project_id, filename)

        if path.exists():
            raise FileAlreadyExistsError()

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Created %s/%s", project_id, filename)

        return path

    def delete(self, project_id: str, filename: str) -> Optional[Path]:
        """Delete a file after backing it up. Returns the backup path."""

        path = self.resolve(project_id, filename)

        if not path.is_file():
            raise FileMissingError()

        backup = self.backup(project_id, filename)
        path.unlink()
        logger.info("Deleted %s/%s", project_id, filename)

        return backup

    def backup(self, project_id: str, filename: str) -> Optional[Path]:
        """
        Copy the current file into `.backups/` if it exists.

        Returns:
            The backup path, or None when there was nothing to back up.
        """

        source = self.resolve(project_id, filename)

        if not source.is_file():
            return None

        target = self.backups_dir(project_id) / f"{filename}.{backup_timestamp()}.bak"
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        logger.info("Backup created: %s", target)

        return target

    # Listings
    def list_files(self, project_id: str) -> List[str]:
        """Allowed files in the project, relative paths, sorted."""

        project_dir = self.project_dir(project_id)

        if not project_dir.is_dir():
            raise ProjectNotFoundError()

        out = []
        for path in sorted(project_dir.rglob("*")):
            rel = path.relative_to(project_dir).as_posix()
            if path.is_file() and self.validate(project_id, rel):
                out.append(rel)

        return out

    def list_backups(self, project_id: str, filename: str) -> List[str]:

        backups_dir = self.backups_dir(project_id)
        target_dir = (backups_dir / filename).parent
        prefix = f"{Path(filename).name}."

        if not target_dir.is_dir():
            return []

        return sorted(
            p.name for p in target_dir.iterdir()
            if p.is_file() and p.name.startswith(prefix) and p.name.endswith(".bak")
        )

    def _backup_path(self, project_id: str, filename: str, backup_name: str) -> Path:

        target_dir = (self.backups_dir(project_id) / filename).parent
        path = target_dir / backup_name

        if not backup_name or not is_within(self.backups_dir(project_id), path) or not path.is_file():
            raise BackupMissingError()

        return path

    def restore_backup(self, project_id: str, filename: str, backup_name: str) -> Path:
        """Replace `filename` with a backup; the current content is backed up first."""

        path = self.resolve(project_id, filename)
        source = self._backup_path(project_id, filename, backup_name)
        self.backup(project_id, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, path)
        logger.info("Restored %s/%s from %s", project_id, filename, backup_name)

        return path

    def delete_backup(self, project_id: str, filename: str, backup_name: str) -> None:

        self.resolve(project_id, filename)
        self._backup_path(project_id, filename, backup_name).unlink()
        logger.info("Deleted backup %s for %s/%s", backup_name, project_id, filename)

    def project_tree(self, project_id: str) -> Dict[str, Any]:
        """
        Nested view of the project directory for the model's context.

        Directories become {"name", "type": "directory", "children"}; files are
        plain names. A missing project yields {"error": ...}.
        """

        project_dir = self.project_dir(project_id)

        if not project_dir.is_dir():
            return {"error": "Project directory does not exist"}

        return _tree(project_dir)


def _tree(path: Path) -> Any:

    if not path.is_dir():
        return path.name

    return {
        "name": path.name,
        "type": "directory",
        "children": [_tree(child) for child in sorted(path.iterdir())],
    }
