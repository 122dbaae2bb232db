"""
src/config.py

Defaults, enums and environment-driven settings for the studio.
"""


import os
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, Field


class MessageType(str, Enum):

    COMMAND = "command"
    QUERY = "query"
    STATUS = "status"
    OTHER = "other"


# Defaults
MAX_ITERATIONS: int = 20                    # Hard bound on orchestration rounds
MAX_CONSECUTIVE_FAILURES: int = 3           # Failing rounds in a row before giving up
HISTORY_TAIL: int = 5                       # History messages replayed per chat
DEFAULT_MODEL: str = "gpt-4o"
DEFAULT_TEMPERATURE: float = 0.7
ALLOWED_EXTENSIONS: Tuple[str, ...] = (".html", ".css", ".js")
BACKUPS_DIRNAME: str = ".backups"
PROJECTS_DIRNAME: str = "projects"          # Relative to the working directory
SQLITE_FILENAME: str = "db.sqlite"

# Process manager commands (pm2 by default)
PROCESS_COMMANDS = {
    "stop_website": "pm2 stop website",
    "restart_website": "pm2 restart website",
    "restart_backend": "pm2 restart backend-server",
    "install_sqlite": "sudo apt-get update && sudo apt-get install -y sqlite3",
}


class Settings(BaseModel):

    projects_dir: Path = Field(default_factory=lambda: Path.cwd() / PROJECTS_DIRNAME)
    openai_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_iterations: int = MAX_ITERATIONS
    max_consecutive_failures: int = MAX_CONSECUTIVE_FAILURES
    history_tail: int = HISTORY_TAIL
    allowed_extensions: Tuple[str, ...] = ALLOWED_EXTENSIONS
    sqlite_path: Path = Field(default_factory=lambda: Path.cwd() / SQLITE_FILENAME)
    history_path: Optional[Path] = None
    log_level: str = "INFO"
    process_commands: dict = Field(default_factory=lambda: dict(PROCESS_COMMANDS))
    shutdown_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Read CODELIT_* variables, falling back to the module defaults."""

        projects_dir = Path(os.getenv("CODELIT_PROJECTS_DIR") or Path.cwd() / PROJECTS_DIRNAME)
        history_path = os.getenv("CODELIT_HISTORY_PATH")

        commands = dict(PROCESS_COMMANDS)
        for key in commands:
            override = os.getenv(f"CODELIT_CMD_{key.upper()}")
            if override:
                commands[key] = override

        settings = cls(
            projects_dir=projects_dir,
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("CODELIT_MODEL", DEFAULT_MODEL),
            temperature=_env_float("CODELIT_TEMPERATURE", DEFAULT_TEMPERATURE),
            max_iterations=_env_int("CODELIT_MAX_ITERATIONS", MAX_ITERATIONS),
            max_consecutive_failures=_env_int("CODELIT_MAX_CONSECUTIVE_FAILURES", MAX_CONSECUTIVE_FAILURES),
            history_tail=_env_int("CODELIT_HISTORY_TAIL", HISTORY_TAIL),
            sqlite_path=Path(os.getenv("CODELIT_SQLITE_PATH", str(projects_dir.parent / SQLITE_FILENAME))),
            history_path=Path(history_path) if history_path else None,
            log_level=os.getenv("CODELIT_LOG_LEVEL", "INFO").upper(),
            process_commands=commands,
        )
        settings.validate_limits()

        return settings

    def validate_limits(self) -> None:
        """Raise if a loop bound is unusable."""

        if self.max_iterations <= 0:
            raise ValueError("CODELIT_MAX_ITERATIONS must be > 0.")
        if self.max_consecutive_failures <= 0:
            raise ValueError("CODELIT_MAX_CONSECUTIVE_FAILURES must be > 0.")
        if self.history_tail < 0:
            raise ValueError("CODELIT_HISTORY_TAIL must be >= 0.")


def _env_int(name: str, default: int) -> int:

    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'.") from None

def _env_float(name: str, default: float) -> float:

    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got '{raw}'.") from None
# EOF
