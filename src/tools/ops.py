"""
src/tools/ops.py — process-control tools (website + backend server)

Provides ProcessTools with:
- stop_website / restart_website / restart_backend_server: run the configured
  process-manager command (pm2 by default)
- stop_backend_server: schedule this process to exit after a short delay
- install_sqlite: run the configured sqlite3 install command

Design notes:
* Commands come from Settings.process_commands (CODELIT_CMD_<KEY> overrides).
* Every outcome is also shown in the UI as a display_notification meta-action;
  failures are re-raised so the orchestrator records them as errors.
* stop_backend_server relies on an external supervisor to bring us back.
"""


from __future__ import annotations
import logging
import os
import signal
import subprocess
import threading
from typing import Callable, Dict

from orchestrator.models import NoArgs, OrchestratorError
from tools.notifications import META_ACTION_EVENT, NotificationChannel, meta_action


logger = logging.getLogger(__name__)

Runner = Callable[[str], subprocess.CompletedProcess]


class CommandError(OrchestratorError):
    """A process-manager command exited non-zero."""


def run_shell(command: str) -> subprocess.CompletedProcess:
    """Run a shell command, raising CommandError with stderr on failure."""

    proc = subprocess.run(command, shell=True, capture_output=True, text=True, check=False)

    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip() or f"exit code {proc.returncode}"
        raise CommandError(f"Command failed: {command}: {detail}")

    return proc

def _terminate_self() -> None:

    os.kill(os.getpid(), signal.SIGTERM)


class ProcessTools:

    def __init__(
            self,
            channel: NotificationChannel,
            commands: Dict[str, str],
            *,
            runner: Runner = run_shell,
            shutdown: Callable[[], None] = _terminate_self,
            shutdown_delay_seconds: float = 1.0,
    ):

        self.channel = channel
        self.commands = dict(commands)
        self.runner = runner
        self.shutdown = shutdown
        self.shutdown_delay_seconds = shutdown_delay_seconds

    # --- Helpers ---------------------------------------------------------------
    def _notify(self, kind: str, message: str) -> None:

        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("display_notification", "notificationCenter", {"type": kind, "message": message}),
        )

    def _run(self, key: str, done: str, failed: str) -> str:
        """
        Run the command configured under `key`.

        Args:
            key: Entry in `commands`, e.g. "restart_website".
            done: Success sentence, shown in the UI and returned to the model.
            failed: Failure prefix; the underlying error is appended.
        """

        command = self.commands.get(key)
        if not command:
            raise ValueError(f"No command configured for '{key}'.")

        logger.info("Running %s: %s", key, command)
        try:
            proc = self.runner(command)
        except (CommandError, OSError) as e:
            logger.error("%s: %s", failed, e)
            self._notify("error", f"{failed}: {e}")
            raise CommandError(f"{failed}: {e}") from e

        output = (getattr(proc, "stdout", "") or "").strip()
        if output:
            logger.debug("%s output: %s", key, output)
        self._notify("success", done)

        return done

    # --- Public API ------------------------------------------------------------
    def stop_website(self, args: NoArgs, project_id: str) -> str:

        return self._run("stop_website", "Website stopped successfully.", "Failed to stop website")

    def restart_website(self, args: NoArgs, project_id: str) -> str:

        return self._run("restart_website", "Website restarted successfully.", "Failed to restart website")

    def restart_backend_server(self, args: NoArgs, project_id: str) -> str:

        return self._run("restart_backend", "Backend server restarted successfully.", "Failed to restart backend server")

    def install_sqlite(self, args: NoArgs, project_id: str) -> str:

        return self._run("install_sqlite", "SQLite3 installed successfully.", "Failed to install SQLite3")

    def stop_backend_server(self, args: NoArgs, project_id: str) -> str:
        """Shut this process down after a delay so the reply can still be delivered."""

        logger.warning("Backend server stop requested; exiting in %.1fs", self.shutdown_delay_seconds)
        timer = threading.Timer(self.shutdown_delay_seconds, self.shutdown)
        timer.daemon = True
        timer.start()

        return "Backend server stop initiated."
