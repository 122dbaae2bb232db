"""
src/tools/registry.py

Explicit table of the operations the model may call: name -> (argument model,
handler, description). The table is built once per studio and handed to the
orchestrator; nothing registers itself at import time.
"""


from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from config import Settings
from orchestrator.models import ChartArgs, FileContentArgs, FilenameArgs, LogsArgs, NoArgs, SqlQueryArgs, TableArgs, ToolArgs
from tools.database import SqliteTools
from tools.files import FileTools
from tools.notifications import NotificationChannel
from tools.ops import ProcessTools
from tools.sandbox import FileSandbox
from tools.ui import UiTools


Handler = Callable[[Any, str], Any] # (params, project_id) -> result


@dataclass(frozen=True)
class FunctionSpec:

    name: str
    args_model: Type[ToolArgs]
    handler: Handler
    description: str = ""

    def signature(self) -> str:
        """Prompt-friendly call shape, e.g. writeFile({"filename": ..., "content": ...})."""

        fields = self.args_model.model_fields
        if not fields:
            return f"{self.name}()"
        args = ", ".join(f'"{field}": ...' for field in fields)

        return f"{self.name}({{{args}}})"


class FunctionRegistry:

    def __init__(self):

        self._specs: Dict[str, FunctionSpec] = {}

    def register(self, name: str, args_model: Type[ToolArgs], handler: Handler, description: str = "") -> None:

        if name in self._specs:
            raise ValueError(f"Function '{name}' is already registered.")

        self._specs[name] = FunctionSpec(name=name, args_model=args_model, handler=handler, description=description)

    def get(self, name: str) -> Optional[FunctionSpec]:

        return self._specs.get(name)

    def names(self) -> List[str]:

        return list(self._specs)

    def __contains__(self, name: object) -> bool:

        return name in self._specs

    def __iter__(self) -> Iterator[FunctionSpec]:

        return iter(self._specs.values())

    def __len__(self) -> int:

        return len(self._specs)

    def describe(self) -> str:
        """Markdown bullet list of every function, for the system prompt."""

        lines = []
        for spec in self:
            label = spec.description or spec.name
            lines.append(f"- **{label}** -> `{spec.signature()}`")

        return "\n".join(lines)


# -------- Default studio table -------------------------------------------------
def build_registry(sandbox: FileSandbox, channel: NotificationChannel, settings: Settings) -> FunctionRegistry:
    """
    Wire the default function set against one sandbox, channel and settings.

    Args:
        sandbox: Project file jail used by the file tools.
        channel: Where tools announce UI side effects.
        settings: Process commands and the SQLite path.

    Returns:
        A populated FunctionRegistry.
    """

    files = FileTools(sandbox, channel)
    ui = UiTools(channel)
    ops = ProcessTools(channel, settings.process_commands, shutdown_delay_seconds=settings.shutdown_delay_seconds)
    db = SqliteTools(settings.sqlite_path, channel)

    registry = FunctionRegistry()
    registry.register("readFile", FilenameArgs, files.read_file, "Read File")
    registry.register("writeFile", FileContentArgs, files.write_file, "Write/Update File")
    registry.register("createFile", FileContentArgs, files.create_file, "Create File")
    registry.register("deleteFile", FilenameArgs, files.delete_file, "Delete File")
    registry.register("refreshUI", NoArgs, ui.refresh_ui, "Refresh UI")
    registry.register("stopWebsite", NoArgs, ops.stop_website, "Stop Website")
    registry.register("restartWebsite", NoArgs, ops.restart_website, "Restart Website")
    registry.register("stopBackendServer", NoArgs, ops.stop_backend_server, "Stop Backend Server")
    registry.register("restartBackendServer", NoArgs, ops.restart_backend_server, "Restart Backend Server")
    registry.register("installSqlite", NoArgs, ops.install_sqlite, "Install SQLite")
    registry.register("initSqliteDB", NoArgs, db.init_sqlite_db, "Initialize SQLite DB")
    registry.register("runSqlQuery", SqlQueryArgs, db.run_sql_query, "Run SQL Query")
    registry.register("createChart", ChartArgs, ui.create_chart, "Create Chart")
    registry.register("renderTable", TableArgs, ui.render_table, "Render Table")
    registry.register("displayLogs", LogsArgs, ui.display_logs, "Display Logs")

    return registry
