"""
src/tools/database.py — SQLite administration tools

Provides SqliteTools with:
- init_sqlite_db(): open (or create) the database at the configured path
- run_sql_query(SqlQueryArgs): SELECT -> rows as dicts (also rendered as a
  table in the UI); anything else is executed and committed

The connection is held by the SqliteTools instance, so a model has to call
initSqliteDB before runSqlQuery within the same studio process.
"""


from __future__ import annotations
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from orchestrator.models import NoArgs, OrchestratorError, SqlQueryArgs
from tools.notifications import META_ACTION_EVENT, NotificationChannel, meta_action


logger = logging.getLogger(__name__)


class DatabaseNotInitialisedError(OrchestratorError):

    def __init__(self):
        super().__init__("Database not initialized. Call initSqliteDB first.")


class SqliteTools:

    def __init__(self, db_path: Path, channel: NotificationChannel):

        self.db_path = Path(db_path)
        self.channel = channel
        self._conn: Optional[sqlite3.Connection] = None

    def _notify(self, kind: str, message: str) -> None:

        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("display_notification", "notificationCenter", {"type": kind, "message": message}),
        )

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def init_sqlite_db(self, args: NoArgs, project_id: str) -> str:

        logger.info("Initializing/connecting to SQLite DB at %s", self.db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        except (sqlite3.Error, OSError) as e:
            self._notify("error", f"Failed to connect to SQLite database: {e}")
            raise

        conn.row_factory = sqlite3.Row
        if self._conn is not None:
            self._conn.close()
        self._conn = conn
        self._notify("success", f"Connected to SQLite database at {self.db_path}")

        return f"Connected to SQLite database at {self.db_path}"

    def run_sql_query(self, args: SqlQueryArgs, project_id: str) -> Union[str, List[Dict[str, Any]]]:
        """
        Execute one statement.

        Returns:
            A list of row dicts for SELECT, otherwise a confirmation sentence.
        """

        if self._conn is None:
            raise DatabaseNotInitialisedError()

        query = args.query
        logger.info("Executing SQL query: %s", query)
        try:
            if query.strip().upper().startswith("SELECT"):
                rows = [dict(row) for row in self._conn.execute(query).fetchall()]
                self.channel.broadcast(
                    META_ACTION_EVENT,
                    meta_action("render_table", "sqlQueryResultsTable", {"rows": rows}),
                )
                return rows

            self._conn.execute(query)
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error("Error executing SQL query: %s", e)
            self._notify("error", f"Error executing SQL query: {e}")
            raise

        self._notify("success", "SQL query executed successfully.")

        return "Query executed successfully."

    def close(self) -> None:

        if self._conn is not None:
            self._conn.close()
            self._conn = None
