"""
src/tools/ui.py — UI-only tools (no file or process side effects)

Each handler just emits a meta-action for the studio front end:
- refresh_ui      -> refresh_page / main
- create_chart    -> create_chart / dashboard
- render_table    -> render_table / dashboard
- display_logs    -> display_logs / logViewer
"""


from __future__ import annotations
import logging

from orchestrator.models import ChartArgs, LogsArgs, NoArgs, TableArgs
from tools.notifications import META_ACTION_EVENT, NotificationChannel, meta_action


logger = logging.getLogger(__name__)


class UiTools:

    def __init__(self, channel: NotificationChannel):

        self.channel = channel

    def refresh_ui(self, args: NoArgs, project_id: str) -> str:

        logger.info("Executing refreshUI for projectId: %s", project_id)
        self.channel.broadcast(META_ACTION_EVENT, meta_action("refresh_page", "main", {"projectId": project_id}))

        return f"UI refresh triggered for project {project_id}"

    def create_chart(self, args: ChartArgs, project_id: str) -> str:

        logger.info("Executing createChart for projectId: %s", project_id)
        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("create_chart", "dashboard", {"config": args.config, "type": args.type}),
        )
        title = args.config.get("title") or "unnamed"

        return f"Chart {title} created successfully."

    def render_table(self, args: TableArgs, project_id: str) -> str:

        logger.info("Executing renderTable for projectId: %s", project_id)
        self.channel.broadcast(META_ACTION_EVENT, meta_action("render_table", "dashboard", args.config))

        return "Table rendered successfully."

    def display_logs(self, args: LogsArgs, project_id: str) -> str:

        logger.info("Executing displayLogs for projectId: %s", project_id)
        self.channel.broadcast(META_ACTION_EVENT, meta_action("display_logs", "logViewer", {"logs": args.logs}))

        return "Logs displayed successfully."
