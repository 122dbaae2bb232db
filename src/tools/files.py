"""
src/tools/files.py — file tools the model can call

This module provides FileTools with four handlers:
- read_file(FilenameArgs): return a file's content
- write_file(FileContentArgs): overwrite a file (backup first)
- create_file(FileContentArgs): create a new file, refuse if it exists
- delete_file(FilenameArgs): delete a file (backup first)

Every mutation is announced on the notification channel so open viewers can
refresh. All path checks and backups are delegated to FileSandbox.
"""


from __future__ import annotations
import logging

from orchestrator.models import FileContentArgs, FilenameArgs
from tools.notifications import META_ACTION_EVENT, NotificationChannel, meta_action
from tools.sandbox import FileSandbox


logger = logging.getLogger(__name__)


class FileTools:

    def __init__(self, sandbox: FileSandbox, channel: NotificationChannel):

        self.sandbox = sandbox
        self.channel = channel

    def read_file(self, args: FilenameArgs, project_id: str) -> str:

        logger.info("Executing readFile for %s", args.filename)

        return self.sandbox.read(project_id, args.filename)

    def write_file(self, args: FileContentArgs, project_id: str) -> str:

        logger.info("Executing writeFile for %s", args.filename)
        self.sandbox.write(project_id, args.filename, args.content)
        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("refresh_component", "fileViewer", {"projectId": project_id, "filename": args.filename}),
        )

        return f"File {args.filename} written successfully."

    def create_file(self, args: FileContentArgs, project_id: str) -> str:

        logger.info("Executing createFile for %s", args.filename)
        self.sandbox.ensure_project_dir(project_id)
        self.sandbox.create(project_id, args.filename, args.content)
        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("render_table", "projectFilesTable", {"projectId": project_id}),
        )

        return f"File {args.filename} created successfully."

    def delete_file(self, args: FilenameArgs, project_id: str) -> str:

        logger.info("Executing deleteFile for %s", args.filename)
        self.sandbox.delete(project_id, args.filename)
        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("refresh_component", "fileList", {"projectId": project_id}),
        )

        return f"File {args.filename} deleted successfully."
