"""
src/app.py

CodeLit Studio: chat with the coding assistant about one project, browse and
edit its files, manage backups and watch the UI events the model triggers.
"""


import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr

from config import Settings
from context.loader import ConversationHistory, load_history, save_history
from orchestrator.chat import ChatService
from orchestrator.llm_openai import ChatModel, OpenAIChatClient
from orchestrator.router import TaskOrchestrator
from tools.exports import export_transcript_csv, export_transcript_json
from tools.notifications import META_ACTION_EVENT, RecordingChannel, meta_action
from tools.registry import build_registry
from tools.sandbox import FileSandbox, SandboxError


APP_TITLE = "CodeLit Studio"
APP_DESC = (
    "Describe a change, e.g. 'create a file named index.html with a hello heading' "
    "or 'make the header blue'. The assistant edits the project's HTML/CSS/JS files; "
    "every overwrite is backed up first."
)

logger = logging.getLogger(__name__)


class Studio:
    """Everything one running studio shares: sandbox, channel, registry, chat."""

    def __init__(self, settings: Settings, model: Optional[ChatModel] = None):

        self.settings = settings
        self.sandbox = FileSandbox(settings.projects_dir, settings.allowed_extensions)
        self.channel = RecordingChannel()
        self.registry = build_registry(self.sandbox, self.channel, settings)
        self.model = model or OpenAIChatClient(
            model=settings.model,
            temperature=settings.temperature,
            api_key=settings.openai_api_key,
        )
        self.orchestrator = TaskOrchestrator(
            self.model,
            self.registry,
            self.channel,
            max_iterations=settings.max_iterations,
            max_consecutive_failures=settings.max_consecutive_failures,
        )
        history = load_history(settings.history_path) if settings.history_path else ConversationHistory()
        self.chat = ChatService(self.orchestrator, self.sandbox, history, history_tail=settings.history_tail)

    # --- Chat -------------------------------------------------------------------
    def handle_chat(self, project_id: str, message: str) -> Tuple[str, str, str]:
        """
        Run one chat turn.

        Returns:
            (reply, transcript JSON, emitted events JSON)
        """

        project_id = (project_id or "").strip()
        text = (message or "").strip()

        if not text:
            return "Type a message first.", "[]", "[]"

        # Only events emitted during this turn are reported
        self.channel.drain()

        try:
            result = self.chat.handle([text], project_id)
        except (ValueError, SandboxError) as e:
            return f"Error: {e}", "[]", "[]"

        if self.settings.history_path:
            save_history(self.chat.history, self.settings.history_path)

        transcript = json.dumps([m.as_dict() for m in result.messages], indent=2, ensure_ascii=False)
        events = json.dumps([{"event": e, "payload": p} for e, p in self.channel.drain()], indent=2, default=str)

        return result.reply or "(no reply)", transcript, events

    def export_history(self, project_id: str, fmt: str) -> Optional[str]:

        messages = self.chat.history.get((project_id or "").strip())
        if not messages:
            return None

        out_dir = Path(tempfile.mkdtemp(prefix="codelit-export-"))
        if fmt == "csv":
            return str(export_transcript_csv(messages, out_dir / f"{project_id}.csv"))

        return str(export_transcript_json(messages, out_dir / f"{project_id}.json"))

    # --- Files ------------------------------------------------------------------
    def list_files(self, project_id: str) -> List[str]:

        try:
            return self.sandbox.list_files(project_id)
        except SandboxError:
            return []

    def open_file(self, project_id: str, filename: str) -> Tuple[str, str]:
        """Returns (content, status line)."""

        try:
            return self.sandbox.read(project_id, filename), f"Opened {filename}"
        except SandboxError as e:
            return "", f"Error: {e}"

    def save_file(self, project_id: str, filename: str, content: str) -> str:

        try:
            self.sandbox.ensure_project_dir(project_id)
            self.sandbox.write(project_id, filename, content or "")
        except SandboxError as e:
            return f"Error: {e}"

        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("update_component", "fileViewer", {"projectId": project_id, "filename": filename}),
        )

        return "File updated successfully"

    def list_backups(self, project_id: str, filename: str) -> List[str]:

        try:
            return self.sandbox.list_backups(project_id, filename)
        except SandboxError:
            return []

    def restore_backup(self, project_id: str, filename: str, backup_name: str) -> str:

        try:
            self.sandbox.restore_backup(project_id, filename, backup_name)
        except SandboxError as e:
            return f"Error: {e}"

        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("update_component", "fileViewer", {"projectId": project_id, "filename": filename}),
        )

        return f"File {filename} restored from backup {backup_name}"

    def delete_backup(self, project_id: str, filename: str, backup_name: str) -> str:

        try:
            self.sandbox.delete_backup(project_id, filename, backup_name)
        except SandboxError as e:
            return f"Error: {e}"

        self.channel.broadcast(
            META_ACTION_EVENT,
            meta_action("update_component", "backupList", {"projectId": project_id, "filename": filename}),
        )

        return f"Backup {backup_name} deleted successfully"

    def preview(self, project_id: str, filename: str = "index.html") -> str:

        try:
            return self.sandbox.read(project_id, filename or "index.html")
        except SandboxError as e:
            return f"<p>{e}</p>"


def _choices(values: List[str]) -> Dict[str, Any]:

    return gr.update(choices=values, value=values[0] if values else None)


def app(studio: Studio):
    with gr.Blocks(title=APP_TITLE) as demo:
        gr.Markdown(f"# {APP_TITLE}")
        gr.Markdown(APP_DESC)

        project = gr.Textbox(label="Project", value="demo", info="Folder under the projects directory.")

        # Tabs
        with gr.Tab("Chat"):
            msg = gr.Textbox(label="Message", placeholder="e.g., create index.html with a hello heading", lines=3)
            send = gr.Button("Send", variant="primary")
            reply = gr.Markdown()
            with gr.Accordion("Transcript", open=False):
                transcript = gr.Code(label="Messages added this turn", language="json")
            with gr.Accordion("UI events", open=False):
                events = gr.Code(label="Meta-actions", language="json")
            with gr.Row():
                fmt = gr.Radio(["json", "csv"], value="json", label="Export format")
                export_btn = gr.Button("Export history")
            export_file = gr.File(label="Export")

        with gr.Tab("Files"):
            with gr.Row():
                files = gr.Dropdown(label="File", choices=[], allow_custom_value=True)
                refresh_files = gr.Button("Refresh")
            editor = gr.Code(label="Content", language="html")
            with gr.Row():
                open_btn = gr.Button("Open")
                save_btn = gr.Button("Save (with backup)", variant="primary")
            file_status = gr.Markdown()

        with gr.Tab("Backups"):
            with gr.Row():
                backups = gr.Dropdown(label="Backup", choices=[])
                list_backups_btn = gr.Button("List backups")
            with gr.Row():
                restore_btn = gr.Button("Restore")
                delete_backup_btn = gr.Button("Delete backup", variant="stop")
            backup_status = gr.Markdown()

        with gr.Tab("Preview"):
            preview_btn = gr.Button("Render index.html")
            preview_html = gr.HTML()

        # Wire buttons
        send.click(fn=studio.handle_chat, inputs=[project, msg], outputs=[reply, transcript, events])
        export_btn.click(fn=studio.export_history, inputs=[project, fmt], outputs=[export_file])
        refresh_files.click(fn=lambda p: _choices(studio.list_files(p)), inputs=[project], outputs=[files])
        open_btn.click(fn=studio.open_file, inputs=[project, files], outputs=[editor, file_status])
        save_btn.click(fn=studio.save_file, inputs=[project, files, editor], outputs=[file_status])
        list_backups_btn.click(
            fn=lambda p, f: _choices(studio.list_backups(p, f)),
            inputs=[project, files],
            outputs=[backups],
        )
        restore_btn.click(fn=studio.restore_backup, inputs=[project, files, backups], outputs=[backup_status])
        delete_backup_btn.click(fn=studio.delete_backup, inputs=[project, files, backups], outputs=[backup_status])
        preview_btn.click(fn=studio.preview, inputs=[project], outputs=[preview_html])

    return demo


def main() -> None:

    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Projects directory: %s", settings.projects_dir)

    app(Studio(settings)).launch()


if __name__ == "__main__":

    main()

# EOF
