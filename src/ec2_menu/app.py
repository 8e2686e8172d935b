from __future__ import annotations

import logging
import subprocess
import sys
from datetime import datetime
from pathlib import Path

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.logging import TextualHandler
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Footer, Header, Input, Label, Log, OptionList, Static
from textual.widgets.option_list import Option
from textual.worker import Worker, WorkerState

if __package__ in (None, ""):
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from ec2_menu.aws_api import AwsEc2Service
    from ec2_menu.menu import INVALID_SELECTION_MESSAGE, MENU_ACTIONS, MenuController
    from ec2_menu.models import InstanceSummary, InstanceTag, MenuAction, OperationResult
    from ec2_menu.settings import DEFAULT_REGION, load_credentials, load_settings
else:
    from .aws_api import AwsEc2Service
    from .menu import INVALID_SELECTION_MESSAGE, MENU_ACTIONS, MenuController
    from .models import InstanceSummary, InstanceTag, MenuAction, OperationResult
    from .settings import DEFAULT_REGION, load_credentials, load_settings

logger = logging.getLogger(__name__)

ACTION_WORKER_NAME = "ec2-action"


class PromptScreen(ModalScreen[str | None]):
    BINDINGS = [Binding("escape", "cancel", "Cancelar")]

    def __init__(self, action: MenuAction) -> None:
        super().__init__()
        self.menu_action = action

    def compose(self) -> ComposeResult:
        with Vertical(id="prompt-modal"):
            yield Label(self.menu_action.label, id="prompt-modal-title")
            yield Label(self.menu_action.prompt or "")
            yield Input(id="prompt-value")
            with Horizontal(id="prompt-modal-buttons"):
                yield Button("Cancelar", id="prompt-cancel")
                yield Button("Confirmar", variant="primary", id="prompt-confirm")

    def on_mount(self) -> None:
        self.query_one("#prompt-value", Input).focus()

    async def action_cancel(self) -> None:
        self.dismiss(None)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "prompt-cancel":
            self.dismiss(None)
            return
        self.dismiss(self.query_one("#prompt-value", Input).value)

    @on(Input.Submitted, "#prompt-value")
    def on_value_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)


class Ec2MenuApp(App[None]):
    CSS = """
    #main {
        height: 1fr;
    }
    #menu {
        width: 40;
    }
    #instance-table {
        width: 1fr;
    }
    #status {
        height: 1;
        padding: 0 1;
    }
    #activity-log {
        height: 12;
        border: round $primary;
    }
    PromptScreen {
        align: center middle;
    }
    #prompt-modal {
        width: 64;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }
    #prompt-modal-title {
        text-style: bold;
    }
    #prompt-modal-buttons {
        height: auto;
        align-horizontal: right;
    }
    """
    TITLE = "Menu AWS EC2"
    BINDINGS = [
        *[
            Binding(str(number), f"choose({number})", action.label, show=False)
            for number, action in enumerate(MENU_ACTIONS, start=1)
        ],
        Binding("q", f"choose({len(MENU_ACTIONS)})", "Sair"),
    ]

    def __init__(self, controller: MenuController, *, region: str = DEFAULT_REGION) -> None:
        super().__init__()
        self.controller = controller
        self.aws_region = region
        self.sub_title = region
        self.instances: list[InstanceSummary] = []
        self.busy = False
        self.awaiting_input = False
        self.last_result: OperationResult | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            yield OptionList(
                *[
                    Option(f"{number}. {action.label}", id=action.name)
                    for number, action in enumerate(MENU_ACTIONS, start=1)
                ],
                id="menu",
            )
            yield DataTable(id="instance-table")
        yield Static("Selecione uma ação.", id="status")
        yield Log(highlight=False, max_lines=500, auto_scroll=True, id="activity-log")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#instance-table", DataTable)
        table.cursor_type = "row"
        table.add_columns("Name", "Instance ID", "State", "Type", "Launch Time")

        menu = self.query_one("#menu", OptionList)
        menu.highlighted = 0
        self.set_focus(menu)
        self._write_log(f"Menu AWS EC2 iniciado ({self.aws_region}).")

    @on(OptionList.OptionSelected, "#menu")
    def on_menu_selected(self, event: OptionList.OptionSelected) -> None:
        self.handle_selection(event.option_id)

    def action_choose(self, number: int) -> None:
        self.handle_selection(number)

    def handle_selection(self, selection: MenuAction | str | int | None) -> None:
        if self.awaiting_input:
            return
        if self.busy:
            self._write_log("Aguarde a ação em andamento terminar.")
            return

        action = self.controller.resolve(selection)
        if action is None:
            logger.warning("Invalid menu selection: %r", selection)
            self._write_log(INVALID_SELECTION_MESSAGE)
            return

        if action.is_terminal:
            self._write_log("Saindo...")
            self.exit(return_code=0)
            return

        if action.needs_input:
            self.awaiting_input = True
            self.push_screen(
                PromptScreen(action),
                callback=lambda value: self._on_prompt_dismissed(action, value),
            )
            return

        self._start_action(action)

    def _on_prompt_dismissed(self, action: MenuAction, value: str | None) -> None:
        self.awaiting_input = False
        if value is None:
            self._write_log(f"{action.label}: cancelado.")
            return
        self._start_action(action, value)

    def _start_action(self, action: MenuAction, value: str | None = None) -> None:
        self.busy = True
        try:
            self.query_one("#menu", OptionList).disabled = True
        except NoMatches:
            pass
        self._set_status(f"{action.label}...")
        self.execute_action(action, value)

    @work(thread=True, exclusive=True, exit_on_error=False, name=ACTION_WORKER_NAME)
    def execute_action(self, action: MenuAction, value: str | None) -> OperationResult:
        return self.controller.dispatch(action, value)

    @on(Worker.StateChanged)
    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.worker.name != ACTION_WORKER_NAME:
            return

        if event.worker.state == WorkerState.SUCCESS:
            self._finish_action()
            result = event.worker.result
            if isinstance(result, OperationResult):
                self._show_result(result)
            return

        if event.worker.state in (WorkerState.ERROR, WorkerState.CANCELLED):
            self._finish_action()
            error = event.worker.error
            logger.error("Menu action failed unexpectedly: %s", error)
            self._set_status(f"Falha inesperada: {error}")
            self._write_log(f"Falha inesperada: {error}")

    def _finish_action(self) -> None:
        self.busy = False
        try:
            menu = self.query_one("#menu", OptionList)
        except NoMatches:
            return
        menu.disabled = False
        self.set_focus(menu)

    def _show_result(self, result: OperationResult) -> None:
        self.last_result = result
        self._set_status(result.message)
        if not result.ok:
            kind = result.error_kind.value if result.error_kind else "unknown"
            self._write_log(f"{result.message} [{kind}]")
            return

        self._write_log(result.message)
        if result.operation == "list_instances":
            self.instances = list(result.data or [])
            self._render_instances()
            for instance in self.instances:
                self._write_log(
                    f"  {instance.instance_id} {instance.state} {instance.instance_type} "
                    f"{_format_launch_time(instance.launch_time)}"
                )
        elif result.operation == "list_instance_tags":
            tags: list[InstanceTag] = list(result.data or [])
            for tag in tags:
                self._write_log(f"{tag.key}: {tag.value}")

    def _render_instances(self) -> None:
        table = self.query_one("#instance-table", DataTable)
        table.clear(columns=False)
        for instance in self.instances:
            table.add_row(
                instance.name or "-",
                instance.instance_id,
                instance.state,
                instance.instance_type,
                _format_launch_time(instance.launch_time),
            )

    def _set_status(self, message: str) -> None:
        try:
            self.query_one("#status", Static).update(message)
        except NoMatches:
            return

    def _write_log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%H:%M:%S")
        try:
            self.query_one("#activity-log", Log).write_line(f"[{timestamp}] {message}")
        except NoMatches:
            return


def _format_launch_time(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.isoformat(sep=" ", timespec="seconds")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=_resolve_level(level),
        handlers=[TextualHandler()],
        force=True,
    )
    logging.getLogger("botocore").setLevel(logging.WARNING)


def build_app(environ: dict[str, str] | None = None) -> Ec2MenuApp:
    credentials = load_credentials(environ)
    settings = load_settings(environ=environ)
    configure_logging(settings.log_level)
    service = AwsEc2Service(credentials, settings)
    return Ec2MenuApp(MenuController(service, settings.tags), region=settings.region)


def main() -> None:
    app = build_app()
    try:
        app.run()
    except KeyboardInterrupt:
        pass
    finally:
        _restore_terminal_state()
    sys.exit(app.return_code or 0)


def _restore_terminal_state() -> None:
    if not sys.stdout.isatty() or not sys.stdin.isatty():
        return
    try:
        subprocess.run(
            ["stty", "sane"],
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError:
        pass


if __name__ == "__main__":
    main()
