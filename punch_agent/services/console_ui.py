import os
import select
import sys
import time
from datetime import datetime
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from punch_agent.errors import ValidationError
from punch_agent.graph.messages import (
    ForgetConfirmed,
    IdentitySubmitted,
    KeepLoggedSubmitted,
    PasswordSubmitted,
    PunchConfirmed,
    Quit,
    RetryRequested,
)
from punch_agent.graph.state import SessionState, Step
from punch_agent.models.clocking import format_elapsed, format_hours, history_summary
from punch_agent.services.validators import validate_cpf, validate_domain, validate_password

TABS = ["Timer", "履歴", "情報"]

BAND_STYLES = {
    "short": "yellow",
    "regular": "green",
    "full": "dark_green",
    "overtime": "red",
}

STEP_TITLES = {
    Step.AUTHENTICATING: "認証中...",
    Step.FETCHING_EVENTS: "打刻を取得中...",
    Step.SUBMITTING: "打刻を送信中...",
}

HELP_DASHBOARD = "←/h 前  →/l 次  <space> 打刻  <e> 認証情報を削除  <q> 終了"
HELP_RETRY = "<r> 再試行  <q> 終了"


class ConsoleUI:
    """rich による端末表示と入力。状態は読むだけで変更しない"""

    def __init__(
        self,
        console: Optional[Console] = None,
        accent: str = "#E28413",
        default_confirm: bool = True,
        app_version: str = "development",
    ):
        self.console = console or Console()
        self.accent = accent
        self.default_confirm = default_confirm
        self.app_version = app_version
        self.active_tab = 0

    # ---- 入力 ----

    def poll(self, state: SessionState, timeout: float) -> Optional[object]:
        """現在のステップに応じて入力を1件読み取り、メッセージにして返す"""
        try:
            if state["step"] == Step.IDENTIFY:
                return self._ask_identity(state)
            if state["step"] == Step.PASSWORD:
                return self._ask_password(state)
            if state["step"] == Step.KEEP_LOGGED_PROMPT:
                return self._ask_keep(state)
            return self._on_key(state, self._read_key(timeout))
        except (KeyboardInterrupt, EOFError):
            return Quit()

    def _ask_validated(self, label: str, validator, default: str = "", password: bool = False) -> str:
        while True:
            value = Prompt.ask(
                label,
                console=self.console,
                default=default or None,
                password=password,
                show_default=not password,
            )
            try:
                return validator(value or "")
            except ValidationError as e:
                self.console.print(f"[red]{e}[/red]")

    def _ask_identity(self, state: SessionState) -> IdentitySubmitted:
        domain = self._ask_validated("ドメイン (例: exemplo.com.br)", validate_domain, state["domain"])
        cpf = self._ask_validated("CPF", validate_cpf, state["cpf"])
        return IdentitySubmitted(domain=domain, cpf=cpf)

    def _ask_password(self, state: SessionState) -> PasswordSubmitted:
        password = self._ask_validated("パスワード", validate_password, state["password"], password=True)
        proceed = Confirm.ask("次へ進みますか？（No で戻る）", console=self.console, default=self.default_confirm)
        return PasswordSubmitted(password=password, proceed=proceed)

    def _ask_keep(self, state: SessionState) -> KeepLoggedSubmitted:
        keep = Confirm.ask("ログイン状態を保持しますか？", console=self.console, default=state["keep_logged_in"])
        proceed = Confirm.ask("次へ進みますか？（No で戻る）", console=self.console, default=self.default_confirm)
        return KeepLoggedSubmitted(keep=keep, proceed=proceed)

    def _read_key(self, timeout: float) -> Optional[str]:
        """キー入力を1つ読む（POSIX端末のみ。その他は待つだけ）"""
        if os.name != "posix" or not sys.stdin.isatty():
            time.sleep(timeout)
            return None

        import termios
        import tty

        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            ready, _, _ = select.select([fd], [], [], timeout)
            if not ready:
                return None
            return os.read(fd, 3).decode("utf-8", errors="ignore")
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def _on_key(self, state: SessionState, key: Optional[str]) -> Optional[object]:
        if key is None:
            return None
        if key in ("q", "Q", "\x03"):
            return Quit()
        if key in ("r", "R") and state["last_error"]:
            return RetryRequested()
        if state["step"] != Step.DASHBOARD:
            return None

        if key in ("\x1b[D", "h"):
            self.active_tab = (self.active_tab - 1) % len(TABS)
            self.render(state)
            return None
        if key in ("\x1b[C", "l", "\t"):
            self.active_tab = (self.active_tab + 1) % len(TABS)
            self.render(state)
            return None
        if self.active_tab != 0:
            return None
        if key == " ":
            return PunchConfirmed(
                confirm=Confirm.ask("打刻しますか？（Seniorに送信します）", console=self.console, default=True)
            )
        if key in ("e", "E"):
            return ForgetConfirmed(
                confirm=Confirm.ask("保存した認証情報を削除しますか？", console=self.console, default=False)
            )
        return None

    # ---- 表示 ----

    def render(self, state: SessionState) -> None:
        self.console.clear()
        step = state["step"]
        if step == Step.DASHBOARD:
            self.console.print(self._dashboard(state))
        elif step in STEP_TITLES:
            self.console.print(self._waiting(state))
        else:
            self.console.print(Panel(Text("Registro de Ponto", style=f"bold {self.accent}")))

    def _waiting(self, state: SessionState) -> Panel:
        if state["last_error"]:
            body = Group(
                Text(f"エラー: {state['last_error']}", style="bold red"),
                Text(HELP_RETRY, style="dim"),
            )
        else:
            body = Text(STEP_TITLES[state["step"]], style=self.accent)
        return Panel(body, title="Registro de Ponto", border_style=self.accent)

    def _dashboard(self, state: SessionState) -> Panel:
        tabs = Text()
        for i, name in enumerate(TABS):
            if i == self.active_tab:
                tabs.append(f"[{name}] ", style=f"bold italic {self.accent}")
            else:
                tabs.append(f" {name}  ")

        if self.active_tab == 0:
            body = self._timer_tab(state)
        elif self.active_tab == 1:
            body = self._history_tab(state)
        else:
            body = self._about_tab()

        return Panel(
            Group(tabs, Text(""), body, Text(""), Text(HELP_DASHBOARD, style="dim")),
            title="Registro de Ponto",
            border_style=self.accent,
        )

    def _timer_tab(self, state: SessionState) -> Group:
        employee = state["employee"]
        now = datetime.now().astimezone()
        lines = [
            f"従業員:   {employee.employee_name if employee else ''}",
            f"会社:     {employee.company_name if employee else ''}",
            f"日付:     {now.strftime('%d/%m/%Y')}",
            f"勤務表:   {employee.time_table if employee else ''}",
            f"打刻回数: {state['punch_count_today']}",
        ]
        parts = [Text("\n".join(lines))]

        for event in state["clockings"].get(now.date().isoformat(), []):
            parts.append(Text(f"  ├ {event.time.split('.')[0]} {event.platform}"))

        status = "出勤中" if state["timer_running"] else "停止中"
        parts.append(Text(""))
        parts.append(Text(f"{format_elapsed(state['elapsed_today'])}  ({status})", style=f"bold {self.accent}"))
        return Group(*parts)

    def _history_tab(self, state: SessionState) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("日付")
        table.add_column("稼働時間", justify="right")
        table.add_column("")
        for summary in history_summary(state["clockings"]):
            style = BAND_STYLES[summary.band]
            bar = "█" * int(round(summary.worked_hours * 2))
            table.add_row(summary.date, format_hours(summary.worked_hours), Text(bar, style=style))
        return table

    def _about_tab(self) -> Text:
        return Text(
            f"punch-agent {self.app_version}\n"
            "Senior の打刻を端末から行うクライアントです。\n"
            "保存した認証情報はこのマシン固有の鍵で暗号化されます。"
        )
