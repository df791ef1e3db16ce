from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, TypedDict

from punch_agent.models.clocking import DayClockings
from punch_agent.models.employee import Credentials, EmployeeContext


class Step(str, Enum):
    IDENTIFY = "identify"
    PASSWORD = "password"
    KEEP_LOGGED_PROMPT = "keep_logged_prompt"
    AUTHENTICATING = "authenticating"
    FETCHING_EVENTS = "fetching_events"
    DASHBOARD = "dashboard"
    SUBMITTING = "submitting"


class SessionState(TypedDict):
    step: Step                                  # 現在のステップ
    domain: str                                 # 会社ドメイン
    cpf: str                                    # 利用者ID（CPF）
    password: str                               # メモリ上のみ保持
    token: str                                  # 認証後のBearerトークン
    keep_logged_in: bool                        # 認証情報を暗号化保存するか
    has_attempted_auth_recovery: bool           # 自動再認証は1セッション1回
    last_error: Optional[str]                   # 画面に出すエラー
    employee: Optional[EmployeeContext]         # 取得済みの従業員情報
    clockings: DayClockings                     # 日付ごとの打刻
    elapsed_today: timedelta                    # 今日の稼働時間
    timer_running: bool                         # 今日の打刻が奇数件 = 出勤中
    punch_count_today: int                      # 今日の打刻回数
    last_notification_at: Optional[datetime]    # 長時間労働通知のクールダウン用
    tick_generation: int                        # 有効なTick系列の番号
    quit: bool                                  # 終了要求
    message: Any                                # 処理中のメッセージ
    effects: list                               # 遷移で発生したエフェクト


def initial_state(credentials: Optional[Credentials] = None) -> SessionState:
    """起動時のセッション状態。保存済み認証情報が揃っていればイベント取得から始める"""
    creds = credentials or Credentials(domain="", cpf="", password="", token="")
    step = Step.FETCHING_EVENTS if creds.is_complete() else Step.IDENTIFY

    return {
        "step": step,
        "domain": creds.domain,
        "cpf": creds.cpf,
        "password": creds.password,
        "token": creds.token,
        "keep_logged_in": True,
        "has_attempted_auth_recovery": False,
        "last_error": None,
        "employee": None,
        "clockings": {},
        "elapsed_today": timedelta(0),
        "timer_running": False,
        "punch_count_today": 0,
        "last_notification_at": None,
        "tick_generation": 0,
        "quit": False,
        "message": None,
        "effects": [],
    }


def credentials_of(state: SessionState) -> Credentials:
    return Credentials(
        domain=state["domain"],
        cpf=state["cpf"],
        password=state["password"],
        token=state["token"],
    )
