"""エンジンへの入力メッセージ（ユーザー操作と非同期処理の結果）"""
from dataclasses import dataclass, field
from typing import Optional

from punch_agent.models.clocking import DayClockings
from punch_agent.models.employee import EmployeeContext


@dataclass(frozen=True)
class IdentitySubmitted:
    domain: str
    cpf: str


@dataclass(frozen=True)
class PasswordSubmitted:
    password: str
    proceed: bool = True          # False = 「戻る」


@dataclass(frozen=True)
class KeepLoggedSubmitted:
    keep: bool
    proceed: bool = True


@dataclass(frozen=True)
class RetryRequested:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class LoginSucceeded:
    token: str


@dataclass(frozen=True)
class EventsFetched:
    employee: EmployeeContext
    clockings: DayClockings = field(default_factory=dict)


@dataclass(frozen=True)
class PunchConfirmed:
    confirm: bool


@dataclass(frozen=True)
class ForgetConfirmed:
    confirm: bool


@dataclass(frozen=True)
class PunchPosted:
    date_event: str
    time_event: str


@dataclass(frozen=True)
class CredentialsSaved:
    error: Optional[str] = None


@dataclass(frozen=True)
class CredentialsDeleted:
    error: Optional[str] = None


@dataclass(frozen=True)
class Tick:
    generation: int


@dataclass(frozen=True)
class OperationFailed:
    operation: str                # "login" / "fetch_events" / "post_punch"
    reason: str
