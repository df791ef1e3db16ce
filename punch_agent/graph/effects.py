"""エンジンが要求するエフェクト。実行はランタイム側が行う"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Union

from punch_agent.models.employee import Credentials, EmployeeContext


@dataclass(frozen=True)
class Login:
    name = "login"
    user: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class FetchEvents:
    name = "fetch_events"
    token: str


@dataclass(frozen=True)
class PostPunch:
    name = "post_punch"
    token: str
    employee: EmployeeContext


@dataclass(frozen=True)
class PersistCredentials:
    name = "persist_credentials"
    credentials: Credentials


@dataclass(frozen=True)
class DeleteCredentials:
    name = "delete_credentials"


Operation = Union[Login, FetchEvents, PostPunch, PersistCredentials, DeleteCredentials]


@dataclass(frozen=True)
class RunAsync:
    operation: Operation


@dataclass(frozen=True)
class ScheduleTick:
    after: timedelta
    generation: int


@dataclass(frozen=True)
class Notify:
    title: str
    message: str
    urgency: str                  # "low" / "normal" / "critical"


Effect = Union[RunAsync, ScheduleTick, Notify]

