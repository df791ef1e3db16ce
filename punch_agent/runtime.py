"""セッションのメインループ: メッセージを1件ずつエンジンに通し、エフェクトを実行する"""
import asyncio
import logging
import queue
from typing import Optional

from punch_agent.errors import CredentialStoreError, FetchError, PunchAgentError
from punch_agent.graph.effects import (
    DeleteCredentials,
    FetchEvents,
    Login,
    Notify,
    PersistCredentials,
    PostPunch,
    RunAsync,
    ScheduleTick,
)
from punch_agent.graph.graph import TransitionEngine
from punch_agent.graph.messages import (
    CredentialsDeleted,
    CredentialsSaved,
    EventsFetched,
    LoginSucceeded,
    OperationFailed,
    PunchPosted,
    Tick,
)
from punch_agent.graph.state import SessionState, Step
from punch_agent.models.clocking import group_clockings
from punch_agent.models.employee import EmployeeContext

logger = logging.getLogger(__name__)

POLL_SECONDS = 0.2


class SessionRuntime:
    """エフェクトスケジューラの実装側。SessionState を変更するのはこのループだけ"""

    def __init__(self, engine: TransitionEngine, state: SessionState,
                 gateway, store, notifier, scheduler):
        self._engine = engine
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self._scheduler = scheduler
        self._queue: "queue.Queue" = queue.Queue()
        self.state = state

    def post(self, message) -> None:
        """ジョブスレッドから呼ばれる。状態には触れずキューに積むだけ"""
        self._queue.put(message)

    def handle(self, message) -> SessionState:
        """メッセージ1件を最後まで処理する"""
        if self.state["quit"]:
            logger.debug("終了済みのため破棄: %r", message)
            return self.state

        old_step = self.state["step"]
        self.state, effects = self._engine.reduce(self.state, message)
        if self.state["step"] != old_step:
            logger.info("ステップ遷移: %s -> %s", old_step.value, self.state["step"].value)

        if not self.state["quit"]:
            self.dispatch(effects)
        return self.state

    def drain(self) -> None:
        """キューに溜まったメッセージをすべて処理する"""
        while not self.state["quit"]:
            try:
                message = self._queue.get_nowait()
            except queue.Empty:
                return
            self.handle(message)

    def bootstrap(self) -> None:
        """保存済み認証情報で起動した場合は、すぐにイベント取得を始める"""
        if self.state["step"] == Step.FETCHING_EVENTS:
            self.dispatch([RunAsync(FetchEvents(token=self.state["token"]))])

    def dispatch(self, effects: list) -> None:
        for effect in effects:
            if isinstance(effect, RunAsync):
                logger.debug("非同期処理を開始: %s", effect.operation.name)
                self._scheduler.run_now(self._run_operation, effect.operation)
            elif isinstance(effect, ScheduleTick):
                self._scheduler.run_later(effect.after, self.post, Tick(effect.generation))
            elif isinstance(effect, Notify):
                self._scheduler.run_now(self._notify, effect)
            else:
                logger.warning("未知のエフェクト: %r", effect)

    def _run_operation(self, operation) -> None:
        self.post(self.execute(operation))

    def _notify(self, effect: Notify) -> None:
        """通知は投げっぱなし。失敗してもセッションのエラーにはしない"""
        try:
            self._notifier.notify(effect.title, effect.message, effect.urgency)
        except Exception:
            logger.exception("通知の送信に失敗しました")

    def execute(self, operation):
        """操作を1件実行し、結果メッセージを1件返す"""
        try:
            if isinstance(operation, Login):
                token = asyncio.run(self._gateway.login(operation.user, operation.password))
                return LoginSucceeded(token=token)

            if isinstance(operation, FetchEvents):
                raw_events = asyncio.run(self._gateway.fetch_events(operation.token))
                if not raw_events:
                    raise FetchError("打刻イベント一覧が空です")
                return EventsFetched(
                    employee=EmployeeContext.from_raw_event(raw_events[0]),
                    clockings=group_clockings(raw_events),
                )

            if isinstance(operation, PostPunch):
                receipt = asyncio.run(
                    self._gateway.post_event(operation.token, operation.employee)
                )
                logger.info("打刻しました: %s %s", receipt.date_event, receipt.time_event)
                return PunchPosted(date_event=receipt.date_event, time_event=receipt.time_event)

            if isinstance(operation, PersistCredentials):
                return self._persist(operation)

            if isinstance(operation, DeleteCredentials):
                return self._delete()

        except PunchAgentError as e:
            logger.warning("%s に失敗: %s", operation.name, e)
            return OperationFailed(operation=operation.name, reason=str(e))
        except Exception as e:
            logger.exception("%s で予期しないエラー", operation.name)
            return OperationFailed(operation=operation.name, reason=str(e))

        raise TypeError(f"未知の操作です: {operation!r}")

    def _persist(self, operation: PersistCredentials) -> CredentialsSaved:
        try:
            self._store.save(operation.credentials)
        except CredentialStoreError as e:
            logger.error("認証情報の保存に失敗: %s", e)
            return CredentialsSaved(error=str(e))
        return CredentialsSaved()

    def _delete(self) -> CredentialsDeleted:
        try:
            self._store.delete()
        except CredentialStoreError as e:
            logger.error("認証情報の削除に失敗: %s", e)
            return CredentialsDeleted(error=str(e))
        return CredentialsDeleted()

    def run(self, ui) -> None:
        """UIからの入力と非同期処理の結果を1件ずつ処理する。quit で終了"""
        self._scheduler.start()
        self.bootstrap()
        ui.render(self.state)
        try:
            while not self.state["quit"]:
                before = self.state
                self.drain()
                message: Optional[object] = ui.poll(self.state, timeout=POLL_SECONDS)
                if message is not None:
                    self.handle(message)
                if self.state is not before:
                    ui.render(self.state)
        finally:
            self._scheduler.stop()
            asyncio.run(self._gateway.close())
