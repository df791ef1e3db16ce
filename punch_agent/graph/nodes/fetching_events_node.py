# graph/nodes/fetching_events_node.py
from datetime import timedelta

from punch_agent.graph.auth_recovery import should_recover
from punch_agent.graph.effects import DeleteCredentials, Login, RunAsync
from punch_agent.graph.messages import EventsFetched, OperationFailed, RetryRequested
from punch_agent.graph.nodes.dashboard_node import TICK_INTERVAL, enter_dashboard
from punch_agent.graph.state import SessionState, Step, credentials_of


def fetching_events_node(
    state: SessionState, tick_interval: timedelta = TICK_INTERVAL
) -> dict:
    """打刻イベント取得の結果を受け取るノード（認可エラー時は1回だけ自動再認証）"""
    message = state["message"]

    if isinstance(message, EventsFetched):
        return enter_dashboard(state, message.employee, message.clockings, tick_interval)

    if isinstance(message, OperationFailed) and message.operation == "fetch_events":
        if should_recover(message.reason, state["has_attempted_auth_recovery"]):
            creds = credentials_of(state)
            return {
                "step": Step.AUTHENTICATING,
                "has_attempted_auth_recovery": True,
                "last_error": None,
                "effects": [
                    RunAsync(DeleteCredentials()),
                    RunAsync(Login(user=creds.login_user, password=creds.password)),
                ],
            }
        return {"last_error": message.reason, "effects": []}

    if isinstance(message, RetryRequested) and state["last_error"]:
        return {"step": Step.IDENTIFY, "last_error": None, "effects": []}

    return {"effects": []}
