# graph/nodes/authenticating_node.py
from dataclasses import replace

from punch_agent.graph.effects import FetchEvents, PersistCredentials, RunAsync
from punch_agent.graph.messages import LoginSucceeded, OperationFailed, RetryRequested
from punch_agent.graph.state import SessionState, Step, credentials_of


def authenticating_node(state: SessionState) -> dict:
    """ログイン結果を受け取るノード"""
    message = state["message"]

    if isinstance(message, LoginSucceeded):
        effects = [RunAsync(FetchEvents(token=message.token))]
        if state["keep_logged_in"]:
            creds = replace(credentials_of(state), token=message.token)
            effects.append(RunAsync(PersistCredentials(credentials=creds)))
        return {
            "step": Step.FETCHING_EVENTS,
            "token": message.token,
            "last_error": None,
            "effects": effects,
        }

    if isinstance(message, OperationFailed) and message.operation == "login":
        return {"last_error": message.reason, "effects": []}

    if isinstance(message, RetryRequested) and state["last_error"]:
        return {"step": Step.IDENTIFY, "last_error": None, "effects": []}

    return {"effects": []}
