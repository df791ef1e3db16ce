# graph/nodes/keep_logged_node.py
from punch_agent.graph.effects import Login, RunAsync
from punch_agent.graph.messages import KeepLoggedSubmitted
from punch_agent.graph.state import SessionState, Step, credentials_of


def keep_logged_node(state: SessionState) -> dict:
    """ログイン状態を保持するかの確認。確定したら認証を開始する"""
    message = state["message"]

    if not isinstance(message, KeepLoggedSubmitted):
        return {"effects": []}

    if not message.proceed:
        return {
            "step": Step.PASSWORD,
            "keep_logged_in": message.keep,
            "effects": [],
        }

    creds = credentials_of(state)
    return {
        "step": Step.AUTHENTICATING,
        "keep_logged_in": message.keep,
        "last_error": None,
        "effects": [RunAsync(Login(user=creds.login_user, password=creds.password))],
    }
