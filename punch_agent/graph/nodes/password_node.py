# graph/nodes/password_node.py
from punch_agent.graph.messages import PasswordSubmitted
from punch_agent.graph.state import SessionState, Step


def password_node(state: SessionState) -> dict:
    """パスワード入力。「戻る」でも入力途中の値は保持する"""
    message = state["message"]

    if not isinstance(message, PasswordSubmitted):
        return {"effects": []}

    next_step = Step.KEEP_LOGGED_PROMPT if message.proceed else Step.IDENTIFY
    return {
        "step": next_step,
        "password": message.password,
        "effects": [],
    }
