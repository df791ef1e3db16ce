# graph/nodes/submitting_node.py
from punch_agent.graph.effects import FetchEvents, RunAsync
from punch_agent.graph.messages import OperationFailed, PunchPosted
from punch_agent.graph.state import SessionState, Step


def submitting_node(state: SessionState) -> dict:
    """打刻送信の結果を受け取るノード。成功したらイベントを再取得する"""
    message = state["message"]

    if isinstance(message, PunchPosted):
        return {
            "step": Step.FETCHING_EVENTS,
            "last_error": None,
            "effects": [RunAsync(FetchEvents(token=state["token"]))],
        }

    # 送信失敗は認可エラーでも自動再認証しない
    if isinstance(message, OperationFailed) and message.operation == "post_punch":
        return {
            "step": Step.FETCHING_EVENTS,
            "last_error": message.reason,
            "effects": [],
        }

    return {"effects": []}
