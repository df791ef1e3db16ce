# graph/nodes/identify_node.py
from punch_agent.graph.messages import IdentitySubmitted
from punch_agent.graph.state import SessionState, Step


def identify_node(state: SessionState) -> dict:
    """ドメインとCPFの入力を受け取るノード（入力検証はフォーム側で完了している）"""
    message = state["message"]

    if isinstance(message, IdentitySubmitted):
        return {
            "step": Step.PASSWORD,
            "domain": message.domain,
            "cpf": message.cpf,
            "effects": [],
        }

    return {"effects": []}
