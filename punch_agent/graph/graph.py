# graph/graph.py
from datetime import timedelta

from langgraph.graph import StateGraph, START, END

from punch_agent.graph.messages import Quit
from punch_agent.graph.state import SessionState, Step

STEP_NODES = {
    Step.IDENTIFY: "identify_form",
    Step.PASSWORD: "password_form",
    Step.KEEP_LOGGED_PROMPT: "keep_logged_form",
    Step.AUTHENTICATING: "authenticating",
    Step.FETCHING_EVENTS: "fetching_events",
    Step.DASHBOARD: "dashboard",
    Step.SUBMITTING: "submitting",
}


def route_message(state: SessionState) -> str:
    """終了要求はどのステップでも受け付け、それ以外は現在のステップのノードへ"""
    if state["quit"]:
        return "end"
    if isinstance(state["message"], Quit):
        return "end_session"
    return STEP_NODES[state["step"]]


def quit_node(state: SessionState) -> dict:
    """セッション終了。以降のエフェクトは発生させない"""
    return {"quit": True, "effects": []}


def build_graph(policy=None, tick_interval: timedelta = None):
    """LangGraphのグラフを構築して返す

    1回の invoke で「メッセージ1件 → 1ステップ分の遷移」を処理する。
    ノードは (state) -> dict の部分更新を返す純粋関数で、I/Oは行わない。
    """
    from functools import partial
    from punch_agent.graph.nodes.identify_node import identify_node
    from punch_agent.graph.nodes.password_node import password_node
    from punch_agent.graph.nodes.keep_logged_node import keep_logged_node
    from punch_agent.graph.nodes.authenticating_node import authenticating_node
    from punch_agent.graph.nodes.fetching_events_node import fetching_events_node
    from punch_agent.graph.nodes.dashboard_node import TICK_INTERVAL, dashboard_node
    from punch_agent.graph.nodes.submitting_node import submitting_node

    if tick_interval is None:
        tick_interval = TICK_INTERVAL

    fetching_events_wrapped = partial(fetching_events_node, tick_interval=tick_interval)
    dashboard_wrapped = partial(dashboard_node, policy=policy, tick_interval=tick_interval)

    workflow = StateGraph(SessionState)

    workflow.add_node("identify_form", identify_node)
    workflow.add_node("password_form", password_node)
    workflow.add_node("keep_logged_form", keep_logged_node)
    workflow.add_node("authenticating", authenticating_node)
    workflow.add_node("fetching_events", fetching_events_wrapped)
    workflow.add_node("dashboard", dashboard_wrapped)
    workflow.add_node("submitting", submitting_node)
    workflow.add_node("end_session", quit_node)

    workflow.add_conditional_edges(
        START,
        route_message,
        {**{name: name for name in STEP_NODES.values()}, "end_session": "end_session", "end": END},
    )

    for name in [*STEP_NODES.values(), "end_session"]:
        workflow.add_edge(name, END)

    return workflow.compile()


class TransitionEngine:
    """セッション状態とメッセージから次の状態とエフェクトを求める"""

    def __init__(self, policy=None, tick_interval: timedelta = None):
        self._graph = build_graph(policy=policy, tick_interval=tick_interval)

    def reduce(self, state: SessionState, message) -> tuple[SessionState, list]:
        result = self._graph.invoke({**state, "message": message, "effects": []})
        new_state: SessionState = {**state, **result}
        return new_state, list(new_state["effects"])
