"""Slack channel integration for the answer bridge.

Provides the mention handler, per-thread conversation state, the escalation
policy and the admin shortcut workflows.
"""

from answer_bridge.channels.admin import AdminWorkflows
from answer_bridge.channels.conversation import ConversationStore, ThreadContext, ThreadState
from answer_bridge.channels.escalation import EscalationPolicy
from answer_bridge.channels.slack import SlackHandler, create_slack_app

__all__ = [
    "AdminWorkflows",
    "ConversationStore",
    "EscalationPolicy",
    "SlackHandler",
    "ThreadContext",
    "ThreadState",
    "create_slack_app",
]
