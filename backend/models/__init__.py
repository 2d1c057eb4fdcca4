from .node import Node, NODE_ACTIONS, STATUS_KINDS, status_for_state

__all__ = [
    "Node",
    "NODE_ACTIONS",
    "STATUS_KINDS",
    "status_for_state",
]
