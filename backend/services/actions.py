"""Gatekeeping for node lifecycle actions (reboot, reinstall, ...)."""

import logging
from abc import ABC, abstractmethod

from models import Node
from services.errors import InvalidNodeAction
from utils.audit import audit

logger = logging.getLogger(__name__)


class ActionDispatcher(ABC):
    """Carries out a lifecycle action on a machine. Implemented outside this package."""

    @abstractmethod
    async def dispatch(self, node: Node, action: str) -> None:
        raise NotImplementedError


async def perform_node_action(node: Node, action: str, dispatcher: ActionDispatcher) -> None:
    """
    Hand `action` to the dispatcher if the node currently allows it.

    Raises:
        InvalidNodeAction: the action isn't in node.actions; nothing is dispatched.
    """
    if action not in node.actions:
        logger.warning(f"Refused action {action} on node {node.name}")
        audit.log_node_action(node.name, action, status="failure")
        raise InvalidNodeAction(node.name, action)

    await dispatcher.dispatch(node, action)
    audit.log_node_action(node.name, action, status="success")
    logger.info(f"Dispatched action {action} on node {node.name}")
