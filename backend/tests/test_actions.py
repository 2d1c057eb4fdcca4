"""Tests for node lifecycle action gating."""

import pytest

from models import Node
from services.actions import ActionDispatcher, perform_node_action
from services.errors import InvalidNodeAction


class RecordingDispatcher(ActionDispatcher):
    def __init__(self):
        self.dispatched = []

    async def dispatch(self, node, action):
        self.dispatched.append((node.name, action))


class TestPerformNodeAction:
    """perform_node_action()"""

    @pytest.mark.asyncio
    async def test_allowed_action_is_dispatched(self):
        dispatcher = RecordingDispatcher()
        node = Node(name="n1.example.net", allocated=True, admin=False)

        await perform_node_action(node, "reboot", dispatcher)

        assert dispatcher.dispatched == [("n1.example.net", "reboot")]

    @pytest.mark.asyncio
    async def test_allocate_refused_once_allocated(self):
        dispatcher = RecordingDispatcher()
        node = Node(name="n1.example.net", allocated=True, admin=False)

        with pytest.raises(InvalidNodeAction) as exc_info:
            await perform_node_action(node, "allocate", dispatcher)

        assert exc_info.value.to_dict() == {
            "error": "invalid_action",
            "message": "Invalid action allocate for node n1.example.net",
        }
        assert dispatcher.dispatched == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["reinstall", "reset", "delete"])
    async def test_destructive_actions_refused_on_admin(self, action):
        dispatcher = RecordingDispatcher()
        node = Node(name="admin.example.net", allocated=True, admin=True)

        with pytest.raises(InvalidNodeAction):
            await perform_node_action(node, action, dispatcher)
        assert dispatcher.dispatched == []

    @pytest.mark.asyncio
    async def test_unknown_action_refused(self):
        with pytest.raises(InvalidNodeAction):
            await perform_node_action(Node(name="n1.example.net"), "explode", RecordingDispatcher())
