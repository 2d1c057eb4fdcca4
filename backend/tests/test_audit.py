"""
Tests for audit events.

Covers:
- JSON envelope with actor and request id from context
- Bulk update events, including long-list summarising
- Events emitted by reconciliation and edits
"""

import contextvars
import json
import logging

import pytest

from schemas import NodeUpdate
from services.errors import NodePersistenceError
from services.node_updates import update_node
from services.reconciliation import BulkReconciler
from utils.audit import AuditLogger, MAX_LISTED_NODES


def _events(caplog):
    return [json.loads(record.getMessage()) for record in caplog.records if record.name == "audit"]


class TestAuditLogger:
    """AuditLogger envelope and helpers."""

    def test_envelope(self, caplog):
        auditor = AuditLogger()

        def handle_request():
            auditor.set_actor("alice")
            auditor.set_request_id("req-1")
            auditor.log_node_update("n1.example.net", ["alias"])

        with caplog.at_level(logging.INFO, logger="audit"):
            contextvars.copy_context().run(handle_request)

        event = _events(caplog)[-1]
        assert event["action"] == "UPDATE"
        assert event["actor"] == "alice"
        assert event["request_id"] == "req-1"
        assert event["resource"] == "Node"
        assert event["resource_id"] == "n1.example.net"
        assert event["status"] == "success"
        assert event["details"] == {"changes": ["alias"]}

    def test_long_node_lists_are_summarised(self, caplog):
        names = [f"n{i}" for i in range(MAX_LISTED_NODES + 1)]

        with caplog.at_level(logging.INFO, logger="audit"):
            AuditLogger().log_bulk_update("success", succeeded=names, failed=[])

        details = _events(caplog)[-1]["details"]
        assert details["succeeded_count"] == MAX_LISTED_NODES + 1
        assert "succeeded" not in details

    def test_group_change_defaults_to_automatic(self, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            AuditLogger().log_group_change("n1.example.net", None)

        assert _events(caplog)[-1]["details"] == {"group": "automatic"}


class TestAuditedOperations:
    """Events written by services."""

    @pytest.mark.asyncio
    async def test_partial_batch_is_audited(self, repository, make_node, caplog):
        await make_node("n1")

        with caplog.at_level(logging.INFO, logger="audit"):
            await BulkReconciler(repository).reconcile({
                "n1.example.net": {"alias": "web"},
                "ghost.example.net": {"alias": "db"},
            })

        event = _events(caplog)[-1]
        assert event["action"] == "BULK_UPDATE"
        assert event["status"] == "partial"
        assert event["details"]["succeeded"] == ["n1.example.net"]
        assert event["details"]["failed"] == ["ghost.example.net"]
        assert event["details"]["reason"] == "failed"

    @pytest.mark.asyncio
    async def test_blocked_batch_is_audited(self, repository, make_node, caplog):
        await make_node("n1")
        await make_node("n2")

        with caplog.at_level(logging.INFO, logger="audit"):
            await BulkReconciler(repository).reconcile({
                "n1.example.net": {"alias": "web"},
                "n2.example.net": {"alias": "web"},
            })

        event = _events(caplog)[-1]
        assert event["status"] == "failure"
        assert event["details"]["reason"] == "duplicate_alias"

    @pytest.mark.asyncio
    async def test_failed_edit_is_audited(self, repository, make_node, caplog):
        node = await make_node("n1")
        repository.fail_on.add("n1.example.net")

        with caplog.at_level(logging.INFO, logger="audit"):
            with pytest.raises(NodePersistenceError):
                await update_node(repository, node, NodeUpdate(description="x"), default_platform="suse-12.3")

        event = _events(caplog)[-1]
        assert event["status"] == "failure"
        assert "simulated write failure" in event["details"]["error_message"]
