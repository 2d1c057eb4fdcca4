"""
Tests for group rollups and the dashboard status snapshot.

Covers:
- Per-group status counters summing to the member count
- Tooltip text
- Member ordering by group_order
- Automatic flag taken from the first member seen
- Unknown-group bucket and status clamping
"""

import logging

from models import Node
from services.groups import (
    aggregate_groups,
    build_group_tooltip,
    build_status_snapshot,
    classify_status,
)
from schemas import empty_status_counts


def _node(handle, state="ready", **fields) -> Node:
    return Node(name=f"{handle}.example.net", state=state, **fields)


class TestAggregateGroups:
    """Grouping a node snapshot."""

    def test_counters_sum_to_member_count(self):
        nodes = [
            _node("a", "ready", group="web"),
            _node("b", "problem", group="web"),
            _node("c", "hardware-installing", group="web"),
            _node("d", "discovered", auto_group="sw-1"),
            _node("e", "shutdown", auto_group="sw-1"),
        ]
        result = aggregate_groups(nodes)

        assert set(result.groups) == {"web", "sw-1"}
        web = result.groups["web"]
        assert web.status["ready"] == 1
        assert web.status["failed"] == 1
        assert web.status["building"] == 1
        assert web.total == 3
        assert result.groups["sw-1"].status["pending"] == 1
        assert result.groups["sw-1"].status["unknown"] == 1
        assert result.total == len(nodes)

    def test_every_status_class_has_a_counter(self):
        result = aggregate_groups([_node("a", group="web")])
        assert set(result.groups["web"].status) == set(empty_status_counts())

    def test_manual_group_wins_over_automatic(self):
        result = aggregate_groups([_node("a", group="web", auto_group="sw-1")])
        assert list(result.groups) == ["web"]
        assert result.groups["web"].automatic is False

    def test_nodes_without_group_go_to_unknown(self):
        result = aggregate_groups([_node("a")], unknown_label="Ungrouped")
        assert list(result.groups) == ["Ungrouped"]

    def test_members_ordered_by_group_order(self):
        nodes = [
            _node("c", auto_group="sw-1", group_order=3),
            _node("a", auto_group="sw-1", group_order=1),
            _node("b", auto_group="sw-1", group_order=2),
            _node("z", auto_group="sw-1"),
        ]
        result = aggregate_groups(nodes)
        assert result.groups["sw-1"].nodes == ["z", "a", "b", "c"]

    def test_automatic_flag_from_first_member(self):
        # Both end up in "sw-1": one through its automatic group, one set manually
        nodes = [
            _node("a", auto_group="sw-1"),
            _node("b", group="sw-1"),
        ]
        assert aggregate_groups(nodes).groups["sw-1"].automatic is True
        assert aggregate_groups(list(reversed(nodes))).groups["sw-1"].automatic is False

    def test_node_summaries(self):
        result = aggregate_groups([
            _node("a", "problem", alias="web1", description="frontend", group="web"),
        ])
        summary = result.nodes["a"]
        assert summary.alias == "web1"
        assert summary.description == "frontend"
        assert summary.status == "failed"
        assert summary.state == "problem"

    def test_empty_snapshot(self):
        result = aggregate_groups([])
        assert result.groups == {}
        assert result.nodes == {}
        assert result.total == 0


class TestTooltip:
    """Group tooltip text."""

    def test_tooltip_lists_non_zero_categories(self):
        status = empty_status_counts()
        status.update(ready=1, unready=1, unknown=1)
        assert build_group_tooltip(status) == (
            "<strong>Total 3</strong><br />1 Ready<br />2 Not Ready"
        )

    def test_tooltip_follows_rollup(self):
        result = aggregate_groups([
            _node("a", "ready", group="web"),
            _node("b", "crowbar_upgrade", group="web"),
        ])
        assert result.groups["web"].tooltip == (
            "<strong>Total 2</strong><br />1 Ready<br />1 Upgrading"
        )


def test_classify_status_clamps_unexpected(caplog):
    assert classify_status("ready") == "ready"
    with caplog.at_level(logging.WARNING, logger="services.groups"):
        assert classify_status("exploded") == "unknown"
    assert "exploded" in caplog.text


class TestStatusSnapshot:
    """Dashboard polling payload."""

    def test_snapshot_nodes_and_groups(self):
        snapshot = build_status_snapshot([
            _node("a", "ready", group="web"),
            _node("b", "shutdown", group="web"),
        ])
        data = snapshot.to_json_dict()

        assert data["nodes"]["a"] == {"class": "ready", "status": "Ready"}
        assert data["nodes"]["b"] == {"class": "unknown", "status": "Power Off"}
        assert data["groups"]["web"]["status"]["ready"] == 1
        assert data["groups"]["web"]["status"]["unknown"] == 1
        assert data["groups"]["web"]["tooltip"].startswith("<strong>Total 2</strong>")
        assert "error" not in data

    def test_unlisted_state_is_unready_with_titled_label(self):
        data = build_status_snapshot([_node("a", "os-installing")]).to_json_dict()
        assert data["nodes"]["a"] == {"class": "unready", "status": "Os Installing"}
