"""
Group status rollups for the node dashboard.

One pass over a node snapshot produces:
- per-group counters for each status class, plus a tooltip summary
- per-group member listing ordered by each node's group_order
- a flat handle -> summary view of every node
"""

import bisect
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models import Node, STATUS_KINDS
from schemas import GroupStatusEntry, NodeStatusEntry, StatusSnapshot, empty_status_counts

logger = logging.getLogger(__name__)

# Tooltip line label -> status classes it sums up
TOOLTIP_CATEGORIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Ready", ("ready",)),
    ("Failed", ("failed",)),
    ("Pending", ("pending",)),
    ("Building", ("building",)),
    ("Upgrading", ("crowbar_upgrade",)),
    ("Not Ready", ("unready", "unknown")),
)


def build_group_tooltip(status: Dict[str, int]) -> str:
    """
    Render counters as '<strong>Total 3</strong><br />1 Ready<br />2 Not Ready'.

    Categories with a zero count are left out.
    """
    lines = [f"<strong>Total {sum(status.values())}</strong>"]
    for label, kinds in TOOLTIP_CATEGORIES:
        count = sum(status.get(kind, 0) for kind in kinds)
        if count:
            lines.append(f"{count} {label}")
    return "<br />".join(lines)


def classify_status(status: Optional[str]) -> str:
    """Clamp anything outside the known status classes to 'unknown'."""
    if status in STATUS_KINDS:
        return status
    logger.warning(f"Unexpected node status {status!r}, counting as unknown")
    return "unknown"


@dataclass
class GroupRollup:
    name: str
    automatic: bool
    status: Dict[str, int] = field(default_factory=empty_status_counts)
    tooltip: str = ""
    _members: List[Tuple[int, str]] = field(default_factory=list, repr=False)

    @property
    def nodes(self) -> List[str]:
        """Member handles in group_order order."""
        return [handle for _order, handle in self._members]

    @property
    def total(self) -> int:
        return sum(self.status.values())

    def add(self, node: Node, status: str) -> None:
        self.status[status] += 1
        self.tooltip = build_group_tooltip(self.status)
        bisect.insort(self._members, (node.group_order or 0, node.handle))


@dataclass
class NodeSummary:
    alias: Optional[str]
    description: Optional[str]
    status: str
    state: Optional[str]


@dataclass
class GroupAggregation:
    groups: Dict[str, GroupRollup] = field(default_factory=dict)
    nodes: Dict[str, NodeSummary] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(group.total for group in self.groups.values())


def group_key(node: Node, unknown_label: str) -> str:
    return node.group_name or unknown_label


def aggregate_groups(nodes: Iterable[Node], unknown_label: str = "Unknown") -> GroupAggregation:
    """
    Roll a node snapshot up into groups.

    A group's `automatic` flag comes from the first node seen in it and is
    not revisited if later members disagree.
    """
    result = GroupAggregation()
    for node in nodes:
        status = classify_status(node.status)
        name = group_key(node, unknown_label)

        rollup = result.groups.get(name)
        if rollup is None:
            rollup = result.groups[name] = GroupRollup(
                name=name,
                automatic=node.is_group_automatic,
            )
        rollup.add(node, status)

        result.nodes[node.handle] = NodeSummary(
            alias=node.alias,
            description=node.description,
            status=status,
            state=node.state,
        )
    return result


def build_status_snapshot(nodes: Iterable[Node], unknown_label: str = "Unknown") -> StatusSnapshot:
    """Dashboard polling payload: node classes/labels and group counters."""
    snapshot = StatusSnapshot()
    node_list = list(nodes)
    aggregation = aggregate_groups(node_list, unknown_label)

    for node in node_list:
        snapshot.nodes[node.handle] = NodeStatusEntry(
            css_class=aggregation.nodes[node.handle].status,
            status=node.state_label,
        )
    for name, rollup in aggregation.groups.items():
        snapshot.groups[name] = GroupStatusEntry(
            tooltip=rollup.tooltip,
            status=dict(rollup.status),
        )
    return snapshot
