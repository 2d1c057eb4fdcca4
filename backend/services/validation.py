"""Pre-write checks for single-node edits."""

import re
from typing import Any, Mapping

from models import Node
from services.errors import NodeValidationError, ValidationKind

GROUP_NAME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9._:-]+$")

# Minimum number of selected disks per RAID level
RAID_MIN_DISKS = {
    "raid1": 2,
    "raid5": 3,
    "raid6": 4,
    "raid10": 4,
}


def validate_group_name(node: Node, group: Any) -> None:
    if group and not GROUP_NAME_RE.match(group):
        raise NodeValidationError(
            ValidationKind.INVALID_GROUP_NAME,
            f"Invalid group name '{group}' for node {node.name}. "
            "Start with a letter, then use letters, digits, '.', '_', ':' or '-'",
        )


def validate_raid_disks(node: Node, raid_type: Any, raid_disks: Any) -> None:
    required = RAID_MIN_DISKS.get(raid_type)
    if required is None:
        return
    selected = len(raid_disks or [])
    if selected < required:
        raise NodeValidationError(
            ValidationKind.INSUFFICIENT_RAID_DISKS,
            f"{raid_type} on node {node.name} needs at least {required} disks, "
            f"{selected} selected",
        )


def validate_node_update(node: Node, proposed: Mapping[str, Any]) -> None:
    """
    Check proposed settings for `node` without touching it.

    Raises:
        NodeValidationError: with kind INVALID_GROUP_NAME or
            INSUFFICIENT_RAID_DISKS.
    """
    validate_group_name(node, proposed.get("group"))
    validate_raid_disks(node, proposed.get("raid_type"), proposed.get("raid_disks"))
