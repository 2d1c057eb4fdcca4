"""
Single-node edits.

Unlike bulk reconciliation, an edit is validated up front (group name,
RAID disk count) and aliases/public names are checked against every
other node before anything is written.
"""

import logging
from typing import Optional

from models import Node
from schemas import NodeUpdate
from services.errors import (
    ConflictKind,
    NodeConflictError,
    NodePersistenceError,
)
from services.node_repository import NodeRepository
from services.validation import validate_group_name, validate_node_update
from utils.audit import audit

logger = logging.getLogger(__name__)

# Fields an edit may set on any node, allocated or not
EDITABLE_FIELDS = (
    "bios_set",
    "raid_set",
    "alias",
    "public_name",
    "group",
    "description",
    "availability_zone",
    "intended_role",
    "default_fs",
    "raid_type",
    "raid_disks",
)


async def check_unique_names(repository: NodeRepository, node: Node, update: NodeUpdate) -> None:
    """Reject an alias or public name that another node already holds."""
    proposed = update.model_fields_set

    if "alias" in proposed and update.alias:
        holder = await repository.find_by_alias(update.alias)
        if holder is not None and holder.name != node.name:
            raise NodeConflictError(ConflictKind.DUPLICATE_ALIAS, update.alias, holder.name)

    if "public_name" in proposed and update.public_name:
        holder = await repository.find_by_public_name(update.public_name)
        if holder is not None and holder.name != node.name:
            raise NodeConflictError(ConflictKind.DUPLICATE_PUBLIC_NAME, update.public_name, holder.name)


def apply_node_update(node: Node, update: NodeUpdate, default_platform: str) -> list:
    """Write the edit onto `node` in memory; returns the fields written."""
    proposed = update.model_fields_set
    written = []

    for attr in EDITABLE_FIELDS:
        if attr in proposed:
            setattr(node, attr, getattr(update, attr))
            written.append(attr)

    if not node.allocated:
        node.target_platform = update.target_platform or default_platform
        written.append("target_platform")
        if "license_key" in proposed:
            node.license_key = update.license_key
            written.append("license_key")

    return written


async def update_node(
    repository: NodeRepository,
    node: Node,
    update: NodeUpdate,
    default_platform: str,
    allocate: bool = False,
) -> Node:
    """
    Validate, apply and save an edit to one node.

    With `allocate`, the node is allocated after the edit has been saved.

    Raises:
        NodeValidationError: bad group name or too few RAID disks; node untouched.
        NodeConflictError: alias or public name held by another node; node untouched.
        NodePersistenceError: the save failed. Nothing was stored; the node
            keeps the unsaved values, detached from the session. Save it
            again to retry, or reload it by name to discard the edit.
    """
    name = node.name
    validate_node_update(node, update.model_dump(exclude_unset=True))
    await check_unique_names(repository, node, update)

    written = apply_node_update(node, update, default_platform)
    try:
        await repository.save(node)
    except NodePersistenceError as e:
        logger.error(f"Saving node {name} failed: {e}")
        audit.log_node_update(name, written, status="failure", error_message=str(e))
        raise

    audit.log_node_update(name, written)
    logger.info(f"Saved node {name}")

    if allocate and not node.allocated:
        node.allocate()
        await repository.save(node)
        audit.log_allocation(name)
        logger.info(f"Allocated node {name}")

    return node


async def change_node_group(
    repository: NodeRepository,
    node: Node,
    group: Optional[str],
    automatic_keyword: str = "automatic",
) -> Optional[str]:
    """
    Move a node into a manual group, or back to automatic grouping.

    An empty value or `automatic_keyword` (any case) clears the manual
    group. Returns the node's resulting group name.
    """
    group = (group or "").strip()
    if group.lower() == automatic_keyword.lower():
        group = ""
    validate_group_name(node, group)

    node.group = group or None
    await repository.save(node)

    audit.log_group_change(node.name, node.group)
    logger.info(f"Node {node.name} moved to group {node.group_name or 'automatic'}")
    return node.group_name
