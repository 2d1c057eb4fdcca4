"""
Bulk node reconciliation.

A batch maps node names to proposed changes. Processing has two phases:

1. Conflict detection over the whole batch. Any alias or non-empty public
   name proposed for more than one node fails those nodes, and then no
   node in the batch is written at all.
2. Apply, node by node. Each node is looked up, changed and saved on its
   own; a node that is missing or fails to save is recorded as failed and
   the rest of the batch carries on.

Duplicate detection only looks inside the batch. Collisions with nodes
outside it are left to the storage layer's unique constraints and show up
as per-node save failures.

Group-name and RAID checks are not run here; they belong to single-node
edits (see services.node_updates).
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from models import Node
from schemas import BatchEntry, ReconciliationReport
from services.errors import FleetError, NodeNotFound
from services.node_repository import NodeRepository
from utils.audit import audit
from utils.logging_utils import LogTimer

logger = logging.getLogger(__name__)

UPDATED = "updated"
UNCHANGED = "unchanged"
FAILED = "failed"

Batch = Mapping[str, Union[BatchEntry, Mapping[str, Any]]]


@dataclass
class NodeOutcome:
    """Result of reconciling one batch entry."""

    node_name: str
    result: str
    changes: List[str] = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def failed(cls, node_name: str, error: Exception) -> "NodeOutcome":
        return cls(node_name=node_name, result=FAILED, error=error)


@dataclass
class BatchConflicts:
    failed: List[str] = field(default_factory=list)
    duplicate_alias: bool = False
    duplicate_public: bool = False

    @property
    def blocked(self) -> bool:
        return self.duplicate_alias or self.duplicate_public

    def fail(self, node_name: str) -> None:
        if node_name not in self.failed:
            self.failed.append(node_name)


def coerce_batch(batch: Batch) -> Dict[str, BatchEntry]:
    """Validate raw entries into BatchEntry models, keeping batch order."""
    return {
        name: entry if isinstance(entry, BatchEntry) else BatchEntry.model_validate(entry)
        for name, entry in batch.items()
    }


def detect_conflicts(entries: Mapping[str, BatchEntry]) -> BatchConflicts:
    """Find aliases and public names proposed for more than one node of the batch."""
    aliases = Counter(entry.alias for entry in entries.values() if entry.alias)
    publics = Counter(entry.public_name for entry in entries.values() if entry.public_name)

    conflicts = BatchConflicts()
    for name, entry in entries.items():
        if entry.public_name and publics[entry.public_name] > 1:
            conflicts.duplicate_public = True
            conflicts.fail(name)
        if entry.alias and aliases[entry.alias] > 1:
            conflicts.duplicate_alias = True
            conflicts.fail(name)
    return conflicts


def apply_batch_entry(node: Node, entry: BatchEntry) -> List[str]:
    """
    Apply one batch entry to `node` in memory.

    Returns the names of the fields that changed; empty means the node is
    not dirty and needs no save.
    """
    proposed = entry.model_fields_set
    changes: List[str] = []
    was_allocated = bool(node.allocated)

    if entry.allocate and not was_allocated:
        node.allocate()
        changes.append("allocated")

    # Platform and license are frozen once the node was allocated
    if not (was_allocated or node.admin):
        for attr in ("target_platform", "license_key"):
            value = getattr(entry, attr)
            if attr in proposed and getattr(node, attr) != value:
                setattr(node, attr, value)
                changes.append(attr)

    # Uniqueness was settled batch-wide, so aliases are written directly
    if "alias" in proposed and entry.alias and node.alias != entry.alias:
        node.alias = entry.alias
        changes.append("alias")

    if "public_name" in proposed and (node.public_name or None) != entry.public_name:
        node.public_name = entry.public_name
        changes.append("public_name")

    if "intended_role" in proposed and node.intended_role != entry.intended_role:
        node.intended_role = entry.intended_role
        changes.append("intended_role")

    return changes


def build_report(outcomes: List[NodeOutcome]) -> ReconciliationReport:
    """Fold per-node outcomes into the batch report."""
    report = ReconciliationReport()
    for outcome in outcomes:
        if outcome.result == UPDATED:
            report.succeeded.append(outcome.node_name)
        elif outcome.result == FAILED:
            report.failed.append(outcome.node_name)
    return report


class BulkReconciler:
    """Applies a batch of per-node changes through a NodeRepository."""

    def __init__(self, repository: NodeRepository):
        self._repository = repository

    async def reconcile(self, batch: Batch) -> ReconciliationReport:
        entries = coerce_batch(batch)

        with LogTimer(logger, f"Reconciling batch of {len(entries)} nodes") as timer:
            timer.set_node_count(len(entries))

            conflicts = detect_conflicts(entries)
            if conflicts.blocked:
                report = ReconciliationReport(
                    failed=conflicts.failed,
                    duplicate_alias=conflicts.duplicate_alias,
                    duplicate_public=conflicts.duplicate_public,
                )
                logger.warning(
                    f"Batch rejected, conflicting names on {', '.join(conflicts.failed)}"
                )
            else:
                outcomes = [
                    await self._reconcile_node(name, entry)
                    for name, entry in entries.items()
                ]
                report = build_report(outcomes)

            timer.add_info("failed_count", len(report.failed))

        audit.log_bulk_update(
            status=_audit_status(report),
            succeeded=report.succeeded,
            failed=report.failed,
            reason=report.failure_reason,
        )
        return report

    async def _reconcile_node(self, name: str, entry: BatchEntry) -> NodeOutcome:
        try:
            node = await self._repository.find_by_name(name)
            if node is None:
                raise NodeNotFound(name)

            changes = apply_batch_entry(node, entry)
            if not changes:
                return NodeOutcome(node_name=name, result=UNCHANGED)

            await self._repository.save(node)
            logger.info(f"Updated node {name}: {', '.join(changes)}")
            return NodeOutcome(node_name=name, result=UPDATED, changes=changes)
        except FleetError as e:
            logger.error(f"Bulk update of node {name} failed: {e}")
            return NodeOutcome.failed(name, e)
        except Exception as e:
            logger.error(f"Bulk update of node {name} failed: {e}", exc_info=True)
            return NodeOutcome.failed(name, e)


def _audit_status(report: ReconciliationReport) -> str:
    if report.failed and report.succeeded:
        return "partial"
    if report.failed:
        return "failure"
    if report.succeeded:
        return "success"
    return "noop"
