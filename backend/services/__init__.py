"""Services package for fleet status and node reconciliation."""

from .errors import (
    FleetError,
    NotFoundError,
    NodeNotFound,
    AttributeNotFound,
    NodeValidationError,
    ValidationKind,
    NodeConflictError,
    ConflictKind,
    NodePersistenceError,
    InvalidNodeAction,
)
from .attributes import resolve_attribute_path
from .networks import ConduitResolver, AttributeConduitResolver, resolve_node_networks
from .groups import GroupRollup, GroupAggregation, aggregate_groups, build_status_snapshot
from .validation import validate_node_update
from .node_repository import NodeRepository, SQLAlchemyNodeRepository
from .reconciliation import BulkReconciler, NodeOutcome
from .node_updates import update_node, change_node_group
from .actions import ActionDispatcher, perform_node_action
from .fleet import FleetService

__all__ = [
    "FleetError",
    "NotFoundError",
    "NodeNotFound",
    "AttributeNotFound",
    "NodeValidationError",
    "ValidationKind",
    "NodeConflictError",
    "ConflictKind",
    "NodePersistenceError",
    "InvalidNodeAction",
    "resolve_attribute_path",
    "ConduitResolver",
    "AttributeConduitResolver",
    "resolve_node_networks",
    "GroupRollup",
    "GroupAggregation",
    "aggregate_groups",
    "build_status_snapshot",
    "validate_node_update",
    "NodeRepository",
    "SQLAlchemyNodeRepository",
    "BulkReconciler",
    "NodeOutcome",
    "update_node",
    "change_node_group",
    "ActionDispatcher",
    "perform_node_action",
    "FleetService",
]
