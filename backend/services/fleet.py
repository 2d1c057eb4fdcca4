"""
Fleet service: the operations a transport layer (web UI, API, CLI) calls.

Every method works against an injected NodeRepository. Lookups that miss
raise NodeNotFound; other failures use the errors in services.errors.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from config import Settings, settings as default_settings
from models import Node
from schemas import NodeUpdate, ReconciliationReport, StatusSnapshot
from services.actions import ActionDispatcher, perform_node_action
from services.attributes import AttributePath, resolve_attribute_path
from services.errors import NodeNotFound
from services.groups import GroupAggregation, aggregate_groups, build_status_snapshot
from services.networks import AttributeConduitResolver, ConduitResolver, NetworkRow, resolve_node_networks
from services.node_repository import NodeRepository
from services.node_updates import change_node_group, update_node
from services.reconciliation import Batch, BulkReconciler

logger = logging.getLogger(__name__)


class FleetService:
    """Node status, inspection and update operations."""

    def __init__(
        self,
        repository: NodeRepository,
        conduit_resolver: Optional[ConduitResolver] = None,
        dispatcher: Optional[ActionDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        self._repository = repository
        self._conduits = conduit_resolver or AttributeConduitResolver()
        self._dispatcher = dispatcher
        self._settings = settings or default_settings

    async def _get_node(self, name: str) -> Node:
        node = await self._repository.find_by_name(name)
        if node is None:
            raise NodeNotFound(name)
        return node

    # ============================================
    # UPDATES
    # ============================================

    async def reconcile_batch(self, batch: Batch) -> ReconciliationReport:
        return await BulkReconciler(self._repository).reconcile(batch)

    async def update_node(
        self,
        name: str,
        update: Union[NodeUpdate, Dict[str, Any]],
        allocate: bool = False,
    ) -> Node:
        if not isinstance(update, NodeUpdate):
            update = NodeUpdate.model_validate(update)
        node = await self._get_node(name)
        return await update_node(
            self._repository,
            node,
            update,
            default_platform=self._settings.DEFAULT_PLATFORM,
            allocate=allocate,
        )

    async def change_group(self, name_or_alias: str, group: Optional[str]) -> Dict[str, Optional[str]]:
        node = await self._repository.find_by_name_or_alias(name_or_alias)
        if node is None:
            raise NodeNotFound(name_or_alias)
        new_group = await change_node_group(
            self._repository,
            node,
            group,
            automatic_keyword=self._settings.AUTOMATIC_GROUP_KEYWORD,
        )
        return {"group": new_group}

    async def perform_action(self, name: str, action: str) -> None:
        if self._dispatcher is None:
            raise RuntimeError("No action dispatcher configured")
        node = await self._get_node(name)
        await perform_node_action(node, action, self._dispatcher)

    # ============================================
    # STATUS VIEWS
    # ============================================

    async def status_snapshot(self) -> StatusSnapshot:
        """
        Node classes and group counters for dashboard polling.

        A failure while loading or aggregating is logged and reported in
        the snapshot's `error` field rather than raised, so pollers keep a
        consistent payload shape.
        """
        try:
            nodes = await self._repository.all()
            return build_status_snapshot(nodes, self._settings.UNKNOWN_GROUP_LABEL)
        except Exception as e:
            logger.error(f"Failed to build status snapshot: {e}", exc_info=True)
            return StatusSnapshot(error=str(e))

    async def node_overview(self) -> GroupAggregation:
        """Flat node summaries plus group rollups, for the node index."""
        nodes = await self._repository.all()
        return aggregate_groups(nodes, self._settings.UNKNOWN_GROUP_LABEL)

    async def list_nodes(self, unallocated_only: bool = False) -> Dict[str, Node]:
        nodes = await self._repository.all()
        return {
            node.handle: node
            for node in nodes
            if not (unallocated_only and node.allocated)
        }

    async def nodes_with_role(self, role: str, names_only: bool = False) -> Union[List[Node], Dict[str, Any]]:
        """Nodes carrying `role`; with `names_only`, {role, nodes: [handles], count}."""
        nodes = [node for node in await self._repository.all() if node.has_role(role)]
        if not names_only:
            return nodes
        handles = [node.handle for node in nodes]
        return {"role": role, "nodes": handles, "count": len(handles)}

    async def families(self) -> Dict[str, Dict[str, Any]]:
        """Nodes grouped by hardware family."""
        families: Dict[str, Dict[str, Any]] = {}
        for node in await self._repository.all():
            family = node.family or ""
            entry = families.setdefault(family, {"family": node.family, "names": []})
            entry["names"].append({
                "alias": node.alias,
                "description": node.description,
                "handle": node.handle,
            })
        return families

    # ============================================
    # NODE DETAIL
    # ============================================

    async def show(self, name: str, key: Optional[str] = None) -> Any:
        """The node document, or one top-level key of it."""
        document = (await self._get_node(name)).to_dict()
        if key is None:
            return document
        return document.get(key)

    async def attribute(self, name: str, path: AttributePath) -> Dict[str, Any]:
        node = await self._get_node(name)
        return {"value": resolve_attribute_path(node.attributes or {}, path)}

    async def network(self, name: str) -> List[NetworkRow]:
        node = await self._get_node(name)
        return resolve_node_networks(
            node,
            self._conduits,
            bmc_network=self._settings.BMC_NETWORK_NAME,
        )
