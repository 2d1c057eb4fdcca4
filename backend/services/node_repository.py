"""
Node persistence contract and its SQLAlchemy implementation.

Services receive a NodeRepository rather than a session so the
reconciliation core never touches the database directly.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Node
from services.errors import NodePersistenceError

logger = logging.getLogger(__name__)


class NodeRepository(ABC):
    """Persistence contract for nodes."""

    @abstractmethod
    async def all(self) -> List[Node]:
        """Every node, as one consistent snapshot."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_name(self, name: str) -> Optional[Node]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_alias(self, alias: str) -> Optional[Node]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_public_name(self, public_name: str) -> Optional[Node]:
        raise NotImplementedError

    @abstractmethod
    async def find_by_name_or_alias(self, key: str) -> Optional[Node]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, node: Node) -> None:
        """
        Persist a new node.
        Must fail if the name, alias or public name is taken.
        """
        raise NotImplementedError

    @abstractmethod
    async def save(self, node: Node) -> None:
        """
        Persist changes to an existing node.

        Raises:
            NodePersistenceError: the write was rejected; nothing was stored.
        """
        raise NotImplementedError


class SQLAlchemyNodeRepository(NodeRepository):
    """NodeRepository over one request-scoped AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def all(self) -> List[Node]:
        result = await self._session.execute(select(Node).order_by(Node.name))
        return list(result.scalars().all())

    async def _first(self, *criteria) -> Optional[Node]:
        result = await self._session.execute(select(Node).where(*criteria).limit(1))
        return result.scalar_one_or_none()

    async def find_by_name(self, name: str) -> Optional[Node]:
        return await self._first(Node.name == name)

    async def find_by_alias(self, alias: str) -> Optional[Node]:
        return await self._first(Node.alias == alias)

    async def find_by_public_name(self, public_name: str) -> Optional[Node]:
        return await self._first(Node.public_name == public_name)

    async def find_by_name_or_alias(self, key: str) -> Optional[Node]:
        return await self._first(or_(Node.name == key, Node.alias == key))

    async def add(self, node: Node) -> None:
        self._session.add(node)
        await self._commit(node)
        logger.info(f"Registered node {node.name}")

    async def save(self, node: Node) -> None:
        self._session.add(node)
        await self._commit(node)
        logger.debug(f"Saved node {node.name}")

    def _snapshot(self, node: Node) -> Optional[Dict[str, Any]]:
        """Loaded attribute values of a persistent node; None for a node not yet stored."""
        state = inspect(node)
        if not state.persistent:
            return None
        return {attr.key: attr.loaded_value for attr in state.attrs if attr.key not in state.unloaded}

    async def _rollback(self, node: Node, unsaved: Optional[Dict[str, Any]]) -> None:
        """
        Roll the session back without losing the edit on `node`.

        A persistent node is reloaded, given its unsaved values again and
        detached, so it stays readable and its changes are not flushed by
        other saves on this session. Saving it again retries the write.
        """
        await self._session.rollback()
        if unsaved is None:
            return
        await self._session.refresh(node)
        for key, value in unsaved.items():
            setattr(node, key, value)
        self._session.expunge(node)

    async def _commit(self, node: Node) -> None:
        name = node.name
        unsaved = self._snapshot(node)
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._rollback(node, unsaved)
            raise NodePersistenceError(name, str(e.orig if getattr(e, "orig", None) else e)) from e
