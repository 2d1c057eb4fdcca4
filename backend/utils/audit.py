"""
Structured audit logging for node changes.

Events are written as single-line JSON to a dedicated 'audit' logger. The
request id and actor are carried in context variables so that every event
emitted while handling one request shares them, across awaits.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


_request_id_context: ContextVar[Optional[str]] = ContextVar(
    'request_id', default=None
)

_actor_context: ContextVar[Optional[str]] = ContextVar(
    'actor', default=None
)

# Long node lists are summarised to a count
MAX_LISTED_NODES = 20


class AuditLogger:
    """
    Audit logger for fleet operations.

    All events share the same envelope: timestamp, action, actor, resource,
    resource_id, status, request_id and a details dict.
    """

    def __init__(self):
        self.logger = logging.getLogger('audit')

    def set_request_id(self, request_id: str) -> None:
        _request_id_context.set(request_id)

    def get_request_id(self) -> Optional[str]:
        return _request_id_context.get()

    def set_actor(self, actor: str) -> None:
        """Set the user on whose behalf the current request runs."""
        _actor_context.set(actor)

    def get_actor(self) -> Optional[str]:
        return _actor_context.get()

    def log(
        self,
        action: str,
        resource: str,
        resource_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Emit one audit event.

        Args:
            action: What happened (e.g. 'BULK_UPDATE', 'UPDATE', 'ACTION')
            resource: Type of resource affected (e.g. 'Node', 'NodeBatch')
            resource_id: Identifier of the affected resource
            status: 'success', 'failure', 'partial' or 'noop'
            details: Additional context
        """
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'action': action,
            'actor': self.get_actor() or 'system',
            'resource': resource,
            'resource_id': resource_id,
            'status': status,
            'request_id': self.get_request_id(),
            'details': details or {},
        }
        self.logger.info(json.dumps(event, default=str))

    def log_bulk_update(
        self,
        status: str,
        succeeded: List[str],
        failed: List[str],
        reason: Optional[str] = None,
    ) -> None:
        """Log the outcome of one batch reconciliation."""
        details: Dict[str, Any] = {
            'succeeded_count': len(succeeded),
            'failed_count': len(failed),
        }
        if len(succeeded) + len(failed) <= MAX_LISTED_NODES:
            details['succeeded'] = succeeded
            details['failed'] = failed
        if reason:
            details['reason'] = reason

        self.log(
            action='BULK_UPDATE',
            resource='NodeBatch',
            resource_id='batch',
            status=status,
            details=details,
        )

    def log_node_update(
        self,
        node_name: str,
        changes: List[str],
        status: str = 'success',
        error_message: Optional[str] = None,
    ) -> None:
        """
        Log a single-node edit.

        Args:
            node_name: Name of the edited node
            changes: Names of the fields that were written
            status: 'success' or 'failure'
            error_message: Reason for a failure
        """
        details: Dict[str, Any] = {'changes': changes}
        if error_message:
            details['error_message'] = error_message

        self.log(
            action='UPDATE',
            resource='Node',
            resource_id=node_name,
            status=status,
            details=details,
        )

    def log_allocation(self, node_name: str) -> None:
        self.log(
            action='ALLOCATE',
            resource='Node',
            resource_id=node_name,
            status='success',
        )

    def log_group_change(self, node_name: str, group: Optional[str]) -> None:
        self.log(
            action='GROUP_CHANGE',
            resource='Node',
            resource_id=node_name,
            status='success',
            details={'group': group or 'automatic'},
        )

    def log_node_action(self, node_name: str, node_action: str, status: str) -> None:
        """Log a lifecycle action request, whether dispatched or refused."""
        self.log(
            action='ACTION',
            resource='Node',
            resource_id=node_name,
            status=status,
            details={'node_action': node_action},
        )


# Global audit logger instance for convenient import
audit = AuditLogger()
