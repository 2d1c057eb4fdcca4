from enum import Enum
from typing import Optional, Sequence


# -----------------------------
# Base Errors
# -----------------------------

class FleetError(Exception):
    """Base class for all fleet errors. `kind` is the machine-readable reason."""

    kind = "error"

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": str(self)}


# -----------------------------
# Lookup Errors
# -----------------------------

class NotFoundError(FleetError):
    kind = "not_found"


class NodeNotFound(NotFoundError):
    kind = "node_not_found"

    def __init__(self, name: str):
        super().__init__(f"Node {name} not found")
        self.name = name


class AttributeNotFound(NotFoundError):
    """A path segment is missing; `resolved` holds the segments that did resolve."""

    kind = "attribute_not_found"

    def __init__(self, path: Sequence[str], resolved: Sequence[str]):
        self.path = list(path)
        self.resolved = list(resolved)
        super().__init__(f"Unknown attribute {'/'.join(self.path)}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["resolved"] = "/".join(self.resolved)
        return data


# -----------------------------
# Validation / Conflict Errors
# -----------------------------

class ValidationKind(str, Enum):
    INVALID_GROUP_NAME = "invalid_group_name"
    INSUFFICIENT_RAID_DISKS = "insufficient_raid_disks"


class NodeValidationError(FleetError):
    """Proposed node settings were rejected before anything was written."""

    def __init__(self, kind: ValidationKind, message: str):
        super().__init__(message)
        self.kind = kind.value


class ConflictKind(str, Enum):
    DUPLICATE_ALIAS = "duplicate_alias"
    DUPLICATE_PUBLIC_NAME = "duplicate_public_name"


class NodeConflictError(FleetError):
    """A proposed alias or public name is already taken."""

    def __init__(self, kind: ConflictKind, value: str, holder: Optional[str] = None):
        message = f"{kind.value.replace('_', ' ')} '{value}'"
        if holder:
            message += f" already used by {holder}"
        super().__init__(message)
        self.kind = kind.value
        self.value = value
        self.holder = holder


# -----------------------------
# Persistence Errors
# -----------------------------

class NodePersistenceError(FleetError):
    kind = "persistence_error"

    def __init__(self, name: str, message: str):
        super().__init__(f"Failed to save node {name}: {message}")
        self.name = name


# -----------------------------
# Action Errors
# -----------------------------

class InvalidNodeAction(FleetError):
    kind = "invalid_action"

    def __init__(self, name: str, action: str):
        super().__init__(f"Invalid action {action} for node {name}")
        self.name = name
        self.action = action
