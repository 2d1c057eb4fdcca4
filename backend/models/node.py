from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, Index
from database import Base


# Coarse status classes, in the order dashboards render them
STATUS_KINDS = (
    "ready",
    "failed",
    "pending",
    "unready",
    "building",
    "crowbar_upgrade",
    "unknown",
)

# Leading word of a lifecycle state -> status class.
# States not listed here are "unready".
_STATE_STATUS = {
    "ready": "ready",
    "crowbar_upgrade": "crowbar_upgrade",
}
_STATE_STATUS.update(dict.fromkeys(
    ("discovered", "wait", "waiting", "user", "hold", "pending", "input"),
    "pending",
))
_STATE_STATUS.update(dict.fromkeys(
    ("discovering", "reset", "delete", "reinstall", "shutdown", "reboot", "poweron", "noupdate"),
    "unknown",
))
_STATE_STATUS.update(dict.fromkeys(
    ("problem", "issue", "error", "failed", "fail", "warn", "warning", "fubar", "alert", "recovering"),
    "failed",
))
_STATE_STATUS.update(dict.fromkeys(
    ("hardware-installing", "hardware-install", "hardware-installed",
     "hardware-updated", "hardware-updating"),
    "building",
))

STATE_LABELS = {
    "ready": "Ready",
    "shutdown": "Power Off",
    "poweron": "Powering On",
    "reboot": "Rebooting",
    "discovering": "Discovering",
    "discovered": "Discovered",
    "hardware-installing": "Installing Hardware",
    "hardware-installed": "Hardware Installed",
    "crowbar_upgrade": "Upgrading",
}

NODE_ACTIONS = (
    "reinstall",
    "reset",
    "shutdown",
    "reboot",
    "poweron",
    "powercycle",
    "poweroff",
    "allocate",
    "delete",
    "identify",
    "update",
)

# Actions that would wipe or remove the machine; never offered on admin nodes
DESTRUCTIVE_ACTIONS = frozenset({"reinstall", "reset", "delete"})


def status_for_state(state: Optional[str]) -> str:
    """Map a lifecycle state string to its coarse status class."""
    if not state or not state.split():
        return "unknown"
    return _STATE_STATUS.get(state.split()[0].lower(), "unready")


class Node(Base):
    """SQLAlchemy model for a managed machine."""

    __tablename__ = "nodes"

    id = Column(Integer, primary_key=True, index=True)

    # Identity
    name = Column(String(255), nullable=False, unique=True)  # FQDN
    alias = Column(String(255), nullable=True, unique=True)
    public_name = Column(String(255), nullable=True, unique=True)  # blank stored as NULL
    description = Column(Text, nullable=True)

    # Grouping
    group = Column(String(255), nullable=True)  # manual display group
    auto_group = Column(String(255), nullable=True)  # e.g. "sw-<switch>"
    group_order = Column(Integer, default=0)
    family = Column(String(255), nullable=True)  # hardware family

    # Lifecycle
    state = Column(String(64), nullable=True)
    ipaddress = Column(String(45), nullable=True)
    allocated = Column(Boolean, default=False)
    admin = Column(Boolean, default=False)

    # Deployment settings
    target_platform = Column(String(64), nullable=True)
    license_key = Column(String(255), nullable=True)
    intended_role = Column(String(64), nullable=True)
    availability_zone = Column(String(255), nullable=True)
    default_fs = Column(String(32), nullable=True)
    raid_type = Column(String(16), nullable=True)  # single/raid1/raid5/raid6/raid10
    raid_disks = Column(JSON, nullable=True)
    bios_set = Column(String(64), nullable=True)
    raid_set = Column(String(64), nullable=True)
    roles = Column(JSON, nullable=True)

    # Documents reported by the node
    attributes = Column(JSON, nullable=True)
    networks = Column(JSON, nullable=True)  # {"admin": {"conduit": "intf0", "address": "..."}}
    unmanaged_interfaces = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_node_state", "state"),
        Index("idx_node_allocated", "allocated"),
    )

    @property
    def handle(self) -> str:
        return self.name.split(".")[0]

    @property
    def status(self) -> str:
        return status_for_state(self.state)

    @property
    def state_label(self) -> str:
        state = self.state or "unknown"
        return STATE_LABELS.get(state, state.replace("_", " ").replace("-", " ").title())

    @property
    def group_name(self) -> Optional[str]:
        """Manual group if one is set, otherwise the automatic one."""
        return self.group or self.auto_group

    @property
    def is_group_automatic(self) -> bool:
        return not self.group

    @property
    def actions(self) -> list:
        """Lifecycle actions this node currently accepts."""
        allowed = list(NODE_ACTIONS)
        if self.allocated:
            allowed.remove("allocate")
        if self.admin:
            allowed = [a for a in allowed if a not in DESTRUCTIVE_ACTIONS]
        return allowed

    def has_role(self, role: str) -> bool:
        return role in (self.roles or [])

    def allocate(self) -> None:
        """Claim the node. There is no way back to unallocated."""
        self.allocated = True

    def to_dict(self) -> dict:
        """Full node document, as shown by the node detail view."""
        return {
            "name": self.name,
            "handle": self.handle,
            "alias": self.alias,
            "public_name": self.public_name,
            "description": self.description,
            "group": self.group_name,
            "group_order": self.group_order,
            "family": self.family,
            "state": self.state,
            "status": self.status,
            "ipaddress": self.ipaddress,
            "allocated": bool(self.allocated),
            "admin": bool(self.admin),
            "target_platform": self.target_platform,
            "license_key": self.license_key,
            "intended_role": self.intended_role,
            "availability_zone": self.availability_zone,
            "default_fs": self.default_fs,
            "raid_type": self.raid_type,
            "raid_disks": self.raid_disks or [],
            "roles": self.roles or [],
            "attributes": self.attributes or {},
            "networks": self.networks or {},
        }

    def __repr__(self):
        return f"<Node(id={self.id}, name={self.name}, alias={self.alias}, state={self.state})>"
