"""
Pydantic v2 schemas for node edits, batch reconciliation and status views.

Input schemas (BatchEntry, NodeUpdate) are deliberately lenient about
content: group-name syntax and RAID disk counts are checked by the update
validator so that callers get a structured error kind instead of a generic
422. They only normalise shapes (blank strings, disk lists).

Output schemas serialize with the camelCase keys dashboards consume.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models import STATUS_KINDS


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def to_sentence(items: List[str]) -> str:
    """Join names the way a person lists them: 'a', 'a and b', 'a, b, and c'."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


# ═══════════════════════════════════════════════════════════════════════
# BATCH RECONCILIATION
# ═══════════════════════════════════════════════════════════════════════

class BatchEntry(BaseModel):
    """Proposed changes for one node of a bulk update.

    Only fields present in the payload are considered; an absent field
    leaves the node's value alone.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    alias: Optional[str] = None
    public_name: Optional[str] = None
    target_platform: Optional[str] = None
    license_key: Optional[str] = None
    intended_role: Optional[str] = None
    allocate: bool = False

    @field_validator("alias", "public_name")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class ReconciliationReport(BaseModel):
    """Outcome of one bulk update."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    succeeded: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    duplicate_public: bool = False
    duplicate_alias: bool = False
    group_error: bool = False

    @property
    def outcome(self) -> str:
        """'failed' if any node failed, else 'updated' or 'unchanged'."""
        if self.failed:
            return "failed"
        if self.succeeded:
            return "updated"
        return "unchanged"

    @property
    def failure_reason(self) -> Optional[str]:
        if not self.failed:
            return None
        if self.duplicate_alias:
            return "duplicate_alias"
        if self.duplicate_public:
            return "duplicate_public"
        if self.group_error:
            return "group_error"
        return "failed"

    def summary(self) -> str:
        """One-line human summary naming nodes by their short name."""
        if self.failed:
            names = to_sentence([name.split(".")[0] for name in self.failed])
            return {
                "duplicate_alias": f"Duplicate alias for {names}",
                "duplicate_public": f"Duplicate public name for {names}",
                "group_error": f"Invalid group name for {names}",
            }.get(self.failure_reason, f"Failed to update {names}")
        if self.succeeded:
            names = to_sentence([name.split(".")[0] for name in self.succeeded])
            return f"Updated {names}"
        return "No changes"


# ═══════════════════════════════════════════════════════════════════════
# SINGLE NODE EDIT
# ═══════════════════════════════════════════════════════════════════════

class NodeUpdate(BaseModel):
    """Editable node settings (all optional)."""

    model_config = ConfigDict(extra="ignore")

    bios_set: Optional[str] = None
    raid_set: Optional[str] = None
    alias: Optional[str] = Field(None, max_length=255)
    public_name: Optional[str] = Field(None, max_length=255)
    group: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    availability_zone: Optional[str] = None
    intended_role: Optional[str] = None
    default_fs: Optional[str] = None
    raid_type: Optional[str] = None
    raid_disks: Optional[List[str]] = None
    target_platform: Optional[str] = None
    license_key: Optional[str] = None

    @field_validator("alias", "public_name", "group")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("raid_disks", mode="before")
    @classmethod
    def drop_blank_disks(cls, v: Any) -> Any:
        # Multi-select forms submit an empty placeholder entry
        if isinstance(v, list):
            return [disk for disk in v if disk not in (None, "")]
        return v


# ═══════════════════════════════════════════════════════════════════════
# STATUS VIEWS
# ═══════════════════════════════════════════════════════════════════════

def empty_status_counts() -> Dict[str, int]:
    return {kind: 0 for kind in STATUS_KINDS}


class NodeStatusEntry(BaseModel):
    """Per-node dashboard entry: CSS class plus display label."""

    model_config = ConfigDict(populate_by_name=True)

    css_class: str = Field(alias="class")
    status: str


class GroupStatusEntry(BaseModel):
    tooltip: str = ""
    status: Dict[str, int] = Field(default_factory=empty_status_counts)


class StatusSnapshot(BaseModel):
    nodes: Dict[str, NodeStatusEntry] = Field(default_factory=dict)
    groups: Dict[str, GroupStatusEntry] = Field(default_factory=dict)
    error: Optional[str] = None

    def to_json_dict(self) -> dict:
        """Dump with the dashboard's key names; `error` only when set."""
        return self.model_dump(by_alias=True, exclude_none=True)
