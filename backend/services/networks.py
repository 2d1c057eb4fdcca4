"""
Derive a node's network/interface/address listing.

Nodes still in discovery only have a DHCP lease, so they get a single
"[dhcp]" row. Known nodes get one row per network that has an address,
labelled with the interface backing the network's conduit.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models import Node
from services.attributes import lookup_attribute

logger = logging.getLogger(__name__)

DHCP_LABEL = "[dhcp]"
UNMANAGED_LABEL = "[not managed]"
UNKNOWN_INTERFACE = "Unknown"

DISCOVERING_STATE = "discovering"
DISCOVERED_STATE = "discovered"

BMC_ADDRESS_PATH = ("crowbar_wall", "ipmi", "address")
CONDUITS_PATH = ("network", "conduits")

ConduitDetails = Tuple[Optional[str], Optional[Sequence[str]], Any]
NetworkRow = Tuple[str, Any]


class ConduitResolver(ABC):
    """Resolves a conduit name to the interfaces that back it on a node."""

    @abstractmethod
    def conduit_details(self, node: Node, conduit: Optional[str]) -> ConduitDetails:
        """
        Return (interface name, member interfaces, team mode).

        Any element may be None when the conduit can't be resolved.
        """
        raise NotImplementedError


class AttributeConduitResolver(ConduitResolver):
    """
    Reads conduits from the node's own attribute document:

        {"network": {"conduits": {"intf0": {"interface": "bond0",
                                             "members": ["eth0", "eth1"],
                                             "team_mode": 5}}}}
    """

    def conduit_details(self, node: Node, conduit: Optional[str]) -> ConduitDetails:
        if not conduit:
            return None, None, None
        details = lookup_attribute(node.attributes or {}, [*CONDUITS_PATH, conduit])
        if not isinstance(details, dict):
            return None, None, None
        return details.get("interface"), details.get("members"), details.get("team_mode")


def interface_label(ifname: Optional[str], members: Optional[Sequence[str]]) -> str:
    """'eth0', 'bond0[eth0,eth1]' for teams, or 'Unknown'."""
    if ifname is None or members is None:
        return UNKNOWN_INTERFACE
    if len(members) > 1:
        return f"{ifname}[{','.join(members)}]"
    return ifname


def resolve_node_networks(
    node: Node,
    conduit_resolver: ConduitResolver,
    bmc_network: str = "bmc",
) -> List[NetworkRow]:
    """
    Build the (label, value) rows describing where a node can be reached.

    Rows are sorted by network name, value is {interface label: address}.
    Unmanaged interfaces, if any, come last under "[not managed]".
    """
    if node.state == DISCOVERING_STATE:
        return [(DHCP_LABEL, "discovering")]
    if node.state == DISCOVERED_STATE:
        return [(DHCP_LABEL, node.ipaddress)]

    found: Dict[str, Dict[str, str]] = {}
    for name, data in (node.networks or {}).items():
        data = data or {}
        if name == bmc_network:
            label = bmc_network
            address = lookup_attribute(node.attributes or {}, BMC_ADDRESS_PATH)
        else:
            ifname, members, _team = conduit_resolver.conduit_details(node, data.get("conduit"))
            label = interface_label(ifname, members)
            address = data.get("address")

        if address is not None:
            found.setdefault(name, {})[label] = address
        else:
            logger.debug(f"Node {node.name}: no address on network {name}")

    rows: List[NetworkRow] = sorted(found.items())
    if node.unmanaged_interfaces:
        rows.append((UNMANAGED_LABEL, node.unmanaged_interfaces))
    return rows
