#!/usr/bin/env python3
"""
Fleet Status Demo Seed Data
===========================

Populates a database with a small example fleet and prints the dashboard
status snapshot for it.

Fleet layout:
  admin.example.net          - admin server, ready, group "control"
  d52-54-00-aa-00-0X         - compute nodes in automatic switch groups,
                               in assorted lifecycle states
  d52-54-00-bb-00-01         - a node still being discovered

Usage:
    python scripts/seed_demo_nodes.py                      # fresh demo DB
    python scripts/seed_demo_nodes.py --db /tmp/fleet.db   # custom location
    python scripts/seed_demo_nodes.py --append             # keep existing nodes

Requirements:
    Run from the backend/ directory (or set PYTHONPATH).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

# ── Ensure we can import project modules ────────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
BACKEND_DIR = SCRIPT_DIR.parent
sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import delete  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from config import settings  # noqa: E402
import database  # noqa: E402
from database import close_db, init_db  # noqa: E402
from models import Node  # noqa: E402
from services import FleetService, SQLAlchemyNodeRepository  # noqa: E402
from utils.logging_utils import setup_logging, log_step  # noqa: E402

logger = logging.getLogger("seed_demo_nodes")

DOMAIN = "example.net"


# ══════════════════════════════════════════════════════════════════════
# Demo data definitions
# ══════════════════════════════════════════════════════════════════════

COMPUTE_STATES = [
    ("ready", "sw-1"),
    ("ready", "sw-1"),
    ("hardware-installing", "sw-1"),
    ("shutdown", "sw-2"),
    ("problem", "sw-2"),
    ("applying", "sw-2"),
]


def _compute_attributes(index: int) -> dict:
    return {
        "crowbar_wall": {"ipmi": {"address": f"10.0.1.{10 + index}"}},
        "network": {
            "conduits": {
                "intf0": {"interface": "bond0", "members": ["eth0", "eth1"], "team_mode": 5},
                "intf1": {"interface": "eth2", "members": ["eth2"]},
            },
        },
        "dmi": {"system": {"manufacturer": "QEMU", "product_name": "Standard PC"}},
    }


def build_demo_nodes() -> list:
    """Return unsaved Node objects for the demo fleet."""
    nodes = [
        Node(
            name=f"admin.{DOMAIN}",
            alias="admin",
            description="Administration server",
            group="control",
            group_order=0,
            family="Standard PC",
            state="ready",
            allocated=True,
            admin=True,
            target_platform=settings.DEFAULT_PLATFORM,
            roles=["crowbar", "dns-server", "ntp-server"],
            attributes={"crowbar_wall": {"ipmi": {"address": "10.0.1.1"}}},
            networks={
                "admin": {"conduit": "intf0", "address": "192.168.124.10"},
                "bmc": {"conduit": "bmc"},
            },
            unmanaged_interfaces={},
        )
    ]

    for index, (state, switch) in enumerate(COMPUTE_STATES, start=1):
        nodes.append(Node(
            name=f"d52-54-00-aa-00-0{index}.{DOMAIN}",
            alias=f"compute{index}",
            description=f"Compute node {index}",
            auto_group=switch,
            group_order=index,
            family="Standard PC",
            state=state,
            ipaddress=f"192.168.124.{80 + index}",
            allocated=state != "applying",
            admin=False,
            roles=["nova-compute-kvm"] if state == "ready" else [],
            attributes=_compute_attributes(index),
            networks={
                "admin": {"conduit": "intf0", "address": f"192.168.124.{80 + index}"},
                "storage": {"conduit": "intf1", "address": f"192.168.125.{80 + index}"},
                "bmc": {"conduit": "bmc"},
            },
            unmanaged_interfaces={"eth3": "unconfigured"} if index == 1 else {},
        ))

    nodes.append(Node(
        name=f"d52-54-00-bb-00-01.{DOMAIN}",
        alias="d52-54-00-bb-00-01",
        group_order=0,
        state="discovering",
        ipaddress="192.168.124.200",
        allocated=False,
        admin=False,
        attributes={},
        networks={},
        unmanaged_interfaces={},
    ))
    return nodes


async def seed(db_path: Optional[Path], append: bool) -> dict:
    """Seed the demo fleet into `db_path`, or the configured DATABASE_URL when None."""
    if db_path is None:
        engine = database.engine
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        with log_step(logger, 1, 3, f"Preparing schema in {db_path or settings.DATABASE_URL}"):
            await init_db(engine)
            if not append:
                async with engine.begin() as conn:
                    await conn.execute(delete(Node))

        async with session_factory() as session:
            repository = SQLAlchemyNodeRepository(session)

            with log_step(logger, 2, 3, "Registering demo nodes"):
                existing = {node.name for node in await repository.all()}
                for node in build_demo_nodes():
                    if node.name in existing:
                        logger.info(f"Skipping existing node {node.name}")
                        continue
                    await repository.add(node)

            with log_step(logger, 3, 3, "Building status snapshot"):
                snapshot = await FleetService(repository).status_snapshot()
    finally:
        await close_db(engine)

    return snapshot.to_json_dict()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a demo fleet and print its status")
    parser.add_argument("--db", type=Path, help="SQLite database file (default: DATABASE_URL)")
    parser.add_argument("--append", action="store_true", help="Keep nodes already in the database")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    snapshot = asyncio.run(seed(args.db, args.append))
    print(json.dumps(snapshot, indent=2))
    return 1 if "error" in snapshot else 0


if __name__ == "__main__":
    sys.exit(main())
