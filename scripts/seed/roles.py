#!/usr/bin/env python3
"""
Seed the reference roles (customer, seller, support, admin) and their
permissions. Safe to re-run.
"""

import asyncio
import os
import sys

# Add project root to path
project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)
sys.path.insert(0, project_root)

from libs.common.logging import configure_logging
from libs.db.config import AsyncSessionLocal
from services.identity_service.seed import seed_roles


async def main():
    configure_logging()
    async with AsyncSessionLocal() as session:
        roles = await seed_roles(session)
    print(f"Seeded {len(roles)} roles: {', '.join(sorted(r.name for r in roles))}")


if __name__ == "__main__":
    asyncio.run(main())
