#!/usr/bin/env python3
"""
Create the community tables (profiles, comments, comment_votes,
comment_reports, saved_places) on a fresh database, then print row counts.

Usage:
    DATABASE_URL=postgresql://... python3 scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select  # noqa: E402

from citybasic.config import settings  # noqa: E402
from citybasic.db.engine import create_schema, standalone_session  # noqa: E402
from citybasic.db.models import Base  # noqa: E402

GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"


async def table_counts(session) -> dict[str, int]:
    counts = {}
    for table in Base.metadata.sorted_tables:
        result = await session.execute(select(func.count()).select_from(table))
        counts[table.name] = result.scalar() or 0
    return counts


async def run() -> dict[str, int]:
    await create_schema()
    async with standalone_session() as session:
        return await table_counts(session)


def main():
    if not settings.database_url:
        print(f"{RED}DATABASE_URL is not set{RESET}")
        sys.exit(1)
    counts = asyncio.run(run())
    for name, count in counts.items():
        print(f"  {name}: {count}")
    print(f"{GREEN}Schema ready{RESET}")


if __name__ == "__main__":
    main()
