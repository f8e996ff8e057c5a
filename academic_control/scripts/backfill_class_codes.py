"""
Backfill join codes for classes that were created before codes existed.

Run once (idempotent): only classes with class_code IS NULL are touched.
Usage: python -m academic_control.scripts.backfill_class_codes [--max-attempts N]
"""

import argparse
import asyncio
import sys
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from academic_control.api.v1.classes.service import commit_with_fresh_code
from academic_control.core.config import settings
from academic_control.core.exceptions import Conflict
from academic_control.core.models import SchoolClass
from academic_control.db.session import build_engine, build_sessionmaker


async def get_classes_without_code(session: AsyncSession) -> List[UUID]:
    result = await session.execute(
        select(SchoolClass.id).where(SchoolClass.class_code.is_(None)).order_by(SchoolClass.created_at)
    )
    return [row[0] for row in result.all()]


async def backfill_class_codes(session_factory: async_sessionmaker, max_attempts: int) -> int:
    """Give every code-less class a fresh unique code. Returns how many were assigned."""
    async with session_factory() as session:
        class_ids = await get_classes_without_code(session)
        if not class_ids:
            print("No classes without a join code found. Exiting.")
            return 0

        print(f"Found {len(class_ids)} class(es) without a join code. Generating...")
        created = 0
        for class_id in class_ids:
            obj = await session.get(SchoolClass, class_id)
            try:
                await commit_with_fresh_code(session, obj, max_attempts)
            except Conflict:
                print(f"  SKIP: no unique code for class {class_id} after {max_attempts} attempts.", file=sys.stderr)
                continue
            created += 1
            print(f"  {class_id} -> {obj.class_code}")

        print(f"Done. Assigned {created} class code(s).")
        return created


async def _run(max_attempts: int) -> None:
    engine = build_engine(settings.database_url)
    try:
        await backfill_class_codes(build_sessionmaker(engine), max_attempts)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Assign join codes to classes that have none.")
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=settings.class_code_max_attempts,
        help="Random codes to try per class before skipping it",
    )
    args = parser.parse_args()
    asyncio.run(_run(args.max_attempts))


if __name__ == "__main__":
    main()
