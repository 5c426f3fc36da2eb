#!/usr/bin/env python3
"""Seed the default badge catalog and compute the initial rankings.

Safe to run repeatedly: the catalog is only seeded when empty.

Usage:
    python scripts/seed_badges.py
    python scripts/seed_badges.py --skip-rankings
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from readpulse.cache.ranking_cache import create_ranking_cache
from readpulse.cache.redis_client import RedisCache
from readpulse.db.session import async_session_factory, close_db
from readpulse.services.badge_service import BadgeService
from readpulse.services.ranking_service import RankingEngine


async def seed(skip_rankings: bool) -> None:
    async with async_session_factory() as db:
        created = await BadgeService(db).initialize_default_badges()
    print(f"Badges created: {created}")

    if not skip_rankings:
        engine = RankingEngine(async_session_factory, await create_ranking_cache())
        report = await engine.compute_book_rankings()
        for ranking_type, ok in report.items():
            print(f"  {ranking_type.value}: {'ok' if ok else 'FAILED'}")

    await RedisCache.close()
    await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--skip-rankings", action="store_true", help="Only seed badges")
    args = parser.parse_args()
    asyncio.run(seed(args.skip_rankings))


if __name__ == "__main__":
    main()
