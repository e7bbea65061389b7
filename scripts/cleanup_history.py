import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]


async def cleanup(days: int | None) -> int:
    sys.path.insert(0, str(BACKEND_ROOT))

    from app import database  # type: ignore
    from app.services.history import purge_expired_history  # type: ignore

    try:
        async with database.AsyncSessionLocal() as session:
            return await purge_expired_history(session, days)
    finally:
        await database.dispose_engine()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Delete note history snapshots older than the retention window.")
    parser.add_argument("--days", type=int, default=None, help="retention in days (default: NOTEHUB_HISTORY_RETENTION_DAYS)")
    args = parser.parse_args(argv)
    if args.days is not None and args.days < 0:
        parser.error("--days must be >= 0")
    deleted = asyncio.run(cleanup(args.days))
    print(f'Deleted {deleted} history entries.')


if __name__ == '__main__':
    main()
