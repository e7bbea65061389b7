import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]


async def recreate_db(database_url: str | None = None):
    # Ensure backend root on import path
    sys.path.insert(0, str(BACKEND_ROOT))

    from app import database  # type: ignore

    if database_url:
        database.init_engine(database_url)
    await database.drop_tables()
    await database.create_tables()
    await database.dispose_engine()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Drop and recreate all NoteHub tables.")
    parser.add_argument("--database-url", default=None, help="override NOTEHUB_DATABASE_URL")
    args = parser.parse_args(argv)
    asyncio.run(recreate_db(args.database_url))
    print('Database recreated.')


if __name__ == '__main__':
    main()
