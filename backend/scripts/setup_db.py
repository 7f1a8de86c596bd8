"""CLI script to check the database connection and seed example registrants.
Usage: DATABASE_URL=... python scripts/setup_db.py
"""
import sys
import logging
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `aprendia` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from aprendia import services
from aprendia.config import Settings
from aprendia.database import Database

logger = logging.getLogger("aprendia.setup")


def main(database: Optional[Database] = None) -> int:
    """Connect, seed the example registrants if the table is empty, report.

    The database is always disconnected before returning. Returns the
    process exit status: 0 on success, 1 on any failure.
    """
    if database is None:
        settings = Settings()
        database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    try:
        print('Connecting to database...')
        if not database.connect():
            raise RuntimeError('could not connect to the database')
        info = database.info()
        print(f"Connected ({info['backend']})")
        print(f"Database: {info['database']}")
        print(f"Host: {info['host']}")
        print(f"Port: {info['port']}")
        with database.session() as session:
            svc = services.SetupService(session)
            existing = svc.count_all()
            print(f'Existing registrants: {existing}')
            if existing == 0:
                print('Creating example registrants...')
                created = svc.seed_samples()
                print(f'Created {len(created)} example registrants')
            else:
                print('Registrants already present, nothing to seed')
            print('Registrants by municipality:')
            for row in svc.municipality_summary():
                print(f"   {row['_id']}: {row['count']} registrants")
        print('Setup completed')
        return 0
    except Exception as e:
        logger.debug('setup failed', exc_info=True)
        print(f'Setup failed: {e}')
        print('Check the DATABASE_URL environment variable')
        return 1
    finally:
        database.disconnect()
        print('Disconnected from database')


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
