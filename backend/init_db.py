# init_db.py (in backend folder)

from sqlalchemy import inspect

from app.core.config import Settings
from app.infra.database import create_db_engine, reset_db


def init_db(database_url=None):
    """Drop and recreate all exchange tables"""
    engine = create_db_engine(database_url or Settings.from_env().database_url)
    try:
        print("⚠️  Dropping and recreating all tables...")
        tables = reset_db(engine)
        print("✅ Database initialized successfully!")
        print(f"\nCreated tables: {tables}")

        inspector = inspect(engine)
        for table in tables:
            print(f"\n{table}:")
            for col in inspector.get_columns(table):
                print(f"  - {col['name']}: {col['type']}")
    finally:
        engine.dispose()


if __name__ == "__main__":
    init_db()
