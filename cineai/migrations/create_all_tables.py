"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m cineai.migrations.create_all_tables
"""

from cineai.config import Settings
from cineai.database import Base, create_db_engine
# Import all models to ensure they're registered with Base
from cineai.models import AIRecommendationCache, MovieCache, SearchHistory  # noqa: F401


def create_tables(settings: Settings = None):
    """Create all database tables"""
    settings = settings or Settings.from_env()
    engine = create_db_engine(settings)

    print("=" * 60)
    print("Creating all database tables...")
    print("=" * 60)

    try:
        Base.metadata.create_all(bind=engine)

        print("\nAll tables created successfully!")
        print("\nTables created:")
        for table in Base.metadata.sorted_tables:
            print(f"   - {table.name}")
        print("=" * 60)

    except Exception as e:
        print(f"\nError creating tables: {str(e)}")
        raise
    finally:
        engine.dispose()


if __name__ == "__main__":
    create_tables()
