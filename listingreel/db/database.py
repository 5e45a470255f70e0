"""
Database connection using SQLAlchemy.

PostgreSQL in production; any SQLAlchemy URL works (tests use SQLite).
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

from listingreel import config


def make_engine(url: str = config.DATABASE_URL, **kwargs):
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency for FastAPI endpoints."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables, plus the updated_at trigger on PostgreSQL."""
    from listingreel.db.models import Video  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    if bind.dialect.name != "postgresql":
        return

    # Automatic updated_at (ON UPDATE behavior)
    with bind.connect() as conn:
        conn.execute(text("""
            CREATE OR REPLACE FUNCTION update_modified_column()
            RETURNS TRIGGER AS $$
            BEGIN
                NEW.updated_at = NOW();
                RETURN NEW;
            END;
            $$ LANGUAGE plpgsql;
        """))

        conn.execute(text("""
            DO $$
            BEGIN
                IF NOT EXISTS (
                    SELECT 1 FROM pg_trigger WHERE tgname = 'set_video_timestamp'
                ) THEN
                    CREATE TRIGGER set_video_timestamp
                    BEFORE UPDATE ON videos
                    FOR EACH ROW
                    EXECUTE FUNCTION update_modified_column();
                END IF;
            END $$;
        """))
        conn.commit()
