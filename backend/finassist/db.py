from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.settings import get_settings

settings = get_settings()
DATABASE_URL = settings.database_url

# Convert asyncpg URL to sync psycopg2 URL for the API
if DATABASE_URL.startswith("postgresql+asyncpg://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")


def _build_engine(database_url: str, timeout_s: int):
    """Every store call is bounded: busy timeout on SQLite, statement timeout on PostgreSQL"""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout_s},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout_s,
        connect_args={
            "connect_timeout": timeout_s,
            "options": f"-c statement_timeout={timeout_s * 1000}",
        },
    )


engine = _build_engine(DATABASE_URL, settings.store_timeout_s)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
