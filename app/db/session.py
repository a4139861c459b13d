from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings

database_url = settings.DATABASE_URL

if database_url.startswith("sqlite"):
    # SQLite connections are shared between FastAPI worker threads
    engine = create_engine(
        database_url,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.SQLITE_BUSY_TIMEOUT,
        },
        echo=False,
    )
else:
    # pool_recycle: recycle connections every hour (prevents server-side timeouts)
    # pool_pre_ping: test connections before use (prevents stale connections)
    engine = create_engine(
        database_url,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,
        pool_timeout=30,
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
