from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from .config import settings

engine = create_engine(
    settings.resolved_database_url,
    # check_same_thread=False is required for SQLite under FastAPI worker threads
    connect_args={"check_same_thread": False}
    if settings.resolved_database_url.startswith("sqlite")
    else {},
)


@event.listens_for(engine, "connect")
def enable_sqlite_fk(dbapi_connection, _):
    if not settings.resolved_database_url.startswith("sqlite"):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db() -> None:
    """Create missing tables (used by the app on startup and by scripts)."""
    from .models.generated import Base
    Base.metadata.create_all(bind=engine)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
