# packcontrol/database.py
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from dotenv import load_dotenv

load_dotenv()

from packcontrol.config import settings
from packcontrol.exceptions import StorageError

logger = logging.getLogger(__name__)

# 1. Database URL from settings (env / .env), SQLite by default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosted Postgres often hands out postgres://, SQLAlchemy needs postgresql://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Dialect-specific connection options
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def enable_sqlite_foreign_keys(bind):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if bind.dialect.name != "sqlite":
        return

    @event.listens_for(bind, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every model on Base.metadata before creating tables
    import packcontrol.models  # noqa: F401
    Base.metadata.create_all(bind=engine)

def commit_or_raise(db, action: str):
    """Commit, or roll back and raise StorageError naming the failed action."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Could not %s, transaction rolled back", action, exc_info=True)
        raise StorageError(f"Could not {action}: {exc.__class__.__name__}") from exc
