from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from marktracker.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def _unicode_lower(value):
    if value is None:
        return None
    return str(value).lower()


def register_sqlite_functions(bind: Engine) -> None:
    """Replace SQLite's ASCII-only lower() so ilike folds every letter."""
    if bind.dialect.name != "sqlite":
        return

    @event.listens_for(bind, "connect")
    def _install_functions(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)
register_sqlite_functions(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def init_db() -> None:
    # Registers every model on Base.metadata before creating tables.
    from marktracker.models import complaint, mark, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def dispose_engine() -> None:
    engine.dispose()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
