from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import get_settings

settings = get_settings()


def build_engine(database_url: str, **kwargs) -> Engine:
    # SQLite needs check_same_thread=False for FastAPI
    connect_args = kwargs.pop("connect_args", {})
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, **connect_args}

    engine = create_engine(database_url, connect_args=connect_args, echo=False, **kwargs)

    if engine.dialect.name == "sqlite":
        # Share rows rely on ON DELETE CASCADE from videos
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
