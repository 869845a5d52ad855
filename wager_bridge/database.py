from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from wager_bridge.config import settings


def build_engine(db_url: str):
    if db_url.startswith("sqlite"):
        # in-memory sqlite is per-connection; share one across the event loop
        poolclass = StaticPool if db_url in ("sqlite://", "sqlite:///:memory:") else None
        kwargs = {"connect_args": {"check_same_thread": False}}
        if poolclass:
            kwargs["poolclass"] = poolclass
        return create_engine(db_url, **kwargs)
    return create_engine(db_url)


engine = build_engine(settings.db_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
