from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from inventory_hub.core.config_file import get_settings

Base = declarative_base()


@lru_cache
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    settings = get_settings()
    return create_engine(
        settings.database_url,
        echo=settings.DEBUG,
        future=True,
        pool_pre_ping=True,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    """Session factory bound to the process engine; bus handlers open one session per message."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=get_engine(),
    )
