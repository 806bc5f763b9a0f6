from typing import Generator

from sqlalchemy.orm import Session

from inventory_hub.core.db.session import get_session_factory


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function that provides a database session.

    Yields:
        Session: SQLAlchemy database session
    """
    db: Session = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
