"""
Database connection and session management
"""
import logging
import os
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from catflap.core.config import DATABASE_URL

logger = logging.getLogger(__name__)


def _engine_for(url: str):
    connect_args = {}
    parsed = make_url(url)
    if parsed.get_backend_name() == 'sqlite':
        # FastAPI runs sync endpoints in a threadpool
        connect_args['check_same_thread'] = False
        if parsed.database and parsed.database != ':memory:':
            os.makedirs(os.path.dirname(os.path.abspath(parsed.database)), exist_ok=True)
    return create_engine(url, echo=False, connect_args=connect_args)


# Create engine
engine = _engine_for(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database - create tables"""
    from catflap.models.events import Base, EventRecord  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
