import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from rently.configs import DB_URI, DEBUG

logger = logging.getLogger(__name__)
# Only use client_encoding for PostgreSQL, not SQLite
engine_kwargs = {'echo': DEBUG}
if DB_URI == 'sqlite:///:memory:':
    # one shared connection so every thread sees the same in-memory database
    engine_kwargs['connect_args'] = {'check_same_thread': False}
    engine_kwargs['poolclass'] = StaticPool
elif not DB_URI.startswith('sqlite'):
    engine_kwargs['client_encoding'] = 'utf8'
engine = create_engine(DB_URI, **engine_kwargs)
SessionLocal = sessionmaker(
    bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
session = scoped_session(SessionLocal)

class RentlyBase:
    @classmethod
    def get_many(cls, db_session=None, offset=None, limit=None):
        db_session = db_session or session
        return db_session.query(cls).order_by(cls.id).offset(offset).limit(limit).all()

Base = declarative_base(cls=RentlyBase)

def get_db():
    """Request-scoped session for the FastAPI dependency system."""
    db_session = SessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()

def init(engine_to_init=engine):
    try:
        Base.metadata.create_all(bind=engine_to_init)
        return session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
