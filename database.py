from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import Settings

# SQLite needs this flag when sessions cross FastAPI's worker threads
connect_args = {"check_same_thread": False} if Settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(Settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
