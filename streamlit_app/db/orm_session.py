from contextlib import contextmanager
from db.base import get_session_factory
from db.record_store import RecordStore


@contextmanager
def get_session():
    SessionLocal = get_session_factory()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def get_store():
    """Session-backed RecordStore; every store call commits on its own."""
    with get_session() as db:
        yield RecordStore(db)
