from wellsync.db.base import Base
from wellsync.db.session import init_db, make_engine, make_session_maker

__all__ = ["Base", "init_db", "make_engine", "make_session_maker"]
