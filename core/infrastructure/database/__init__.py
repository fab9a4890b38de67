"""Database engine and session factory."""
from .config import close_database, create_engine, create_session_factory, init_database

__all__ = ["create_engine", "create_session_factory", "init_database", "close_database"]
