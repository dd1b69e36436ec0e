"""Utility modules"""

from .database import create_store_engine, create_session_factory, init_db

__all__ = ["create_store_engine", "create_session_factory", "init_db"]
