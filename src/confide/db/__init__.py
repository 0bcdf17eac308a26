"""Database configuration and utilities."""

from .session import Base, create_tables, get_engine, get_sessionmaker

__all__ = ["Base", "create_tables", "get_engine", "get_sessionmaker"]
