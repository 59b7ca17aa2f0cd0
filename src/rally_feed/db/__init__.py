"""Database package."""

from .session import Base, SessionLocal

__all__ = ["Base", "SessionLocal"]
