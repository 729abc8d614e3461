"""
Declarative base.

All ORM models inherit from Base so Base.metadata holds the full schema.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass
