import uuid

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models in this application inherit from this base class to provide
    consistent table metadata across the database schema.
    """

    pass


def new_id() -> str:
    """Opaque primary key for new rows."""
    return uuid.uuid4().hex
