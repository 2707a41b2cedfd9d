"""ORM base class — all record-store models inherit from Base."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base — shared MetaData registry for all models.

    The tables belong to the field-data store and are only read here; no
    migrations are generated from this metadata.
    """

    pass
