# wms/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All warehouse tables (users, items, stock, documents, audit) inherit from this."""
    pass
