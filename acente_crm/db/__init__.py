"""Database module."""

from acente_crm.db.database import SessionLocal, engine, init_db, session_factory_for
from acente_crm.db.models import Base, Customer, CustomerProfile

__all__ = [
    "SessionLocal",
    "engine",
    "init_db",
    "session_factory_for",
    "Base",
    "Customer",
    "CustomerProfile",
]
