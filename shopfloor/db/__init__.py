"""Database module."""

from shopfloor.db.database import SessionLocal, engine, init_db
from shopfloor.db.models import (
    Base,
    Item,
    LabelConfigurationRecord,
    Machine,
    OperatorAssignment,
    ProductionRecord,
    ReprintRequest,
    SequenceCounter,
    User,
)

__all__ = [
    "SessionLocal",
    "engine",
    "init_db",
    "Base",
    "User",
    "Item",
    "Machine",
    "OperatorAssignment",
    "SequenceCounter",
    "ProductionRecord",
    "ReprintRequest",
    "LabelConfigurationRecord",
]
