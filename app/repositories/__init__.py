"""Repository layer – all database access goes through here.

The insight services only see the ``RecordStore`` protocol; the
SQLAlchemy implementation is wired in by ``app.dependencies``.
"""

from app.repositories.record_store import RecordStore, SQLAlchemyRecordStore

__all__ = [
    "RecordStore",
    "SQLAlchemyRecordStore",
]
