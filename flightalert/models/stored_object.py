"""
StoredObject model - key/blob table backing the local object store.

Mirrors the bucket layout used in production: one row per object key
(e.g. 'aircraft/a0b1c2.json'), body stored as raw bytes, optionally gzipped.
"""

from datetime import datetime, timezone

from sqlalchemy import String, LargeBinary, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from flightalert.models.base import Base


class StoredObject(Base):
    """One object in the local store."""

    __tablename__ = 'stored_objects'

    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment='Object key, e.g. aircraft/<icao24>.json'
    )

    body: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
        comment='Raw object bytes'
    )

    content_type: Mapped[str] = mapped_column(
        String(100),
        default='application/json',
        comment='MIME type supplied at upload'
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        comment='Last write timestamp'
    )

    def __repr__(self) -> str:
        return f'<StoredObject {self.key} ({len(self.body or b"")} bytes)>'
