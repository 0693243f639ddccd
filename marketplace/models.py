import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.sql import func

from .database import Base


def generate_document_id():
    """Generate a random document ID (hex, no dashes) like a hosted document store would"""
    return uuid.uuid4().hex


class Document(Base):
    """One schemaless document inside a named collection."""

    __tablename__ = "documents"

    collection = Column(String(100), primary_key=True)
    id = Column(String(128), primary_key=True, default=generate_document_id)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
