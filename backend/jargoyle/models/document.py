"""Document and DocumentSummary models.

Documents are produced by the summarization pipeline; this backend only reads,
renames and deletes them on behalf of their owner.
"""

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from jargoyle.core.database import Base
from jargoyle.core.db_types import UUID
from jargoyle.utils.datetime_utils import utc_now


class DocumentStatus(str, enum.Enum):
    """Processing status of a document."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Document(Base):
    """An uploaded or pasted document owned by one user."""

    __tablename__ = "documents"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=True)
    document_type = Column(String(100), nullable=True)  # LLM-classified, e.g. 'lease'
    input_type = Column(String(20), nullable=False, default="text")  # 'text' or 'file'
    original_filename = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=DocumentStatus.PENDING.value)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="documents")
    summary = relationship(
        "DocumentSummary",
        back_populates="document",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Document {self.id} status={self.status}>"


class DocumentSummary(Base):
    """Structured summary generated for a document."""

    __tablename__ = "document_summaries"

    id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    document_id = Column(
        UUID(),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    plain_summary = Column(Text, nullable=True)
    key_facts = Column(Text, nullable=True)  # JSON text
    flagged_terms = Column(Text, nullable=True)  # JSON text
    generated_at = Column(DateTime, default=utc_now, nullable=False)

    document = relationship("Document", back_populates="summary")
