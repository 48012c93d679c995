"""CRUD operations for documents and their summaries.

Every document query is scoped by the owning user's id; a document that belongs
to somebody else is indistinguishable from one that does not exist.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jargoyle.models.document import Document, DocumentSummary


class DocumentCRUD:
    """CRUD operations for Document model."""

    @staticmethod
    async def list_for_user(
        db: AsyncSession, user_id: UUID, page: int, size: int
    ) -> tuple[list[Document], int]:
        """Return one page of the user's documents, newest first, and the total count."""
        total = await db.scalar(
            select(func.count()).select_from(Document).where(Document.user_id == user_id)
        )
        result = await db.execute(
            select(Document)
            .where(Document.user_id == user_id)
            .order_by(Document.created_at.desc(), Document.id)
            .offset(page * size)
            .limit(size)
        )
        return list(result.scalars().all()), total or 0

    @staticmethod
    async def get_for_user(
        db: AsyncSession, document_id: UUID, user_id: UUID
    ) -> Optional[Document]:
        """Get a document (with its summary) if the user owns it."""
        result = await db.execute(
            select(Document)
            .options(selectinload(Document.summary))
            .where(Document.id == document_id, Document.user_id == user_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def update_for_user(
        db: AsyncSession,
        document_id: UUID,
        user_id: UUID,
        title: Optional[str] = None,
        document_type: Optional[str] = None,
    ) -> Optional[Document]:
        """Rename or re-classify a document. Fields left as None are unchanged."""
        document = await DocumentCRUD.get_for_user(db, document_id, user_id)
        if document is None:
            return None

        if title is not None:
            document.title = title
        if document_type is not None:
            document.document_type = document_type

        await db.commit()
        return document

    @staticmethod
    async def delete_for_user(db: AsyncSession, document_id: UUID, user_id: UUID) -> bool:
        """Delete a document and its summary. Returns False if nothing matched."""
        await db.execute(
            delete(DocumentSummary).where(
                DocumentSummary.document_id.in_(
                    select(Document.id).where(
                        Document.id == document_id, Document.user_id == user_id
                    )
                )
            )
        )
        result = await db.execute(
            delete(Document).where(Document.id == document_id, Document.user_id == user_id)
        )
        await db.commit()
        return result.rowcount > 0


class DocumentSummaryCRUD:
    """CRUD operations for DocumentSummary model."""

    @staticmethod
    async def get_by_document_id(
        db: AsyncSession, document_id: UUID
    ) -> Optional[DocumentSummary]:
        """Get the summary generated for a document."""
        result = await db.execute(
            select(DocumentSummary).where(DocumentSummary.document_id == document_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_by_document_id(db: AsyncSession, document_id: UUID) -> None:
        """Drop a document's summary, e.g. before regenerating it."""
        await db.execute(
            delete(DocumentSummary).where(DocumentSummary.document_id == document_id)
        )
        await db.commit()


# Create singleton instances
document_crud = DocumentCRUD()
document_summary_crud = DocumentSummaryCRUD()
