"""Document API endpoints, scoped to the logged-in user."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jargoyle.config import settings
from jargoyle.core.database import get_db
from jargoyle.crud.document import document_crud
from jargoyle.dependencies import get_current_user
from jargoyle.models.user import User
from jargoyle.schemas.document import (
    DocumentListItem,
    DocumentPage,
    DocumentResponse,
    DocumentUpdate,
)

router = APIRouter()


@router.get("", response_model=DocumentPage)
async def list_documents(
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Page size"
    ),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's documents, newest first."""
    items, total = await document_crud.list_for_user(db, current_user.id, page, size)
    return DocumentPage(
        items=[DocumentListItem.model_validate(d) for d in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a document with its summary."""
    document = await document_crud.get_for_user(db, document_id, current_user.id)
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: UUID,
    update: DocumentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename or re-classify a document."""
    document = await document_crud.update_for_user(
        db,
        document_id,
        current_user.id,
        title=update.title,
        document_type=update.document_type,
    )
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


@router.delete("/{document_id}", status_code=204, response_class=Response)
async def delete_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a document and its summary."""
    deleted = await document_crud.delete_for_user(db, document_id, current_user.id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Document not found")
    return Response(status_code=204)
