"""Document Pydantic schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DocumentSummaryResponse(BaseModel):
    """Summary text plus the JSON-encoded key facts and flagged terms."""

    plain_summary: Optional[str] = Field(None, serialization_alias="plainSummary")
    key_facts: Optional[str] = Field(None, serialization_alias="keyFacts")
    flagged_terms: Optional[str] = Field(None, serialization_alias="flaggedTerms")

    class Config:
        from_attributes = True


class DocumentListItem(BaseModel):
    """Slim document row for list views."""

    id: UUID
    title: Optional[str] = None
    document_type: Optional[str] = Field(None, serialization_alias="documentType")
    input_type: str = Field(serialization_alias="inputType")
    status: str
    created_at: datetime = Field(serialization_alias="createdAt")

    class Config:
        from_attributes = True


class DocumentResponse(DocumentListItem):
    """Full document including its summary, if one has been generated."""

    original_filename: Optional[str] = Field(None, serialization_alias="originalFilename")
    error_message: Optional[str] = Field(None, serialization_alias="errorMessage")
    summary: Optional[DocumentSummaryResponse] = None


class DocumentPage(BaseModel):
    """One page of the current user's documents."""

    items: list[DocumentListItem]
    total: int
    page: int
    size: int


class DocumentUpdate(BaseModel):
    """Fields a user may change on a document."""

    title: Optional[str] = Field(None, max_length=255)
    document_type: Optional[str] = Field(None, max_length=100, alias="documentType")

    class Config:
        populate_by_name = True
