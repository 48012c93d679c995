"""Tests for document and summary data access against the test database."""

from datetime import timedelta
from uuid import uuid4

import pytest

from jargoyle.crud.document import document_crud, document_summary_crud
from jargoyle.crud.user import user_crud
from jargoyle.models.document import Document, DocumentSummary
from jargoyle.utils.datetime_utils import utc_now


async def _document(db_session, user, title, minutes_ago=0):
    document = Document(
        user_id=user.id,
        title=title,
        input_type="text",
        created_at=utc_now() - timedelta(minutes=minutes_ago),
    )
    db_session.add(document)
    await db_session.commit()
    return document


@pytest.mark.unit
class TestDocumentCRUD:
    @pytest.mark.asyncio
    async def test_new_document_defaults(self, db_session, test_user):
        created = await _document(db_session, test_user, "Lease")
        document = await document_crud.get_for_user(db_session, created.id, test_user.id)

        assert document.status == "pending"
        assert document.summary is None

    @pytest.mark.asyncio
    async def test_list_is_scoped_and_ordered(self, db_session, test_user):
        other = await user_crud.create(
            db_session,
            oauth_provider="keycloak",
            oauth_subject="kc-1",
            email="bob@example.com",
            display_name="Bob",
            logged_in_at=utc_now(),
        )
        await _document(db_session, test_user, "older", minutes_ago=10)
        await _document(db_session, test_user, "newer", minutes_ago=1)
        await _document(db_session, other, "someone else's")

        items, total = await document_crud.list_for_user(db_session, test_user.id, 0, 10)

        assert total == 2
        assert [d.title for d in items] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_list_for_user_without_documents(self, db_session, test_user):
        items, total = await document_crud.list_for_user(db_session, test_user.id, 0, 10)
        assert items == []
        assert total == 0

    @pytest.mark.asyncio
    async def test_get_for_wrong_owner_is_none(self, db_session, test_user):
        document = await _document(db_session, test_user, "Lease")

        assert await document_crud.get_for_user(db_session, document.id, uuid4()) is None
        assert await document_crud.get_for_user(db_session, document.id, test_user.id) is not None

    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, db_session, test_user):
        document = await _document(db_session, test_user, "Lease")

        updated = await document_crud.update_for_user(
            db_session, document.id, test_user.id, document_type="lease"
        )

        assert updated.title == "Lease"
        assert updated.document_type == "lease"

    @pytest.mark.asyncio
    async def test_update_missing_document(self, db_session, test_user):
        assert await document_crud.update_for_user(
            db_session, uuid4(), test_user.id, title="x"
        ) is None

    @pytest.mark.asyncio
    async def test_delete_removes_summary(self, db_session, test_user):
        document = await _document(db_session, test_user, "Lease")
        db_session.add(DocumentSummary(document_id=document.id, plain_summary="text"))
        await db_session.commit()
        document_id = document.id

        assert await document_crud.delete_for_user(db_session, document_id, test_user.id) is True
        assert await document_summary_crud.get_by_document_id(db_session, document_id) is None
        assert await document_crud.delete_for_user(db_session, document_id, test_user.id) is False


@pytest.mark.unit
class TestDocumentSummaryCRUD:
    @pytest.mark.asyncio
    async def test_get_and_delete_by_document(self, db_session, test_user):
        document = await _document(db_session, test_user, "Lease")
        db_session.add(
            DocumentSummary(document_id=document.id, plain_summary="Rent is due monthly.")
        )
        await db_session.commit()

        summary = await document_summary_crud.get_by_document_id(db_session, document.id)
        assert summary.plain_summary == "Rent is due monthly."

        await document_summary_crud.delete_by_document_id(db_session, document.id)

        assert await document_summary_crud.get_by_document_id(db_session, document.id) is None
        assert await document_crud.get_for_user(db_session, document.id, test_user.id) is not None
