# tests/test_document_service.py
"""Booking documents: stored object and row stay in step."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import AsyncMock, patch
from sqlalchemy.exc import SQLAlchemyError

from conftest import build_db, build_session
from fleetdesk.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from fleetdesk.models.booking import Booking
from fleetdesk.models.booking_document import BookingDocument
from fleetdesk.services import document_service, storage_service
from fleetdesk.services.storage_service import StoredObject

PDF = b"%PDF-1.7 licence"


def make_booking(branch_id="B1"):
    return Booking(id="K1", booking_reference="BK-0042", vehicle_id="V1", branch_id=branch_id,
                   client_name="A. Client", contact="07700900000")


def stored_object():
    path = "booking-documents/K1/1717000000000.pdf"
    return StoredObject(bucket="booking-documents", path=path,
                        public_url=f"https://cdn/booking-documents/{path}", size=len(PDF))


class TestUpload:
    @pytest.mark.asyncio
    async def test_row_written_after_upload(self):
        db = build_db({Booking: [make_booking()]})
        with patch.object(storage_service, "upload_document",
                          new=AsyncMock(return_value=stored_object())):
            document = await document_service.upload_document(
                db, build_session(), "K1", PDF, "licence.pdf", "application/pdf", "license", " front and back ")

        assert isinstance(document, BookingDocument)
        assert document.booking_id == "K1"
        assert document.document_name == "licence.pdf"
        assert document.storage_path.endswith(".pdf")
        assert document.notes == "front and back"
        db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_commit_removes_stored_file(self):
        db = build_db({Booking: [make_booking()]})
        db.commit.side_effect = SQLAlchemyError("db down")
        remove = AsyncMock(return_value=True)
        with patch.object(storage_service, "upload_document", new=AsyncMock(return_value=stored_object())), \
                patch.object(storage_service, "remove_object", new=remove):
            with pytest.raises(SQLAlchemyError):
                await document_service.upload_document(
                    db, build_session(), "K1", PDF, "licence.pdf", "application/pdf", "license")

        db.rollback.assert_called_once()
        assert remove.await_args.args[1] == stored_object().path

    @pytest.mark.asyncio
    async def test_unknown_type_rejected_before_upload(self):
        db = build_db({Booking: [make_booking()]})
        upload = AsyncMock()
        with patch.object(storage_service, "upload_document", new=upload):
            with pytest.raises(ValidationError, match="document type"):
                await document_service.upload_document(
                    db, build_session(), "K1", PDF, "x.pdf", "application/pdf", "passport")
        upload.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_branch_denied(self):
        db = build_db({Booking: [make_booking("B2")]})
        upload = AsyncMock()
        with patch.object(storage_service, "upload_document", new=upload):
            with pytest.raises(PermissionDeniedError):
                await document_service.upload_document(
                    db, build_session(branch_id="B1"), "K1", PDF, "x.pdf", "application/pdf", "contract")
        upload.assert_not_called()


class TestListAndDelete:
    def test_other_branch_booking_is_hidden(self):
        db = build_db({Booking: [make_booking("B2")]})
        with pytest.raises(NotFoundError):
            document_service.list_documents(db, build_session(branch_id="B1"), "K1")

    @pytest.mark.asyncio
    async def test_delete_removes_row_then_file(self):
        document = BookingDocument(id="D1", booking_id="K1", document_type="contract",
                                   document_name="contract.pdf", document_url="https://cdn/x",
                                   storage_path="booking-documents/K1/1.pdf", file_size=10)
        db = build_db({BookingDocument: [document], Booking: [make_booking()]})
        remove = AsyncMock(return_value=False)
        with patch.object(storage_service, "remove_object", new=remove):
            await document_service.delete_document(db, build_session(), "D1")

        db.delete.assert_called_once_with(document)
        db.commit.assert_called_once()
        assert remove.await_args.args[1] == "booking-documents/K1/1.pdf"
