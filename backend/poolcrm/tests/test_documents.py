"""
Document storage and electronic signature tests.
"""
import io
import uuid
import pytest
from unittest.mock import Mock, patch
from fastapi import status
from fastapi.testclient import TestClient
from pypdf import PdfWriter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poolcrm.api.routes import documents as documents_routes
from poolcrm.services import IntegrationError
from poolcrm.api.main import app
from poolcrm.database.models import Document
from poolcrm.services.esignature import build_signers, count_pdf_pages, map_webhook_event, webhook_document_id
from poolcrm.services.storage import InvalidFileName, clean_file_name
from .test_base import BaseAPITest

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Pages >> endobj\n2 0 obj << /Type /Page >> endobj\n%%EOF"


def pdf_with_pages(count):
    writer = PdfWriter()
    for _ in range(count):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class DocumentTestMixin:

    def upload(self, client, headers, entity_type, entity_id, file_name="contract.pdf",
               content=PDF_BYTES, mime="application/pdf", document_type=None):
        data = {"document_type": document_type} if document_type else {}
        return client.post(
            f"/api/documents/{entity_type}/{entity_id}/upload",
            files={"file": (file_name, content, mime)},
            data=data,
            headers=headers
        )


class TestDocuments(BaseAPITest, DocumentTestMixin):
    """Test cases for upload, listing, download and deletion."""

    def test_upload_document(self, client, auth_headers, customer, storage):
        response = self.upload(client, auth_headers, "customers", customer["id"], file_name="photo.jpg",
                               content=b"jpeg-bytes", mime="image/jpeg")

        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        self.assert_fields(data, {
            "entity_type": "customers",
            "entity_id": customer["id"],
            "document_type": "other",
            "document_number": None,
            "file_name": "photo.jpg",
            "file_size": 10,
            "mime_type": "image/jpeg"
        })
        assert data["file_path"] == f"customers/acme-pools/{customer['id']}/photo.jpg"
        assert storage.read(data["file_path"]) == b"jpeg-bytes"

    def test_contract_documents_are_numbered(self, client, auth_headers, project):
        first = self.upload(client, auth_headers, "projects", project["id"], "contract.pdf",
                            document_type="contract").json()
        second = self.upload(client, auth_headers, "projects", project["id"], "proposal.pdf",
                             document_type="proposal").json()
        other = self.upload(client, auth_headers, "projects", project["id"], "site.pdf").json()

        assert first["document_number"] == 1
        assert second["document_number"] == 2
        assert other["document_number"] is None
        assert client.get("/api/company", headers=auth_headers).json()["next_document_number"] == 3

    def test_duplicate_file_name(self, client, auth_headers, customer):
        self.upload(client, auth_headers, "customers", customer["id"])

        response = self.upload(client, auth_headers, "customers", customer["id"])

        self.assert_conflict(response)

    def test_file_too_large(self, client, auth_headers, customer, monkeypatch):
        monkeypatch.setattr(documents_routes, "MAX_UPLOAD_BYTES", 8)

        response = self.upload(client, auth_headers, "customers", customer["id"])

        self.assert_error_response(response, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    def test_storage_rejects_file_name(self, client, auth_headers, customer, storage, db_session, monkeypatch):
        def reject(key, data):
            raise InvalidFileName("Invalid file name")
        monkeypatch.setattr(storage, "save", reject)

        response = self.upload(client, auth_headers, "customers", customer["id"])

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "Invalid file name")
        assert db_session.query(Document).count() == 0

    def test_failed_commit_removes_stored_file(self, test_engine, auth_headers, customer, storage, db_session):
        client = TestClient(app, raise_server_exceptions=False)

        with patch.object(Session, "commit", side_effect=SQLAlchemyError("disk full")):
            response = self.upload(client, auth_headers, "customers", customer["id"])

        self.assert_error_response(response, status.HTTP_500_INTERNAL_SERVER_ERROR)
        assert not storage.exists(f"customers/acme-pools/{customer['id']}/contract.pdf")
        assert db_session.query(Document).count() == 0

    def test_invalid_entity_type(self, client, auth_headers):
        response = self.upload(client, auth_headers, "boats", uuid.uuid4())

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "Invalid entity type")

    def test_unknown_entity(self, client, auth_headers):
        response = self.upload(client, auth_headers, "projects", uuid.uuid4())

        self.assert_not_found(response)

    def test_entity_from_other_company(self, client, other_headers, customer):
        response = self.upload(client, other_headers, "customers", customer["id"])

        self.assert_not_found(response)

    def test_list_documents(self, client, auth_headers, customer, project):
        self.upload(client, auth_headers, "customers", customer["id"], "a.pdf")
        self.upload(client, auth_headers, "customers", customer["id"], "b.pdf")
        self.upload(client, auth_headers, "projects", project["id"], "c.pdf")

        response = client.get(f"/api/documents/customers/{customer['id']}", headers=auth_headers)

        self.assert_success_response(response)
        data = response.json()
        assert data["total"] == 2
        assert {d["file_name"] for d in data["documents"]} == {"a.pdf", "b.pdf"}

    def test_download(self, client, auth_headers, customer):
        document = self.upload(client, auth_headers, "customers", customer["id"]).json()

        response = client.get(f"/api/documents/{document['id']}/download", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.content == PDF_BYTES
        assert response.headers["content-type"] == "application/pdf"

    def test_download_from_other_company(self, client, auth_headers, other_headers, customer):
        document = self.upload(client, auth_headers, "customers", customer["id"]).json()

        response = client.get(f"/api/documents/{document['id']}/download", headers=other_headers)

        self.assert_not_found(response)

    def test_delete_document(self, client, auth_headers, customer, storage):
        document = self.upload(client, auth_headers, "customers", customer["id"]).json()

        response = client.delete(f"/api/documents/{document['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not storage.exists(document["file_path"])
        assert client.get(f"/api/documents/customers/{customer['id']}", headers=auth_headers).json()["total"] == 0


class TestSendForSignature(BaseAPITest, DocumentTestMixin):
    """Test cases for sending contracts for e-signature."""

    signature_request = {"recipient_email": "pat@example.com", "recipient_name": "Pat Poolman"}

    def test_send_for_signature(self, client, auth_headers, project):
        document = self.upload(client, auth_headers, "projects", project["id"], document_type="contract").json()
        esign = Mock()
        esign.send_for_signature.return_value = {"contract_id": "bs-123", "status": "sent", "signers": []}

        with patch.object(documents_routes, "get_esignature_client", return_value=esign):
            response = client.post(f"/api/documents/{document['id']}/send-for-signature",
                                   json=self.signature_request, headers=auth_headers)

        self.assert_success_response(response)
        data = response.json()
        self.assert_fields(data, {
            "esign_contract_id": "bs-123",
            "esign_status": "sent",
            "esign_sender_email": "owner@example.com",
            "esign_completed_at": None
        })
        assert data["esign_sent_at"] is not None
        args, kwargs = esign.send_for_signature.call_args
        assert args == (PDF_BYTES, "contract.pdf")
        assert kwargs["recipient_email"] == "pat@example.com"
        assert kwargs["company_signer_email"] == "owner@example.com"

    def test_only_pdfs(self, client, auth_headers, project):
        document = self.upload(client, auth_headers, "projects", project["id"], "notes.txt",
                               content=b"hello", mime="text/plain").json()

        response = client.post(f"/api/documents/{document['id']}/send-for-signature",
                               json=self.signature_request, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "Only PDF")

    def test_provider_not_configured(self, client, auth_headers, project, monkeypatch):
        monkeypatch.delenv("BOLDSIGN_API_KEY", raising=False)
        document = self.upload(client, auth_headers, "projects", project["id"]).json()

        response = client.post(f"/api/documents/{document['id']}/send-for-signature",
                               json=self.signature_request, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_provider_failure(self, client, auth_headers, project):
        document = self.upload(client, auth_headers, "projects", project["id"]).json()
        esign = Mock()
        esign.send_for_signature.side_effect = IntegrationError("boldsign", "upstream error", 500)

        with patch.object(documents_routes, "get_esignature_client", return_value=esign):
            response = client.post(f"/api/documents/{document['id']}/send-for-signature",
                                   json=self.signature_request, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_502_BAD_GATEWAY)
        data = client.get(f"/api/documents/projects/{project['id']}", headers=auth_headers).json()
        assert data["documents"][0]["esign_status"] is None


class TestSignatureHelpers:
    """Unit tests for signer and webhook helpers."""

    def test_company_signer_added_when_different(self):
        signers = build_signers("pat@example.com", "Pat", 2, "owner@example.com", "Olivia")

        assert [s["emailAddress"] for s in signers] == ["pat@example.com", "owner@example.com"]
        assert [s["signerOrder"] for s in signers] == [1, 2]
        assert all(f["pageNumber"] == 2 for f in signers[0]["formFields"])

    def test_company_signer_skipped_when_same_person(self):
        signers = build_signers("pat@example.com", "Pat", 1, "PAT@example.com")

        assert len(signers) == 1

    def test_map_webhook_event(self):
        assert map_webhook_event({"event": {"eventType": "Completed"}}) == "completed"
        assert map_webhook_event({"event": "DocumentDeclined"}) == "declined"
        assert map_webhook_event({"eventType": "Viewed"}) == "delivered"
        assert map_webhook_event({"event": {"eventType": "Verification"}}) is None
        assert map_webhook_event({"event": {"eventType": "SomethingNew"}}) is None

    def test_webhook_document_id(self):
        assert webhook_document_id({"data": {"documentId": "abc"}}) == "abc"
        assert webhook_document_id({"documentId": "xyz"}) == "xyz"
        assert webhook_document_id({}) is None

    def test_clean_file_name(self):
        assert clean_file_name("C:\\Users\\pat\\contract.pdf") == "contract.pdf"
        for bad in ("", "..", "folder/"):
            with pytest.raises(InvalidFileName):
                clean_file_name(bad)

    def test_count_pdf_pages(self):
        assert count_pdf_pages(pdf_with_pages(3)) == 3
        assert count_pdf_pages(b"not a pdf at all") == 1

    def test_signature_fields_on_last_page(self):
        pages = count_pdf_pages(pdf_with_pages(4))

        signers = build_signers("pat@example.com", "Pat", pages, "owner@example.com", "Olivia")

        assert all(f["pageNumber"] == 4 for s in signers for f in s["formFields"])
