"""
Document API routes.

Files are attached to customers, projects, inventory items, subcontractors
or employees and stored under ``{entity_type}/{company_id}/{entity_id}/``.
Contracts can be sent out for electronic signature.
"""
import logging
import mimetypes
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    Company, Customer, Document, DocumentType, Employee, EntityType,
    InventoryItem, Project, SignatureStatus, Subcontractor
)
from ...schemas.document import DocumentResponse, DocumentsListResponse, SignatureRequest
from ...auth.dependencies import (
    get_current_user, get_company_context, get_company_filter, CurrentUser, CompanyFilter
)
from ...services import IntegrationError, IntegrationNotConfigured
from ...services.esignature import ESignatureClient
from ...services.storage import (
    DocumentStorage, InvalidFileName, MAX_UPLOAD_BYTES, document_key, get_storage
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["Documents"])

ENTITY_MODELS = {
    EntityType.CUSTOMERS: Customer,
    EntityType.PROJECTS: Project,
    EntityType.INVENTORY: InventoryItem,
    EntityType.SUBCONTRACTORS: Subcontractor,
    EntityType.EMPLOYEES: Employee,
}
NUMBERED_TYPES = {DocumentType.CONTRACT, DocumentType.PROPOSAL, DocumentType.CHANGE_ORDER}


def get_esignature_client() -> ESignatureClient:
    return ESignatureClient.from_env()


def _entity_type(value: str) -> EntityType:
    try:
        return EntityType(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid entity type"
        )


def _check_entity(db: Session, company_filter: CompanyFilter, entity_type: EntityType, entity_id: UUID):
    company_filter.get(db, ENTITY_MODELS[entity_type], entity_id, "Entity not found")


# PUBLIC_INTERFACE
@router.get("/{document_id}/download",
            summary="Download document",
            description="Stream a stored document.")
async def download_document(
    document_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    storage: DocumentStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    document = company_filter.get(db, Document, document_id, "Document not found")
    if not storage.exists(document.file_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found in storage")
    return FileResponse(
        storage.local_path(document.file_path),
        media_type=document.mime_type or "application/octet-stream",
        filename=document.file_name
    )


# PUBLIC_INTERFACE
@router.get("/{entity_type}/{entity_id}", response_model=DocumentsListResponse,
            summary="List documents",
            description="List documents attached to a record.")
async def list_documents(
    entity_type: str,
    entity_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    kind = _entity_type(entity_type)
    _check_entity(db, company_filter, kind, entity_id)

    documents = company_filter.filter_query(db.query(Document), Document).filter(
        Document.entity_type == kind,
        Document.entity_id == entity_id
    ).order_by(Document.created_at.desc()).all()
    return DocumentsListResponse(
        documents=[DocumentResponse.model_validate(d) for d in documents],
        total=len(documents)
    )


# PUBLIC_INTERFACE
@router.post("/{entity_type}/{entity_id}/upload", response_model=DocumentResponse,
             status_code=status.HTTP_201_CREATED,
             summary="Upload document",
             description="Upload a file (max 50 MB) for a record. Contracts, proposals and change orders "
                         "receive the company's next document number.")
async def upload_document(
    entity_type: str,
    entity_id: UUID,
    file: UploadFile = File(...),
    document_type: DocumentType = Form(DocumentType.OTHER),
    company: Company = Depends(get_company_context),
    company_filter: CompanyFilter = Depends(get_company_filter),
    storage: DocumentStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    kind = _entity_type(entity_type)
    _check_entity(db, company_filter, kind, entity_id)

    try:
        key = document_key(kind.value, company.company_id, entity_id, file.filename)
    except InvalidFileName as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if db.query(Document).filter(Document.file_path == key).first() or storage.exists(key):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A file with this name already exists"
        )

    data = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File exceeds the 50 MB limit"
        )

    document_number = None
    if document_type in NUMBERED_TYPES:
        document_number = company.next_document_number
        company.next_document_number = document_number + 1

    file_name = key.rsplit("/", 1)[-1]
    document = Document(
        company_id=company.company_id,
        entity_type=kind,
        entity_id=entity_id,
        document_type=document_type,
        document_number=document_number,
        file_name=file_name,
        file_path=key,
        file_size=len(data),
        mime_type=file.content_type or mimetypes.guess_type(file_name)[0]
    )
    db.add(document)
    db.flush()
    try:
        storage.save(key, data)
    except InvalidFileName as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    try:
        db.commit()
    except SQLAlchemyError:
        logger.error("Upload of %s failed to commit; removing stored file", key)
        storage.delete(key)
        raise
    db.refresh(document)
    return DocumentResponse.model_validate(document)


# PUBLIC_INTERFACE
@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete document")
async def delete_document(
    document_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    storage: DocumentStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    document = company_filter.get(db, Document, document_id, "Document not found")
    storage.delete(document.file_path)
    db.delete(document)
    db.commit()


# PUBLIC_INTERFACE
@router.post("/{document_id}/send-for-signature", response_model=DocumentResponse,
             summary="Send for signature",
             description="Send a stored PDF to the customer for electronic signature. "
                         "The sending user countersigns when their email differs from the customer's.")
def send_for_signature(
    document_id: UUID,
    request: SignatureRequest,
    current_user: CurrentUser = Depends(get_current_user),
    company_filter: CompanyFilter = Depends(get_company_filter),
    storage: DocumentStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    document = company_filter.get(db, Document, document_id, "Document not found")
    is_pdf = (document.mime_type == "application/pdf") or document.file_name.lower().endswith(".pdf")
    if not is_pdf:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF documents can be sent for signature"
        )
    if not storage.exists(document.file_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found in storage")

    try:
        client = get_esignature_client()
        result = client.send_for_signature(
            storage.read(document.file_path),
            document.file_name,
            recipient_email=request.recipient_email,
            recipient_name=request.recipient_name,
            subject=request.subject,
            message=request.message,
            company_signer_email=current_user.email,
        )
    except IntegrationNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    document.esign_contract_id = result["contract_id"]
    document.esign_status = SignatureStatus.SENT
    document.esign_sent_at = datetime.now(timezone.utc)
    document.esign_completed_at = None
    document.esign_sender_email = current_user.email
    db.commit()
    db.refresh(document)
    logger.info("Document %s sent for signature", document.id)
    return DocumentResponse.model_validate(document)
