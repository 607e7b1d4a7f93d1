"""
HTTP routes for the portfolio backend API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from portfolio_backend.dependencies import (
    get_certificate_uploads,
    get_message_service,
    get_project_media_uploads,
)
from portfolio_backend.messages import MessageService, utc_timestamp
from portfolio_backend.schemas import (
    CertificateUploadResponse,
    ContactRequest,
    ContactResponse,
    HealthResponse,
    MessageOut,
    MessagesResponse,
    ProjectMediaUploadResponse,
    SignedUrlResponse,
    StatusResponse,
)
from portfolio_backend.security import require_bearer_token
from portfolio_backend.uploads import UploadResult, UploadService

logger = logging.getLogger(__name__)

router = APIRouter()
admin = [Depends(require_bearer_token)]


async def _store_upload(
    uploads: UploadService, owner_id: Optional[str], upload: Optional[UploadFile]
) -> UploadResult:
    if upload is None:
        return uploads.upload(owner_id, file_name=None, content_type=None, data=b"")
    # Reject on the multipart metadata so oversized or disallowed files are never buffered.
    uploads.validate(
        owner_id, upload.filename, upload.content_type or "", upload.size or 0
    )
    data = await upload.read()
    return await run_in_threadpool(
        uploads.upload,
        owner_id,
        file_name=upload.filename,
        content_type=upload.content_type,
        data=data,
    )


@router.post("/contact", response_model=ContactResponse)
def submit_contact(
    payload: ContactRequest,
    messages: MessageService = Depends(get_message_service),
):
    message_id = messages.submit(
        name=payload.name,
        email=payload.email,
        subject=payload.subject,
        message=payload.message,
    )
    return ContactResponse(message="Message sent successfully", messageId=message_id)


@router.get("/messages", response_model=MessagesResponse, dependencies=admin)
def list_messages(messages: MessageService = Depends(get_message_service)):
    return MessagesResponse(
        messages=[MessageOut(**m.as_dict()) for m in messages.list_all()]
    )


@router.post("/messages/{message_id}/read", response_model=StatusResponse, dependencies=admin)
def mark_message_read(
    message_id: str, messages: MessageService = Depends(get_message_service)
):
    messages.mark_read(message_id)
    return StatusResponse(message="Message marked as read")


@router.delete("/messages/{message_id}", response_model=StatusResponse, dependencies=admin)
def delete_message(
    message_id: str, messages: MessageService = Depends(get_message_service)
):
    messages.delete(message_id)
    return StatusResponse(message="Message deleted")


@router.post(
    "/upload-certificate", response_model=CertificateUploadResponse, dependencies=admin
)
async def upload_certificate(
    certificate: UploadFile | None = File(None),
    certificate_id: str | None = Form(None, alias="certificateId"),
    uploads: UploadService = Depends(get_certificate_uploads),
):
    result = await _store_upload(uploads, certificate_id, certificate)
    return CertificateUploadResponse(
        fileName=result.file_name, signedUrl=result.signed_url
    )


@router.get(
    "/certificate-image/{file_name}", response_model=SignedUrlResponse, dependencies=admin
)
def certificate_image(
    file_name: str, uploads: UploadService = Depends(get_certificate_uploads)
):
    return SignedUrlResponse(signedUrl=uploads.get_signed_url(file_name))


@router.post(
    "/upload-project-media",
    response_model=ProjectMediaUploadResponse,
    dependencies=admin,
)
async def upload_project_media(
    media: UploadFile | None = File(None),
    project_id: str | None = Form(None, alias="projectId"),
    uploads: UploadService = Depends(get_project_media_uploads),
):
    result = await _store_upload(uploads, project_id, media)
    return ProjectMediaUploadResponse(
        fileName=result.file_name,
        signedUrl=result.signed_url,
        mediaType=result.media_type,
    )


@router.get(
    "/project-media/{file_name}", response_model=SignedUrlResponse, dependencies=admin
)
def project_media(
    file_name: str, uploads: UploadService = Depends(get_project_media_uploads)
):
    return SignedUrlResponse(signedUrl=uploads.get_signed_url(file_name))


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", timestamp=utc_timestamp())
