"""
Attachment and certificate upload endpoints.
"""

from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile

from api.schemas.upload import CertificateUploadResponse, UploadResponse
from api.services.file_service import FileService
from core.rate_limit import UPLOAD_LIMIT, limiter

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
@limiter.limit(UPLOAD_LIMIT)
async def upload_file(
    request: Request,  # Must be first param for rate limiter
    file: Optional[UploadFile] = File(None),
):
    """
    Store a chat attachment and return {url, name, type}.

    The result is sent back by the client as file_info in send_message.
    """
    return await FileService.save_upload(file)


@router.post("/upload-certificates", response_model=CertificateUploadResponse)
@limiter.limit(UPLOAD_LIMIT)
async def upload_certificates(
    request: Request,
    invoice: Optional[UploadFile] = File(None),
    icdc: Optional[UploadFile] = File(None),
    bill: Optional[UploadFile] = File(None),
    engineer_id: Optional[str] = Form(None),
):
    """Engineer portal job submission: up to one invoice, ICDC and bill each."""
    return await FileService.save_certificates(
        {"invoice": invoice, "icdc": icdc, "bill": bill},
        engineer_id=engineer_id,
    )
