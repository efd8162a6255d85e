"""
File service for chat attachments and job certificates.

Chat attachments are written to the local upload directory as <epoch-ms><ext>
and job certificates as <field>-<epoch-ms><ext>; both are served back under
/uploads. Attachment metadata is what clients embed as file_info in a later
send_message.
"""

import logging
import time
from pathlib import Path
from typing import Dict, Optional, Tuple

from fastapi import UploadFile, status

from api.schemas.upload import CertificateUploadResponse, UploadResponse
from core.async_utils import run_blocking
from core.config import settings
from core.exceptions import UploadFailure

logger = logging.getLogger(__name__)

UPLOAD_URL_PATH = "/uploads"


def upload_dir() -> Path:
    return Path(settings.file_upload.upload_dir)


def ensure_upload_dir() -> Path:
    path = upload_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def stored_filename(original_name: str, now_ms: Optional[int] = None) -> str:
    """<epoch-ms><ext>, keeping the original (lowercased) extension."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{now_ms}{Path(original_name).suffix.lower()}"


def public_url(filename: str) -> str:
    base = settings.file_upload.public_base_url.rstrip("/")
    return f"{base}{UPLOAD_URL_PATH}/{filename}"


class FileService:
    """Store-and-return-URL for chat attachments."""

    @staticmethod
    def validate_filename(original_name: Optional[str]) -> str:
        """
        Raises:
            UploadFailure: Missing name or extension not allowed
        """
        if not original_name or not original_name.strip():
            raise UploadFailure("No file uploaded")

        name = Path(original_name).name
        extension = Path(name).suffix.lower().lstrip(".")
        if not extension or extension not in settings.file_upload.allowed_extensions:
            raise UploadFailure(f"File type '.{extension}' is not allowed")
        return name

    @staticmethod
    async def _read_checked(file: UploadFile) -> Tuple[str, bytes]:
        """Apply the name, emptiness and size checks; returns (name, content)."""
        name = FileService.validate_filename(file.filename)
        content = await file.read()
        if not content:
            raise UploadFailure("Uploaded file is empty")

        max_size = settings.file_upload.max_upload_size
        if len(content) > max_size:
            raise UploadFailure(f"File exceeds maximum size of {max_size} bytes")
        return name, content

    @staticmethod
    async def _write(filename: str, content: bytes) -> None:
        target = ensure_upload_dir() / filename
        try:
            await run_blocking(target.write_bytes, content)
        except OSError as e:
            logger.error(f"Failed to write upload to {target}: {e}")
            raise UploadFailure(
                "Could not store file",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            ) from e

    @staticmethod
    async def save_upload(file: Optional[UploadFile]) -> UploadResponse:
        """
        Validate and write a chat attachment.

        Raises:
            UploadFailure: No file, bad extension or too large (400); write error (500)
        """
        if file is None:
            raise UploadFailure("No file uploaded")

        name, content = await FileService._read_checked(file)
        filename = stored_filename(name)
        await FileService._write(filename, content)

        logger.info(f"Stored upload {name} as {filename} ({len(content)} bytes)")
        return UploadResponse(url=public_url(filename), name=name, type=file.content_type)

    @staticmethod
    async def save_certificates(
        files: Dict[str, Optional[UploadFile]],
        engineer_id: Optional[str] = None,
    ) -> CertificateUploadResponse:
        """
        Store the job certificates an engineer submits from the portal.

        Each present field (invoice, icdc, bill) is stored as
        <field>-<epoch-ms><ext>. Every file is checked before any is written.

        Raises:
            UploadFailure: No certificate, bad extension or too large (400); write error (500)
        """
        present = {field: file for field, file in files.items() if file is not None}
        if not present:
            raise UploadFailure("No certificate uploaded")

        checked = {}
        for field, file in present.items():
            checked[field] = await FileService._read_checked(file)

        stored = {}
        for field, (name, content) in checked.items():
            filename = f"{field}-{stored_filename(name)}"
            await FileService._write(filename, content)
            stored[field] = UploadResponse(
                url=public_url(filename), name=name, type=present[field].content_type
            )

        logger.info(
            f"Stored certificates {sorted(stored)} for engineer {engineer_id or 'unknown'}"
        )
        return CertificateUploadResponse(
            status="Success",
            message="Certificates sent successfully",
            files=stored,
        )
