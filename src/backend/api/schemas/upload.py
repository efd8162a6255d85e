"""
Upload schemas.
"""

from typing import Dict, Optional

from core.schema_base import HTTPSchemaModel


class UploadResponse(HTTPSchemaModel):
    """Stored attachment; embedded as file_info in a later send_message."""

    url: str
    name: str
    type: Optional[str] = None


class CertificateUploadResponse(HTTPSchemaModel):
    """Result of a portal certificate submission, keyed by form field."""

    status: str
    message: str
    files: Dict[str, UploadResponse] = {}
