"""
Document storage for request attachments.
Stores uploaded files in Cloudflare R2 or on local disk and hands back a ref;
the workflow only ever keeps refs.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    MAX_UPLOAD_BYTES,
    PRESIGNED_URL_EXPIRATION,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_SECRET_ACCESS_KEY,
    STORAGE_BACKEND,
    UPLOAD_DIR,
)
from ..exceptions import StorageError
from ..security_utils import sanitize_filename

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = ["pdf", "jpg", "jpeg", "png"]
ALLOWED_DOCUMENT_MIME_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
]


@dataclass
class DocumentUpload:
    """An uploaded file, read into memory by the router"""

    filename: str
    content_type: str
    content: bytes


def validate_document(upload: DocumentUpload) -> Tuple[bool, Optional[str]]:
    """
    Validate a document before it is stored.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(upload.content) > MAX_UPLOAD_BYTES:
        return False, (
            f"{upload.filename}: file size exceeds {MAX_UPLOAD_BYTES / (1024 * 1024):.0f}MB limit"
        )

    ext = upload.filename.lower().rsplit(".", 1)[-1] if "." in upload.filename else ""
    if ext not in ALLOWED_DOCUMENT_EXTENSIONS or upload.content_type not in ALLOWED_DOCUMENT_MIME_TYPES:
        return False, "Only PDF, JPG, JPEG, and PNG files are allowed"

    return True, None


def generate_document_key(filename: str) -> str:
    """
    Generate a unique storage key.

    Format: documents/{year}/{timestamp}-{uuid}.{ext}
    """
    safe_filename = sanitize_filename(filename)
    ext = safe_filename.rsplit(".", 1)[-1].lower() if "." in safe_filename else "bin"
    now = datetime.utcnow()
    return f"documents/{now.year}/{now.strftime('%Y%m%d%H%M%S')}-{uuid.uuid4()}.{ext}"


class DocumentStorage:
    """Blob-storage collaborator: store(file) -> ref, delete(ref), url_for(ref)"""

    def store(self, upload: DocumentUpload) -> str:
        raise NotImplementedError

    def delete(self, ref: str) -> None:
        raise NotImplementedError

    def url_for(self, ref: str) -> str:
        raise NotImplementedError


class LocalDocumentStorage(DocumentStorage):
    """Files under a directory on disk, served by the app at /uploads"""

    def __init__(self, root: Path = UPLOAD_DIR, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def _path(self, ref: str) -> Path:
        path = (self.root / ref).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Invalid document reference: {ref}")
        return path

    def store(self, upload: DocumentUpload) -> str:
        ref = generate_document_key(upload.filename)
        path = self._path(ref)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(upload.content)
        except OSError as e:
            logger.error(f"❌ Failed to store document {upload.filename}: {e}")
            raise StorageError("Failed to store document") from e
        logger.info(f"📤 Stored document {upload.filename} as {ref}")
        return ref

    def delete(self, ref: str) -> None:
        path = self._path(ref)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to delete document {ref}") from e

    def url_for(self, ref: str) -> str:
        return f"{self.url_prefix}/{ref}"


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


class R2DocumentStorage(DocumentStorage):
    """Private R2 bucket; documents are read back through presigned URLs"""

    def __init__(self, client=None, bucket: str = R2_BUCKET_NAME):
        self.client = client or get_r2_client()
        self.bucket = bucket

    def store(self, upload: DocumentUpload) -> str:
        key = generate_document_key(upload.filename)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=upload.content,
                ContentType=upload.content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Upload failed for {upload.filename}: {e}")
            raise StorageError("Failed to store document") from e
        logger.info(f"📤 Uploaded document {upload.filename} to R2 key {key}")
        return key

    def delete(self, ref: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=ref)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete document {ref}") from e

    def url_for(self, ref: str) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": ref, "ResponseContentDisposition": "inline"},
                ExpiresIn=PRESIGNED_URL_EXPIRATION,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ Failed to generate presigned URL for key {ref}: {e}")
            raise StorageError("Failed to generate document URL") from e


_storage: Optional[DocumentStorage] = None


def get_document_storage() -> DocumentStorage:
    """Dependency returning the configured storage backend"""
    global _storage
    if _storage is None:
        if STORAGE_BACKEND == "r2":
            _storage = R2DocumentStorage()
        else:
            _storage = LocalDocumentStorage()
        logger.info(f"📦 Document storage backend: {STORAGE_BACKEND}")
    return _storage
