"""
Local-disk file storage with S3-style keys and presigned URLs.

Files live flat under FILE_STORAGE_PATH and are addressed by a generated key.
A presigned URL carries an HMAC-SHA256 token over "{key}:{expires_ms}" so the
download route can serve files without a bearer token.
"""
import hashlib
import hmac
import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from pathlib import Path
from urllib.parse import urlencode, urlparse

from django.conf import settings

from backend.core.exceptions import NotFound

logger = logging.getLogger(__name__)

DEFAULT_URL_EXPIRY = 3600
MAX_BASE_NAME_LENGTH = 50

MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.heic': 'image/heic',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}
DEFAULT_MIME_TYPE = 'application/octet-stream'

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def mime_type_for(file_name):
    return MIME_TYPES.get(os.path.splitext(file_name)[1].lower(), DEFAULT_MIME_TYPE)


def key_from_url(url):
    """The storage key is the last path segment of a storage URL"""
    return os.path.basename(urlparse(url).path)


@dataclass
class UploadResult:
    key: str
    storage_url: str
    file_size: int
    file_type: str


@dataclass
class PresignedUrl:
    url: str
    key: str
    expires_at: datetime


class FileStorage:
    """Read and write files by key under a base directory"""

    def __init__(self, base_path=None, base_url=None, secret=None):
        self.base_path = Path(base_path or settings.FILE_STORAGE_PATH)
        self.base_url = (base_url or settings.FILE_STORAGE_BASE_URL).rstrip('/')
        self.secret = secret or settings.FILE_STORAGE_SECRET
        self.base_path.mkdir(parents=True, exist_ok=True)

    def generate_key(self, file_name):
        base, ext = os.path.splitext(os.path.basename(file_name))
        safe_base = _UNSAFE_CHARS.sub('_', base)[:MAX_BASE_NAME_LENGTH]
        safe_ext = re.sub(r'[^A-Za-z0-9.]', '', ext)
        return f"{int(time.time() * 1000)}-{secrets.token_hex(8)}-{safe_base}{safe_ext}"

    def url_for(self, key):
        return f"{self.base_url}/{key}"

    def _path(self, key_or_url):
        key = key_from_url(key_or_url) if '/' in key_or_url else key_or_url
        if key in ('', '.', '..'):
            raise NotFound('File not found')
        return self.base_path / key

    def upload_file(self, content, file_name, file_type=None):
        key = self.generate_key(file_name)
        self._path(key).write_bytes(content)
        logger.debug(f"Stored {len(content)} bytes as {key}")
        return UploadResult(
            key=key,
            storage_url=self.url_for(key),
            file_size=len(content),
            file_type=file_type or mime_type_for(file_name),
        )

    def read_file(self, key_or_url):
        path = self._path(key_or_url)
        if not path.is_file():
            raise NotFound('File not found')
        return path.read_bytes()

    def delete_file(self, key_or_url):
        """Remove a stored file; a file that is already gone is ignored"""
        path = self._path(key_or_url)
        if path.is_file():
            path.unlink()
            logger.debug(f"Deleted stored file {path.name}")

    def file_exists(self, key_or_url):
        return self._path(key_or_url).is_file()

    def get_file_metadata(self, key_or_url):
        path = self._path(key_or_url)
        if not path.is_file():
            raise NotFound('File not found')
        stat = path.stat()
        return {
            'key': path.name,
            'file_size': stat.st_size,
            'last_modified': datetime.fromtimestamp(stat.st_mtime, tz=dt_timezone.utc),
            'file_type': mime_type_for(path.name),
        }

    def _sign(self, key, expires_ms):
        message = f"{key}:{expires_ms}".encode()
        return hmac.new(self.secret.encode(), message, hashlib.sha256).hexdigest()

    def _presign(self, key, operation, expires_in):
        expires_ms = int((time.time() + expires_in) * 1000)
        query = urlencode({
            'token': self._sign(key, expires_ms),
            'expires': expires_ms,
            'operation': operation,
        })
        return PresignedUrl(
            url=f"{self.url_for(key)}?{query}",
            key=key,
            expires_at=datetime.fromtimestamp(expires_ms / 1000, tz=dt_timezone.utc),
        )

    def generate_presigned_upload_url(self, file_name, expires_in=DEFAULT_URL_EXPIRY):
        return self._presign(self.generate_key(file_name), 'upload', expires_in)

    def generate_presigned_download_url(self, key_or_url, expires_in=DEFAULT_URL_EXPIRY):
        return self._presign(self._path(key_or_url).name, 'download', expires_in)

    def validate_presigned_url(self, key, token, expires):
        """True when the token matches the key and has not expired"""
        if not token or expires in (None, ''):
            return False
        try:
            expires_ms = int(expires)
        except (TypeError, ValueError):
            return False
        if time.time() * 1000 > expires_ms:
            return False
        return hmac.compare_digest(self._sign(key, expires_ms), str(token))
