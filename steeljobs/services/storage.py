"""
File storage backends.

SupabaseStorage talks to the Storage REST API with the service role key;
LocalStorage writes under a directory and is used in development and tests.
"""
import logging
import os
from typing import Protocol
from urllib.parse import quote

import aiofiles
import httpx

from ..config import get_settings
from ..exceptions import TransientServiceError, ResumeNotFoundError

logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool = True) -> str: ...

    async def download(self, path: str) -> bytes: ...

    async def delete(self, path: str) -> None: ...

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str: ...


class SupabaseStorage:
    def __init__(self, supabase_url: str, service_key: str, bucket: str, timeout: float = 120.0):
        if not supabase_url or not service_key:
            raise TransientServiceError("Supabase configuration missing")
        self.base_url = supabase_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout

    def _headers(self, **extra) -> dict:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        headers.update(extra)
        return headers

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path)}"

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool = True) -> str:
        # Content-Length must be explicit or the storage API rejects large bodies
        headers = self._headers(**{
            "Content-Type": content_type or "application/octet-stream",
            "Content-Length": str(len(data)),
            "x-upsert": "true" if upsert else "false",
        })
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self._object_url(path), headers=headers, content=data)
        except httpx.TimeoutException:
            raise TransientServiceError("upload failed: storage timeout")
        except httpx.HTTPError as e:
            raise TransientServiceError(f"upload failed: {e}")

        if response.status_code not in (200, 201):
            error_detail = response.text[:500] if response.text else "Unknown error"
            raise TransientServiceError(f"upload failed ({response.status_code}): {error_detail}")
        return self.public_url(path)

    async def download(self, path: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self._object_url(path), headers=self._headers())
        except httpx.HTTPError as e:
            raise TransientServiceError(f"download failed: {e}")
        if response.status_code in (400, 404):
            raise ResumeNotFoundError("resume file not found; re-upload")
        if response.status_code != 200:
            raise TransientServiceError(f"download failed ({response.status_code})")
        return response.content

    async def delete(self, path: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_url}/storage/v1/object/{self.bucket}",
                    headers=self._headers(**{"Content-Type": "application/json"}),
                    json={"prefixes": [path]},
                )
        except httpx.HTTPError as e:
            raise TransientServiceError(f"delete failed: {e}")
        if response.status_code not in (200, 204):
            raise TransientServiceError(f"delete failed ({response.status_code})")

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/storage/v1/object/sign/{self.bucket}/{quote(path)}",
                    headers=self._headers(),
                    json={"expiresIn": ttl_seconds},
                )
        except httpx.HTTPError as e:
            raise TransientServiceError(f"signing failed: {e}")
        if response.status_code == 404:
            raise ResumeNotFoundError("resume file not found; re-upload")
        if response.status_code != 200:
            raise TransientServiceError(f"signing failed ({response.status_code})")
        signed = response.json().get("signedURL") or response.json().get("signedUrl")
        return f"{self.base_url}/storage/v1{signed}"


class LocalStorage:
    def __init__(self, root_dir: str, base_url: str = "/uploads"):
        self.root_dir = os.path.abspath(root_dir)
        self.base_url = base_url.rstrip("/")

    def _full_path(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.root_dir, path))
        if not full.startswith(self.root_dir + os.sep):
            raise ValueError(f"Path escapes storage root: {path}")
        return full

    async def upload(self, path: str, data: bytes, content_type: str, upsert: bool = True) -> str:
        full = self._full_path(path)
        if not upsert and os.path.exists(full):
            raise TransientServiceError("upload failed: object already exists")
        os.makedirs(os.path.dirname(full), exist_ok=True)
        async with aiofiles.open(full, "wb") as f:
            await f.write(data)
        return f"{self.base_url}/{path}"

    async def download(self, path: str) -> bytes:
        full = self._full_path(path)
        if not os.path.exists(full):
            raise ResumeNotFoundError("resume file not found; re-upload")
        async with aiofiles.open(full, "rb") as f:
            return await f.read()

    async def delete(self, path: str) -> None:
        full = self._full_path(path)
        if os.path.exists(full):
            os.remove(full)

    async def create_signed_url(self, path: str, ttl_seconds: int) -> str:
        if not os.path.exists(self._full_path(path)):
            raise ResumeNotFoundError("resume file not found; re-upload")
        return f"{self.base_url}/{path}"


def get_storage() -> StorageBackend:
    settings = get_settings()
    if settings.storage_backend == "local":
        return LocalStorage(settings.uploads_dir)
    return SupabaseStorage(
        settings.supabase_url,
        settings.supabase_service_role_key,
        settings.resume_bucket,
    )
