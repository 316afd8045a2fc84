"""Cliente S3-compatible para Cloudflare R2.

Passthrough de subida para avatares, portadas, miniaturas y archivos de video:
sube el `UploadFile` y devuelve la URL pública que se guarda en el documento.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import Settings

_log = logging.getLogger("vidtube.storage")


class StorageError(RuntimeError):
    pass


class ObjectStorage:
    def __init__(self, settings: Settings) -> None:
        self.bucket = settings.r2_bucket
        self.endpoint = settings.r2_endpoint
        self.region = settings.r2_region or "auto"
        self.access_key = settings.r2_access_key
        self.secret_key = settings.r2_secret_key
        self._public_base = settings.r2_public_base_url
        self._client = None

    @property
    def configured(self) -> bool:
        return bool(self.bucket and self.access_key and self.secret_key)

    def _get_client(self):
        if self._client is None:
            cfg = Config(signature_version="s3v4", s3={"addressing_style": "path"})
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                endpoint_url=self.endpoint,
                region_name=self.region,
                config=cfg,
            )
        return self._client

    def public_base_url(self) -> Optional[str]:
        # Preferido: dominio público (R2.dev o personalizado)
        if self._public_base:
            return self._public_base.rstrip("/")
        if self.bucket and self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}"
        return None

    def derive_key_from_url(self, url: str) -> Optional[str]:
        """Deriva la clave del objeto a partir de su URL pública."""
        if not url:
            return None
        base = self.public_base_url() or ""
        if base and url.startswith(base + "/"):
            return unquote(url[len(base) + 1:])
        path = unquote(urlparse(url).path or "/").lstrip("/")
        if self.bucket and path.startswith(self.bucket + "/"):
            return path[len(self.bucket) + 1:]
        return path or None

    async def upload(self, upload_file, prefix: str = "uploads/") -> str:
        """Sube un UploadFile y devuelve su URL pública.

        Nota: ejecuta el put_object en un thread para no bloquear el event loop.
        """
        base = self.public_base_url()
        if not self.configured or not base:
            raise StorageError("Object storage is not configured")

        name = upload_file.filename or "file"
        ext = name[name.rfind("."):] if "." in name else ""
        key = f"{prefix}{uuid.uuid4().hex}{ext}"
        content_type = upload_file.content_type or "application/octet-stream"

        fileobj = upload_file.file
        fileobj.seek(0)
        s3 = self._get_client()

        def _put():
            s3.put_object(Bucket=self.bucket, Key=key, Body=fileobj, ContentType=content_type)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _put)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Upload failed: {e}") from e
        _log.info("Objeto subido key=%s content_type=%s", key, content_type)
        return f"{base}/{key}"

    async def delete_by_url(self, url: Optional[str]) -> bool:
        """Borra el objeto referido por `url`. Best-effort: False si no se pudo."""
        key = self.derive_key_from_url(url or "")
        if not key or not self.configured:
            return False
        s3 = self._get_client()

        def _delete():
            s3.delete_object(Bucket=self.bucket, Key=key)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _delete)
            return True
        except (BotoCoreError, ClientError) as e:
            _log.warning("No se pudo borrar objeto key=%s: %s", key, e)
            return False
