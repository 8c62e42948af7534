# app/services/storage.py
"""
업로드 저장소
- 로컬 디스크 또는 S3 중 하나를 프로세스 시작 시 선택 (요청마다 바뀌지 않음)
- 최대 크기를 넘는 업로드는 저장소 쓰기 전에 거부
"""

import logging
import os
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import aioboto3
import aiofiles
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from app.core.config import settings
from app.core.errors import ConfigError, FileWriteError, PayloadTooLargeError, StoreError
from app.models.upload import UploadedFile
from app.services.aws import create_session, open_client
from app.utils.file_keys import generate_storage_key

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PUBLIC_READ = "public-read"


class StorageBackend:
    name = "base"

    async def save(self, key: str, data: bytes, content_type: Optional[str],
                   field_name: str) -> Dict[str, Any]:
        raise NotImplementedError


class LocalDiskStorage(StorageBackend):
    name = "local"

    def __init__(self, upload_dir: str = "uploads"):
        self.upload_dir = Path(upload_dir).resolve()
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Cannot create upload directory {self.upload_dir}: {e}", cause=e)

    async def save(self, key, data, content_type, field_name):
        path = (self.upload_dir / key).resolve()
        # 키가 업로드 디렉터리 밖을 가리키지 못하도록 확인
        if path.parent != self.upload_dir:
            raise FileWriteError(f"Invalid storage key: {key}")

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"❌ 로컬 파일 저장 실패: {path} - {e}")
            raise FileWriteError(f"Failed to write {key}: {e}", cause=e)

        return {"path": str(path)}


class S3Storage(StorageBackend):
    name = "s3"

    def __init__(self, client, bucket: str, region: str):
        self.client = client
        self.bucket = bucket
        self.region = region

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    async def save(self, key, data, content_type, field_name):
        try:
            response = await self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
                Metadata={"fieldName": field_name},
                ACL=PUBLIC_READ,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"❌ S3 업로드 실패 - bucket: {self.bucket}, key: {key}, 오류: {e}")
            raise StoreError(f"S3 upload failed: {e}", cause=e)

        return {
            "bucket": self.bucket,
            "location": self.object_url(key),
            "etag": response.get("ETag"),
            "acl": PUBLIC_READ,
        }


class UploadRouter:
    def __init__(self, backend: StorageBackend, max_size: int = 1_000_000):
        self.backend = backend
        self.max_size = max_size

    async def _read_limited(self, stream) -> bytes:
        chunks = []
        total = 0
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_size:
                raise PayloadTooLargeError(f"File too large (limit {self.max_size} bytes)")
            chunks.append(chunk)
        return b"".join(chunks)

    async def store(self, stream, original_name: str, content_type: Optional[str],
                    field_name: str = "file") -> UploadedFile:
        data = await self._read_limited(stream)
        key = generate_storage_key(original_name)
        location = await self.backend.save(key, data, content_type, field_name)

        logger.info(f"📁 파일 업로드 완료 - {self.backend.name}: {key} ({len(data)} bytes)")
        return UploadedFile(
            field_name=field_name,
            original_name=original_name or "",
            key=key,
            content_type=content_type,
            size=len(data),
            storage=self.backend.name,
            **location,
        )


async def build_upload_router(stack: AsyncExitStack,
                              session: Optional[aioboto3.Session] = None) -> UploadRouter:
    """STORAGE_TYPE 설정에 따라 저장소 선택"""
    if settings.STORAGE_TYPE == "s3":
        if not settings.AWS_BUCKET_NAME:
            raise ConfigError("AWS_BUCKET_NAME is required when STORAGE_TYPE=s3")
        client = await open_client(stack, session or create_session(), "s3")
        backend = S3Storage(client, settings.AWS_BUCKET_NAME, settings.AWS_REGION)
    elif settings.STORAGE_TYPE == "local":
        backend = LocalDiskStorage(settings.UPLOAD_DIR)
    else:
        raise ConfigError(f"Unknown STORAGE_TYPE: {settings.STORAGE_TYPE}")

    logger.info(f"📦 업로드 저장소: {backend.name}")
    return UploadRouter(backend, max_size=settings.MAX_UPLOAD_SIZE)


async def get_upload_router(request: Request) -> UploadRouter:
    """UploadRouter 의존성 주입"""
    return request.app.state.upload_router
