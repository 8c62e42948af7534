# app/routers/upload.py
from fastapi import APIRouter, Depends, File, Request, UploadFile
import logging

from app.core.errors import PayloadTooLargeError
from app.models.upload import UploadResponse
from app.services.storage import UploadRouter, get_upload_router

logger = logging.getLogger(__name__)

router = APIRouter()

# multipart 경계/헤더 여유분
MULTIPART_OVERHEAD = 16 * 1024


async def reject_oversized_body(request: Request, uploads: UploadRouter = Depends(get_upload_router)):
    """Content-Length 가 한도를 명백히 넘으면 본문을 읽기 전에 거부"""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > uploads.max_size + MULTIPART_OVERHEAD:
            raise PayloadTooLargeError(f"File too large (limit {uploads.max_size} bytes)")


@router.post("/upload", response_model=UploadResponse,
             dependencies=[Depends(reject_oversized_body)])
async def upload_file(
    file: UploadFile = File(...),
    uploads: UploadRouter = Depends(get_upload_router),
):
    """단일 파일 업로드 (multipart 필드명: file)"""
    try:
        stored = await uploads.store(file, file.filename, file.content_type, field_name="file")
    finally:
        await file.close()

    return {"message": "File uploaded successfully", "file": stored}
