# app/routers/signed_url.py
from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from app.core.config import settings
from app.core.errors import NotFoundError
from app.models.signed_url import SignedUrlResponse
from app.services.cdn_signer import CloudFrontUrlSigner, get_url_signer

logger = logging.getLogger(__name__)
router = APIRouter()

async def require_path(
    path: Optional[str] = Query(None, description="서명할 리소스 경로"),
) -> str:
    # path 누락은 호환성을 위해 404 (서명기 설정 여부보다 먼저 검사)
    if not path:
        raise NotFoundError("Missing required query parameter: path")
    return path

@router.get("/signed-url", response_model=SignedUrlResponse)
async def get_signed_url(
    path: str = Depends(require_path),
    ttl: Optional[int] = Query(None, description="유효 시간(초), 기본값 SIGNED_URL_TTL"),
    signer: CloudFrontUrlSigner = Depends(get_url_signer),
):
    signed = signer.sign(path, ttl if ttl is not None else settings.SIGNED_URL_TTL)
    logger.debug(f"🔏 서명 URL 발급: {signed.resource_path} (만료 {signed.expires_at})")
    return SignedUrlResponse(status_code=200, signed_url=signed.url)
