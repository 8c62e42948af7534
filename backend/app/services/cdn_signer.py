# app/services/cdn_signer.py
"""
CloudFront 서명 URL 발급
- 개인키는 프로세스 시작 시 한 번만 로드 (교체하려면 재시작)
- canned policy: Expires / Signature / Key-Pair-Id
- 서명은 캐시하지 않음
"""

import logging
import re
import time
from datetime import datetime
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

import pytz
from botocore.signers import CloudFrontSigner
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from fastapi import Request

from app.core.errors import ConfigError, ValidationError
from app.models.signed_url import SignedURL

logger = logging.getLogger(__name__)

MIN_TTL_SECONDS = 1
MAX_TTL_SECONDS = 7 * 24 * 3600

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


def load_private_key(path: str) -> rsa.RSAPrivateKey:
    try:
        with open(path, "rb") as f:
            key = serialization.load_pem_private_key(f.read(), password=None)
    except OSError as e:
        raise ConfigError(f"Cannot read CloudFront private key {path}: {e}", cause=e)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Invalid CloudFront private key {path}: {e}", cause=e)

    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigError(f"CloudFront private key must be RSA: {path}")
    return key


def normalize_resource_path(resource_path: str) -> str:
    """서명 대상 경로 검증 - 도메인 밖이나 상위 경로를 가리킬 수 없음"""
    path = (resource_path or "").strip()
    if "://" in path or path.startswith("//"):
        raise ValidationError("Resource path must not contain a scheme or host")
    if _CONTROL_CHARS.search(path):
        raise ValidationError("Resource path contains control characters")

    path = path.lstrip("/")
    if not path:
        raise ValidationError("Resource path is empty")
    if any(segment == ".." for segment in path.split("/")):
        raise ValidationError("Resource path must not contain '..' segments")
    return path


class CloudFrontUrlSigner:
    def __init__(self, private_key: rsa.RSAPrivateKey, key_pair_id: str, domain: str):
        if not key_pair_id:
            raise ConfigError("CLOUDFRONT_KEY_PAIR_ID is not configured")
        if not domain:
            raise ConfigError("CLOUDFRONT_DOMAIN is not configured")

        self.key_pair_id = key_pair_id
        self.domain = re.sub(r'^https?://', '', domain).rstrip("/")
        self._private_key = private_key
        self._signer = CloudFrontSigner(key_pair_id, self._rsa_sign)

    @classmethod
    def from_key_file(cls, path: str, key_pair_id: str, domain: str) -> "CloudFrontUrlSigner":
        signer = cls(load_private_key(path), key_pair_id, domain)
        logger.info(f"🔑 CloudFront 서명 키 로드 완료 (key pair: {key_pair_id})")
        return signer

    def _rsa_sign(self, message: bytes) -> bytes:
        # CloudFront 는 SHA-1 + PKCS#1 v1.5 서명만 허용
        return self._private_key.sign(message, padding.PKCS1v15(), hashes.SHA1())

    def sign(self, resource_path: str, ttl_seconds: int = 3600,
             now: Optional[float] = None) -> SignedURL:
        if not MIN_TTL_SECONDS <= ttl_seconds <= MAX_TTL_SECONDS:
            raise ValidationError(
                f"ttl must be between {MIN_TTL_SECONDS} and {MAX_TTL_SECONDS} seconds"
            )

        path = normalize_resource_path(resource_path)
        expires_at = int(now if now is not None else time.time()) + ttl_seconds
        url = f"https://{self.domain}/{quote(path, safe='/-_.~')}"

        signed_url = self._signer.generate_presigned_url(
            url, date_less_than=datetime.fromtimestamp(expires_at, tz=pytz.utc)
        )
        signature = parse_qs(urlparse(signed_url).query)["Signature"][0]

        return SignedURL(
            resource_path=path,
            url=signed_url,
            expires_at=expires_at,
            signature=signature,
        )


async def get_url_signer(request: Request) -> CloudFrontUrlSigner:
    """서명기 의존성 주입 - 서명 키가 설정되지 않았으면 ConfigError"""
    signer = getattr(request.app.state, "url_signer", None)
    if signer is None:
        raise ConfigError("CloudFront signing is not configured")
    return signer
