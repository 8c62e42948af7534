"""
AWS 클라이언트 생성 (aioboto3)
프로세스 시작 시 한 번 생성하고 종료 시 AsyncExitStack 으로 정리합니다.
"""

import logging
from contextlib import AsyncExitStack

import aioboto3
from botocore.config import Config

from app.core.config import settings

logger = logging.getLogger(__name__)


def aws_client_config() -> Config:
    # 명시적 타임아웃, 재시도 없음
    return Config(
        connect_timeout=settings.AWS_CONNECT_TIMEOUT,
        read_timeout=settings.AWS_READ_TIMEOUT,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )


def create_session() -> aioboto3.Session:
    return aioboto3.Session(
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
    )


async def open_client(stack: AsyncExitStack, session: aioboto3.Session, service: str):
    """서비스 클라이언트를 열고 stack 이 닫힐 때 함께 닫히도록 등록"""
    client = await stack.enter_async_context(
        session.client(service, region_name=settings.AWS_REGION, config=aws_client_config())
    )
    logger.info(f"☁️ AWS {service} 클라이언트 초기화 ({settings.AWS_REGION})")
    return client
