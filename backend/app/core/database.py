from fastapi import FastAPI, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import settings
from app.core.errors import StoreError
import asyncio
import logging
import time
from typing import Optional

# 로깅 레벨은 main.py에서 설정됨
logger = logging.getLogger(__name__)

# 연결 상태 추적
_connection_health = {
    "mongodb": {"status": "unknown", "last_check": 0}
}


def create_mongo_client(url: Optional[str] = None) -> AsyncIOMotorClient:
    """MongoDB 클라이언트 생성 - 모든 외부 호출에 타임아웃 지정, 재시도 없음"""
    return AsyncIOMotorClient(
        url or settings.DATABASE_URL,
        maxPoolSize=100,
        minPoolSize=0,
        connectTimeoutMS=settings.MONGO_CONNECT_TIMEOUT_MS,
        serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        socketTimeoutMS=settings.MONGO_SOCKET_TIMEOUT_MS,
        retryWrites=False,
        retryReads=False,
        tz_aware=True,
    )


async def check_mongodb_health(client: AsyncIOMotorClient) -> bool:
    """MongoDB 연결 상태 확인"""
    try:
        await asyncio.wait_for(client.admin.command("ping"), timeout=5.0)
        _connection_health["mongodb"]["status"] = "healthy"
        _connection_health["mongodb"]["last_check"] = time.time()
        return True
    except Exception as e:
        logger.error(f"MongoDB 연결 상태 불량: {e}")
        _connection_health["mongodb"]["status"] = "unhealthy"
        _connection_health["mongodb"]["last_check"] = time.time()
        return False


async def get_connection_status(app: FastAPI):
    """데이터베이스 연결 상태 반환 (30초 이상 된 체크는 다시 실행)"""
    client = getattr(app.state, "mongo_client", None)
    if client is None:
        _connection_health["mongodb"]["status"] = "disconnected"
        return _connection_health

    if time.time() - _connection_health["mongodb"]["last_check"] > 30:
        await check_mongodb_health(client)

    return _connection_health


async def connect_to_mongo(app: FastAPI) -> AsyncIOMotorDatabase:
    """
    MongoDB 연결 및 초기화
    연결에 실패하면 StoreError 를 발생시켜 서버 시작을 중단합니다.
    """
    client = create_mongo_client()
    timeout = settings.MONGO_SERVER_SELECTION_TIMEOUT_MS / 1000 + 1
    try:
        await asyncio.wait_for(client.admin.command("ping"), timeout=timeout)
    except Exception as e:
        client.close()
        logger.error(f"❌ MongoDB 연결 실패: {e}")
        raise StoreError(f"Cannot connect to MongoDB: {e}", cause=e)

    logger.info("✅ MongoDB 연결 성공!")
    _connection_health["mongodb"]["status"] = "healthy"
    _connection_health["mongodb"]["last_check"] = time.time()

    app.state.mongo_client = client
    app.state.db = client[settings.DATABASE_NAME]
    return app.state.db


async def close_mongo_connection(app: FastAPI):
    """MongoDB 연결 종료"""
    client = getattr(app.state, "mongo_client", None)
    if client is None:
        return
    client.close()
    app.state.mongo_client = None
    logger.info("✅ MongoDB 연결 종료!")


# 데이터베이스 의존성 주입
async def get_database(request: Request) -> AsyncIOMotorDatabase:
    """startup 에서 생성된 MongoDB 데이터베이스 핸들 반환"""
    return request.app.state.db
