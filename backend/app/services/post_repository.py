# app/services/post_repository.py
"""
게시글 저장소 (MongoDB)
- 작업당 정확히 한 번의 DB 왕복
- 캐시, 배치, 트랜잭션 없음
"""

import logging
from datetime import datetime
from typing import List

import pytz
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError, WriteError

from app.core.config import settings
from app.core.database import get_database
from app.core.errors import InvalidIdError, NotFoundError, StoreError, ValidationError
from app.models.post import Post
from app.schemas.post import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

# MongoDB 문서 검증 실패 코드
DOCUMENT_VALIDATION_FAILURE = 121


def _utcnow() -> datetime:
    # MongoDB 는 밀리초 단위까지만 저장하므로 미리 잘라 둔다.
    # 내림이므로 createdAt 은 호출 시각보다 최대 1ms 이를 수 있다
    now = datetime.now(pytz.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _to_object_id(post_id: str) -> ObjectId:
    try:
        return ObjectId(post_id)
    except (InvalidId, TypeError):
        raise InvalidIdError(f"Invalid post id: {post_id}")


def _store_error(operation: str, e: PyMongoError):
    if isinstance(e, WriteError) and e.code == DOCUMENT_VALIDATION_FAILURE:
        return ValidationError(f"Post validation failed: {e}", cause=e)
    logger.error(f"❌ 게시글 {operation} 실패: {e}")
    return StoreError(f"Post {operation} failed: {e}", cause=e)


class PostRepository:
    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, data: PostCreate) -> Post:
        doc = data.to_fields()
        doc["createdAt"] = _utcnow()
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            raise _store_error("create", e)

        doc["_id"] = result.inserted_id
        logger.info(f"📝 게시글 생성: {result.inserted_id}")
        return Post.from_document(doc)

    async def list(self) -> List[Post]:
        """
        전체 게시글 조회
        정렬을 지정하지 않으므로 순서는 저장소 기본 순서(대개 삽입 순서)에 따른다.
        """
        try:
            docs = await self.collection.find({}).to_list(None)
        except PyMongoError as e:
            raise _store_error("list", e)
        return [Post.from_document(doc) for doc in docs]

    async def get_by_id(self, post_id: str) -> Post:
        oid = _to_object_id(post_id)
        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise _store_error("read", e)
        if not doc:
            raise NotFoundError()
        return Post.from_document(doc)

    async def update_by_id(self, post_id: str, data: PostUpdate) -> Post:
        """전달된 필드만 변경 (id, createdAt 은 변경 불가)"""
        oid = _to_object_id(post_id)
        fields = data.to_fields()
        try:
            if fields:
                doc = await self.collection.find_one_and_update(
                    {"_id": oid},
                    {"$set": fields},
                    return_document=ReturnDocument.AFTER
                )
            else:
                doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise _store_error("update", e)
        if not doc:
            raise NotFoundError()
        return Post.from_document(doc)

    async def delete_by_id(self, post_id: str) -> Post:
        oid = _to_object_id(post_id)
        try:
            doc = await self.collection.find_one_and_delete({"_id": oid})
        except PyMongoError as e:
            raise _store_error("delete", e)
        if not doc:
            raise NotFoundError()
        logger.info(f"🗑️ 게시글 삭제: {post_id}")
        return Post.from_document(doc)


async def get_post_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> PostRepository:
    """PostRepository 의존성 주입"""
    return PostRepository(db[settings.POSTS_COLLECTION])
