# app/routers/posts.py
from fastapi import APIRouter, Depends
from typing import List
import logging

from app.models.post import Post
from app.schemas.post import PostCreate, PostUpdate
from app.services.post_repository import PostRepository, get_post_repository

logger = logging.getLogger(__name__)

router = APIRouter()

# ===== 게시글 CRUD =====

@router.post("", response_model=Post)
async def create_post(post: PostCreate, repo: PostRepository = Depends(get_post_repository)):
    return await repo.create(post)

@router.get("", response_model=List[Post])
async def list_posts(repo: PostRepository = Depends(get_post_repository)):
    """전체 게시글 (정렬 보장 없음)"""
    return await repo.list()

@router.get("/{post_id}", response_model=Post)
async def get_post(post_id: str, repo: PostRepository = Depends(get_post_repository)):
    return await repo.get_by_id(post_id)

@router.put("/{post_id}", response_model=Post)
async def update_post(post_id: str, update_data: PostUpdate,
                      repo: PostRepository = Depends(get_post_repository)):
    """부분 수정 - 요청에 포함된 필드만 변경"""
    return await repo.update_by_id(post_id, update_data)

@router.delete("/{post_id}", response_model=Post)
async def delete_post(post_id: str, repo: PostRepository = Depends(get_post_repository)):
    """삭제 후 삭제 직전 상태 반환"""
    return await repo.delete_by_id(post_id)
