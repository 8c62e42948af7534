# app/models/post.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional
from datetime import datetime


class Post(BaseModel):
    """저장된 게시글 (API 응답 형태)"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Post":
        # MongoDB 문서(_id)를 API 형태(id)로 변환
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title"),
            content=doc.get("content"),
            author=doc.get("author"),
            created_at=doc["createdAt"],
        )
