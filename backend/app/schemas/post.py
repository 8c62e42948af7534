"""
게시글 요청 스키마
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, Optional

_FIELDS = ("title", "content", "author")


class PostBase(BaseModel):
    # 알 수 없는 필드(id, createdAt 등)는 무시
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "First post",
                "content": "Hello from the posts service",
                "author": "jane",
            }
        },
    )

    title: Optional[str] = Field(None, description="제목")
    content: Optional[str] = Field(None, description="내용")
    author: Optional[str] = Field(None, description="작성자")

    @field_validator(*_FIELDS)
    @classmethod
    def reject_null(cls, v, info):
        # 기본값(None)은 검증하지 않으므로 명시적으로 null 을 보낸 경우만 해당
        if v is None:
            raise ValueError(f"{info.field_name} must be a string")
        return v

    def to_fields(self) -> Dict[str, Any]:
        """요청에 실제로 포함된 필드만 반환"""
        return self.model_dump(include=set(_FIELDS), exclude_unset=True)


class PostCreate(PostBase):
    pass


class PostUpdate(PostBase):
    pass
