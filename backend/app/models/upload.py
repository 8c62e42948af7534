# app/models/upload.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class UploadedFile(BaseModel):
    """업로드된 파일 정보 - 저장소 외에는 기록을 남기지 않음"""
    model_config = ConfigDict(populate_by_name=True)

    field_name: str = Field("file", alias="fieldName")
    original_name: str = Field(..., alias="originalName")
    key: str
    content_type: Optional[str] = Field(None, alias="contentType")
    size: int
    storage: str

    # 로컬 디스크
    path: Optional[str] = None

    # S3
    bucket: Optional[str] = None
    location: Optional[str] = None
    etag: Optional[str] = None
    acl: Optional[str] = None


class UploadResponse(BaseModel):
    message: str
    file: UploadedFile
