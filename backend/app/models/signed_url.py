# app/models/signed_url.py
from pydantic import BaseModel, ConfigDict, Field


class SignedURL(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_path: str = Field(..., alias="resourcePath")
    url: str
    expires_at: int = Field(..., alias="expiresAt")
    signature: str


class SignedUrlResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(200, alias="statusCode")
    signed_url: str = Field(..., alias="signedUrl")
