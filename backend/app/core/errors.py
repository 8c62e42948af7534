# app/core/errors.py
"""
서비스 오류 분류

각 컴포넌트는 아래 예외를 발생시키고, main.py의 예외 핸들러가
status_code 에 따라 HTTP 응답으로 변환합니다.
"""
from typing import Optional


class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: Optional[str] = None, cause: Optional[BaseException] = None):
        self.detail = detail or self.message
        self.cause = cause
        super().__init__(self.detail)


class NotFoundError(ServiceError):
    status_code = 404
    message = "Post not found"


class InvalidIdError(NotFoundError):
    # 형식이 잘못된 ID는 어떤 문서도 가리킬 수 없으므로 404로 응답
    message = "Invalid post id"


class ValidationError(ServiceError):
    status_code = 400
    message = "Validation failed"


class StoreError(ServiceError):
    status_code = 500
    message = "Storage backend failure"


class FileWriteError(ServiceError):
    status_code = 500
    message = "Failed to write file to disk"


class PayloadTooLargeError(ServiceError):
    status_code = 413
    message = "File too large"


class InvocationError(ServiceError):
    status_code = 400
    message = "Function invocation failed"


class ConfigError(ServiceError):
    status_code = 500
    message = "Missing required configuration"
