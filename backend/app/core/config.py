# app/core/config.py
import os
from urllib.parse import urlparse
from dotenv import load_dotenv

load_dotenv()  # .env 파일의 환경변수를 로드합니다.


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


def _database_name_from_url(url: str) -> str:
    # mongodb://host:27017/<db>?... 형태에서 DB 이름 추출
    path = urlparse(url).path.lstrip("/")
    return path or "posts_service"


class Settings:
    API_TITLE = os.getenv("API_TITLE", "Posts Service API")
    API_VERSION = os.getenv("API_VERSION", "0.1.0")
    DEBUG = _env_bool("DEBUG", "False")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "production")

    # MongoDB 설정
    DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017/posts_service")
    DATABASE_NAME = os.getenv("DATABASE_NAME") or _database_name_from_url(DATABASE_URL)
    POSTS_COLLECTION = os.getenv("POSTS_COLLECTION", "posts")

    # 외부 호출 타임아웃 (재시도 없음)
    MONGO_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))
    MONGO_CONNECT_TIMEOUT_MS = int(os.getenv("MONGO_CONNECT_TIMEOUT_MS", "5000"))
    MONGO_SOCKET_TIMEOUT_MS = int(os.getenv("MONGO_SOCKET_TIMEOUT_MS", "20000"))
    AWS_CONNECT_TIMEOUT = float(os.getenv("AWS_CONNECT_TIMEOUT", "5"))
    AWS_READ_TIMEOUT = float(os.getenv("AWS_READ_TIMEOUT", "30"))

    # 서버 설정
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))

    # 업로드 저장소 ("local" 또는 "s3") - 프로세스 시작 시 한 번만 결정
    STORAGE_TYPE = os.getenv("STORAGE_TYPE", "local").lower()
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", "1000000"))

    # AWS 설정
    AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    AWS_BUCKET_NAME = os.getenv("AWS_BUCKET_NAME")

    # Lambda
    LAMBDA_FUNCTION_NAME = os.getenv("LAMBDA_FUNCTION_NAME")

    # CloudFront 서명 URL
    CLOUDFRONT_DOMAIN = os.getenv("CLOUDFRONT_DOMAIN")
    CLOUDFRONT_KEY_PAIR_ID = os.getenv("CLOUDFRONT_KEY_PAIR_ID")
    CLOUDFRONT_PRIVATE_KEY_PATH = os.getenv("CLOUDFRONT_PRIVATE_KEY_PATH", "private_key.pem")
    SIGNED_URL_TTL = int(os.getenv("SIGNED_URL_TTL", "3600"))

    # 로깅
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
    LOG_DIR = os.getenv("LOG_DIR")

    # CORS 설정
    @property
    def CORS_ORIGINS(self):
        """
        .env의 CORS_ORIGINS (콤마로 구분) + 로컬 개발 기본 오리진
        """
        base = os.getenv("CORS_ORIGINS", "")
        origins = [o.strip() for o in base.split(",") if o.strip()]
        origins.extend([
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ])
        return sorted({o for o in origins if o})


settings = Settings()
