# app/main.py
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.routers import posts, upload, compute, signed_url
from app.core.config import settings
from app.core.database import connect_to_mongo, close_mongo_connection, get_connection_status
from app.core.errors import ServiceError
from app.services.aws import create_session, open_client
from app.services.cdn_signer import CloudFrontUrlSigner
from app.services.lambda_client import LambdaInvoker
from app.services.storage import build_upload_router
from contextlib import AsyncExitStack
import logging
import time
import traceback
import sys
import os
import tempfile
import psutil
from logging.handlers import RotatingFileHandler

# -------------------------
# 로그 디렉토리/핸들러 설정
# -------------------------
log_dir = settings.LOG_DIR or (
    os.path.join(tempfile.gettempdir(), 'posts_service') if os.name == 'nt' else '/tmp'
)
os.makedirs(log_dir, exist_ok=True)
log_file_path = os.path.join(log_dir, 'posts_service.log')

log_level = getattr(logging, settings.LOG_LEVEL, logging.WARNING)

handlers = []
file_handler = RotatingFileHandler(
    log_file_path, maxBytes=50 * 1024 * 1024, backupCount=5, encoding='utf-8'
)
handlers.append(file_handler)

# 개발환경에서만 콘솔 출력
if settings.ENVIRONMENT == "development":
    handlers.append(logging.StreamHandler(sys.stdout))

logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=handlers
)
logger = logging.getLogger(__name__)

# -------------------------
# FastAPI 앱 생성
# -------------------------
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

# -------------------------
# 응답 시간 측정 미들웨어
# -------------------------
@app.middleware("http")
async def performance_monitoring_middleware(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        logger.error(f"❌ {request.method} {request.url.path} - 오류: {str(e)} - {process_time:.3f}초")
        raise

    process_time = time.time() - start_time
    if process_time > 2.0:
        logger.warning(f"⏱️ 느린 응답 {request.method} {request.url.path} - {process_time:.3f}초")
    elif logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"✅ {request.method} {request.url.path} - {process_time:.3f}초 - 상태: {response.status_code}")

    response.headers["X-Process-Time"] = str(process_time)
    return response

# -------------------------
# 예외 핸들러
# -------------------------
@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"⚠️ {type(exc).__name__} {request.method} {request.url.path} - 상태: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "detail": exc.detail, "status_code": exc.status_code}
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(f"⚠️ HTTP 예외 {request.method} {request.url.path} - 상태: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code}
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 검증 오류는 모든 라우트에서 400 으로 통일
    logger.warning(f"⚠️ 검증 오류 {request.method} {request.url.path} - {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": jsonable_errors(exc), "status_code": 400}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = int(time.time() * 1000000) % 1000000  # 6자리
    logger.error(f"🚨 글로벌 예외 [ID: {error_id}] {request.method} {request.url.path}")
    logger.error(f"예외 타입: {type(exc).__name__} - {str(exc)}")
    logger.error(f"스택 트레이스:\n{traceback.format_exc()}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "detail": str(exc),
            "status_code": 500,
        }
    )

def jsonable_errors(exc: RequestValidationError):
    # ctx 안의 예외 객체는 JSON 으로 직렬화되지 않으므로 문자열로 변환
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors

# -------------------------
# 라이프사이클
# -------------------------
@app.on_event("startup")
async def startup_event():
    logger.info("🚀 Posts 서비스 시작 중...")

    # 실패하면 예외가 전파되어 서버가 요청을 받기 전에 종료됨
    await connect_to_mongo(app)

    stack = AsyncExitStack()
    app.state.aws_stack = stack
    session = create_session()

    app.state.upload_router = await build_upload_router(stack, session)

    lambda_client = await open_client(stack, session, "lambda")
    app.state.lambda_invoker = LambdaInvoker(lambda_client, settings.LAMBDA_FUNCTION_NAME)

    if settings.CLOUDFRONT_KEY_PAIR_ID:
        app.state.url_signer = CloudFrontUrlSigner.from_key_file(
            settings.CLOUDFRONT_PRIVATE_KEY_PATH,
            settings.CLOUDFRONT_KEY_PAIR_ID,
            settings.CLOUDFRONT_DOMAIN,
        )
    else:
        app.state.url_signer = None
        logger.warning("⚠️ CLOUDFRONT_KEY_PAIR_ID 미설정 - 서명 URL 발급 비활성화")

    logger.info(f"✅ Posts 서비스 시작 완료! (포트 {settings.PORT})")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("⏹️ Posts 서비스 종료 중...")
    stack = getattr(app.state, "aws_stack", None)
    if stack is not None:
        await stack.aclose()
    await close_mongo_connection(app)
    logger.info("✅ 모든 연결이 안전하게 종료되었습니다.")

# -------------------------
# 상태 엔드포인트
# -------------------------
@app.get("/api/health")
async def health_check():
    try:
        db_status = await get_connection_status(app)
        memory = psutil.virtual_memory()
        disk_usage = psutil.disk_usage('/' if os.name != 'nt' else 'C:\\')
    except Exception as e:
        logger.error(f"상태 확인 실패: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": str(e), "timestamp": time.time()}
        )

    healthy = db_status["mongodb"]["status"] == "healthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": time.time(),
            "database": db_status,
            "system": {
                "memory_usage_percent": memory.percent,
                "cpu_usage_percent": psutil.cpu_percent(interval=None),
                "disk_usage_percent": (disk_usage.used / disk_usage.total) * 100,
                "platform": sys.platform,
            },
            "version": settings.API_VERSION,
        }
    )

# -------------------------
# 라우터 등록
# -------------------------
app.include_router(posts.router,      prefix="/posts", tags=["게시글"])
app.include_router(upload.router,                      tags=["업로드"])
app.include_router(compute.router,                     tags=["Lambda"])
app.include_router(signed_url.router,                  tags=["서명 URL"])

# -------------------------
# 루트 엔드포인트
# -------------------------
@app.get("/", response_class=PlainTextResponse)
async def root():
    return "Hello World!"


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
