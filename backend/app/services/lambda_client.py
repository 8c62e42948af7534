"""
AWS Lambda 호출 클라이언트
JSON 페이로드를 동기(RequestResponse) 호출로 전달하고 응답을 그대로 반환
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from app.core.errors import ConfigError, InvocationError

logger = logging.getLogger(__name__)


class LambdaInvoker:
    """Lambda 함수와 통신하는 클라이언트"""

    def __init__(self, client, function_name: Optional[str] = None):
        self.client = client
        self.function_name = function_name

    async def invoke(self, payload: Dict[str, Any], function_name: Optional[str] = None) -> Any:
        name = function_name or self.function_name
        if not name:
            raise ConfigError("LAMBDA_FUNCTION_NAME is not configured")

        try:
            response = await self.client.invoke(
                FunctionName=name,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload).encode("utf-8"),
            )
            raw = await response["Payload"].read()
        except (BotoCoreError, ClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            # 응답 스트림을 읽는 중의 전송 오류도 호출 실패로 처리
            logger.error(f"Lambda invoke failed: {name} - {e}")
            raise InvocationError(str(e) or type(e).__name__, cause=e)

        if response.get("FunctionError"):
            # 함수 내부 오류: 페이로드에 errorMessage 가 담겨 있음
            detail = raw.decode("utf-8", errors="replace")
            logger.error(f"Lambda function error: {name} - {detail}")
            raise InvocationError(detail)

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise InvocationError(f"Invalid response payload: {e}", cause=e)


async def get_lambda_invoker(request: Request) -> LambdaInvoker:
    """LambdaInvoker 의존성 주입"""
    return request.app.state.lambda_invoker
