# app/routers/compute.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from app.schemas.compute import InvokeRequest
from app.services.lambda_client import LambdaInvoker, get_lambda_invoker

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("/invoke-lambda")
async def invoke_lambda(
    body: InvokeRequest,
    invoker: LambdaInvoker = Depends(get_lambda_invoker)
):
    """Lambda 함수 호출 후 응답 페이로드를 그대로 전달"""
    result = await invoker.invoke({"name": body.name, "price": body.price})
    return JSONResponse(content=result)
