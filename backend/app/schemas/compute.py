from pydantic import BaseModel, ConfigDict, Field


class InvokeRequest(BaseModel):
    """Lambda 함수 호출 요청"""
    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "notebook", "price": 12.5}}
    )

    name: str = Field(..., description="상품 이름")
    price: float = Field(..., description="가격")
