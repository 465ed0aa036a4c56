from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    user_id: Optional[Union[int, str]] = Field(None, description="User reference")
    product_id: Optional[Union[int, str]] = Field(None, description="Product reference")
    quantity: Optional[Union[int, str]] = Field(None, description="Number of units")


class UpdateStatusRequest(BaseModel):
    status: Optional[Any] = Field(None, description="New order status")


class Order(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    product_id: str
    quantity: int
    total_price: Decimal
    status: str
    created_at: datetime


class EnrichedOrder(Order):
    user: Dict[str, Any] = Field(..., description="Resolved user or placeholder")
    product: Dict[str, Any] = Field(..., description="Resolved product or placeholder")


class DeleteResponse(BaseModel):
    message: str
    order: Order


class HealthResponse(BaseModel):
    status: str
    port: int


class ErrorResponse(BaseModel):
    error: str
