"""Pydantic request/response schemas for the Ordering API.

Routes translate these into Protean commands. Amounts are integer minor
units (cents).
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    street: str
    city: str
    state: str
    postal_code: str
    country: str


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    shipping_address: ShippingAddressSchema
    payment_method: str
    coupon_code: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                    "payment_method": "credit_card",
                    "coupon_code": "SAVE10",
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str
    location: str | None = None
    reason: str | None = None  # Recorded when cancelling


class AssignTrackingNumberRequest(BaseModel):
    tracking_number: str = Field(min_length=1)


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class ReturnOrderRequest(BaseModel):
    location: str | None = None


# ---------------------------------------------------------------------------
# Payment Request Schemas
# ---------------------------------------------------------------------------
class ProcessPaymentRequest(BaseModel):
    order_id: str
    payment_method: str | None = None
    device_info: str | None = None


class RefundPaymentRequest(BaseModel):
    amount: int = Field(gt=0)
    reason: str
    notes: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool
    failure_reason: str = "Card declined"


# ---------------------------------------------------------------------------
# Stock Request Schemas
# ---------------------------------------------------------------------------
class InitializeStockRequest(BaseModel):
    product_id: str
    available: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class PlacedOrderResponse(BaseModel):
    order_id: str
    order_number: str
    subtotal: int
    tax: int
    shipping_cost: int
    discount: int
    total: int
    currency: str


class OrderListResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int
    page: int
    pages: int


class PaymentResultResponse(BaseModel):
    payment_id: str
    order_id: str
    transaction_id: str
    status: str
    amount: int
    currency: str
    error: dict[str, Any] | None = None


class RefundResultResponse(BaseModel):
    refund: dict[str, Any]
    payment_status: str
    total_refunded: int
    remaining_amount: int


class PaymentStatisticsResponse(BaseModel):
    total_payments: int
    total_amount: int
    total_refunded: int
    net_amount: int
    payment_methods: dict[str, int]
    status_counts: dict[str, int]


class VerifyPaymentResponse(BaseModel):
    transaction_id: str
    order_id: str
    status: str
    amount: int
    currency: str
    verified: bool


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str


class StockLevelResponse(BaseModel):
    product_id: str
    available: int
