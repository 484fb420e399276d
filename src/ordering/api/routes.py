"""FastAPI routes for the Ordering domain — orders, payments and stock."""

import json
import os

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ordering.api.dependencies import Principal, get_principal
from ordering.api.schemas import (
    AssignTrackingNumberRequest,
    CancelOrderRequest,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    InitializeStockRequest,
    OrderListResponse,
    PaymentResultResponse,
    PaymentStatisticsResponse,
    PlacedOrderResponse,
    PlaceOrderRequest,
    ProcessPaymentRequest,
    RefundPaymentRequest,
    RefundResultResponse,
    ReturnOrderRequest,
    StockLevelResponse,
    UpdateOrderStatusRequest,
    VerifyPaymentResponse,
)
from ordering.dispatch import process
from ordering.gateway import get_gateway
from ordering.gateway.fake_adapter import FakeGateway
from ordering.order.cancellation import CancelOrder
from ordering.order.checkout import PlaceOrder
from ordering.order.queries import get_order, list_orders, list_user_orders
from ordering.order.returns import MarkOrderReturned
from ordering.order.status import UpdateOrderStatus
from ordering.order.tracking import AssignTrackingNumber
from ordering.payment.payment import PaymentStatus
from ordering.payment.processing import ProcessPayment
from ordering.payment.queries import get_payment, payment_statistics, verify_payment
from ordering.payment.refund import RefundPayment
from ordering.stock.initialization import InitializeStock
from ordering.utils.authorization import ensure_admin

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlacedOrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    principal: Principal = Depends(get_principal),
) -> PlacedOrderResponse:
    """Check out the caller's cart into a new order."""
    command = PlaceOrder(
        user_id=principal.user_id,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        payment_method=body.payment_method,
        coupon_code=body.coupon_code,
    )
    return PlacedOrderResponse(**process(command))


@order_router.get("/mine", response_model=OrderListResponse)
async def my_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: str | None = None,
    principal: Principal = Depends(get_principal),
) -> OrderListResponse:
    return OrderListResponse(**list_user_orders(principal.user_id, page=page, limit=limit, status=status))


@order_router.get("", response_model=OrderListResponse)
async def all_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    status: str | None = None,
    principal: Principal = Depends(get_principal),
) -> OrderListResponse:
    """List every order (administrators only)."""
    return OrderListResponse(**list_orders(principal.role, page=page, limit=limit, status=status))


@order_router.get("/{order_id}")
async def order_details(order_id: str, principal: Principal = Depends(get_principal)) -> dict:
    return get_order(order_id, principal.user_id, principal.role)


@order_router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        location=body.location,
        reason=body.reason,
        actor_id=principal.user_id,
        actor_role=principal.role,
    )
    return process(command)


@order_router.patch("/{order_id}/tracking")
async def assign_tracking_number(
    order_id: str,
    body: AssignTrackingNumberRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    command = AssignTrackingNumber(
        order_id=order_id,
        tracking_number=body.tracking_number,
        actor_id=principal.user_id,
        actor_role=principal.role,
    )
    return process(command)


@order_router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        actor_id=principal.user_id,
        actor_role=principal.role,
    )
    return process(command)


@order_router.post("/{order_id}/return")
async def return_order(
    order_id: str,
    body: ReturnOrderRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    command = MarkOrderReturned(
        order_id=order_id,
        location=body.location,
        actor_id=principal.user_id,
        actor_role=principal.role,
    )
    return process(command)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/process", status_code=201, response_model=PaymentResultResponse)
async def process_payment(
    body: ProcessPaymentRequest,
    request: Request,
    principal: Principal = Depends(get_principal),
):
    """Charge an order's total. A declined charge answers 402 with the failed payment."""
    command = ProcessPayment(
        order_id=body.order_id,
        payment_method=body.payment_method,
        actor_id=principal.user_id,
        actor_role=principal.role,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        device_info=body.device_info,
    )
    result = process(command)
    if result["status"] != PaymentStatus.COMPLETED.value:
        return JSONResponse(status_code=402, content=result)
    return PaymentResultResponse(**result)


@payment_router.get("/statistics", response_model=PaymentStatisticsResponse)
async def statistics(principal: Principal = Depends(get_principal)) -> PaymentStatisticsResponse:
    return PaymentStatisticsResponse(**payment_statistics(principal.role))


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )


@payment_router.post("/verify/{transaction_id}", response_model=VerifyPaymentResponse)
async def verify(transaction_id: str, principal: Principal = Depends(get_principal)) -> VerifyPaymentResponse:
    return VerifyPaymentResponse(**verify_payment(transaction_id, principal.user_id, principal.role))


@payment_router.get("/{transaction_id}")
async def payment_details(transaction_id: str, principal: Principal = Depends(get_principal)) -> dict:
    return get_payment(transaction_id, principal.user_id, principal.role)


@payment_router.post("/{transaction_id}/refund", response_model=RefundResultResponse)
async def refund_payment(
    transaction_id: str,
    body: RefundPaymentRequest,
    principal: Principal = Depends(get_principal),
) -> RefundResultResponse:
    """Refund part or all of a payment (administrators only)."""
    command = RefundPayment(
        transaction_id=transaction_id,
        amount=body.amount,
        reason=body.reason,
        notes=body.notes,
        actor_id=principal.user_id,
        actor_role=principal.role,
    )
    return RefundResultResponse(**process(command))


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.post("", status_code=201, response_model=StockLevelResponse)
async def initialize_stock(
    body: InitializeStockRequest,
    principal: Principal = Depends(get_principal),
) -> StockLevelResponse:
    """Seed or restock a product's available quantity (administrators only)."""
    ensure_admin(principal.role, "manage stock")
    result = process(InitializeStock(product_id=body.product_id, available=body.available))
    return StockLevelResponse(**result)
