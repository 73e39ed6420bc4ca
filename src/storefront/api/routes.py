"""FastAPI routes for the Storefront domain: checkout, orders, coupons, guard."""

import json

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    BanIpRequest,
    CouponIdResponse,
    CreateCouponRequest,
    EligibilityResponse,
    OrderItemResponse,
    OrderResponse,
    OrderTimelineResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    RejectPaymentRequest,
    SetCouponActiveRequest,
    StatusResponse,
    TimelineEntryResponse,
    UpdateOrderStatusRequest,
    UpdateSettingsRequest,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from storefront.cart.resolution import CartLine
from storefront.coupon.discount import validate_coupon
from storefront.coupon.management import CreateCoupon, SetCouponActive
from storefront.exceptions import InvalidTransition, OrderNotFound
from storefront.guard.abuse import checkout_eligibility
from storefront.guard.client_ip import client_ip_from_headers
from storefront.guard.management import BanIp, UnbanIp
from storefront.order.lifecycle import DeleteOrder, RejectPayment, UpdateOrderStatus, VerifyPayment
from storefront.order.order import Order
from storefront.order.placement import CheckoutRequest, PlacementFailed, place_order
from storefront.projections.order_timeline import timeline_for
from storefront.settings.management import UpdateSettings

_FAILURE_STATUS = {
    "validation": 422,
    "resolution": 422,
    "guard": 409,
    "unavailable": 503,
}


def _client_ip(request: Request) -> str | None:
    peer = request.client.host if request.client else None
    return client_ip_from_headers(request.headers, fallback=peer)


def _process(command_cls, **fields):
    """Build and run a command, translating domain failures into HTTP errors."""
    try:
        return current_domain.process(command_cls(**fields), asynchronous=False)
    except (OrderNotFound, ObjectNotFoundError) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.messages) from exc


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        subtotal=order.subtotal,
        discount_amount=order.discount_amount or 0.0,
        shipping_cost=order.shipping_cost or 0.0,
        total=order.total,
        coupon_code=order.coupon_code,
        created_at=order.created_at,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                title=item.title,
                color=item.color,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
            )
            for item in order.items
        ],
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=PlaceOrderResponse)
async def create_order(body: PlaceOrderRequest, request: Request):
    """Place an order from the shopper's cart.

    Failures come back in the checkout page's shape: ``{error, code?,
    cooldownRemainingSeconds?, cooldownMinutes?}``.
    """
    outcome = place_order(
        CheckoutRequest(
            items=[CartLine.from_dict(line.model_dump()) for line in body.items],
            full_name=body.full_name,
            phone=body.phone,
            address=body.address,
            payment_method=body.payment_method,
            city=body.city,
            shipping_zone=body.shipping_zone,
            email=body.email,
            alt_phone=body.alt_phone,
            delivery_note=body.delivery_note,
            sender_number=body.sender_number,
            transaction_id=body.transaction_id,
            coupon_code=body.coupon_code,
            user_id=body.user_id,
            client_ip=_client_ip(request),
        )
    )
    if isinstance(outcome, PlacementFailed):
        return JSONResponse(status_code=_FAILURE_STATUS[outcome.kind], content=outcome.to_dict())
    return PlaceOrderResponse(**outcome.to_dict())


@order_router.get("/eligibility", response_model=EligibilityResponse, response_model_exclude_none=True)
async def get_checkout_eligibility(request: Request) -> EligibilityResponse:
    """Pre-flight check: may this network address place an order right now?"""
    return EligibilityResponse(**checkout_eligibility(_client_ip(request)).to_dict())


@order_router.get("/by-number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(order_number: str) -> OrderResponse:
    order = current_domain.repository_for(Order).find_by_number(order_number)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_number}")
    return _order_response(order)


@order_router.get("/{order_id}/timeline", response_model=OrderTimelineResponse)
async def get_order_timeline(order_id: str) -> OrderTimelineResponse:
    """History of an order, oldest first. Still available after the order is deleted."""
    entries = timeline_for(order_id)
    if not entries:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return OrderTimelineResponse(
        order_id=order_id,
        entries=[
            TimelineEntryResponse(event_type=e.event_type, description=e.description, occurred_at=e.occurred_at)
            for e in entries
        ],
    )


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> StatusResponse:
    status = _process(UpdateOrderStatus, order_id=order_id, status=body.status.strip().lower())
    return StatusResponse(status=status)


@order_router.put("/{order_id}/payment/verify", response_model=StatusResponse)
async def verify_payment(order_id: str) -> StatusResponse:
    return StatusResponse(status=_process(VerifyPayment, order_id=order_id))


@order_router.put("/{order_id}/payment/reject", response_model=StatusResponse)
async def reject_payment(order_id: str, body: RejectPaymentRequest) -> StatusResponse:
    return StatusResponse(status=_process(RejectPayment, order_id=order_id, reason=body.reason))


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def delete_order(order_id: str) -> StatusResponse:
    _process(DeleteOrder, order_id=order_id)
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("/validate", response_model=ValidateCouponResponse, response_model_exclude_none=True)
async def validate_coupon_code(body: ValidateCouponRequest) -> ValidateCouponResponse:
    return ValidateCouponResponse(**validate_coupon(body.code, body.subtotal).to_dict())


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    coupon_id = _process(
        CreateCoupon,
        code=body.code,
        coupon_type=body.type,
        value=body.value,
        min_order_amount=body.min_order_amount,
        max_uses=body.max_uses,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        is_active=body.is_active,
    )
    return CouponIdResponse(coupon_id=coupon_id)


@coupon_router.put("/{coupon_id}/active", response_model=StatusResponse)
async def set_coupon_active(coupon_id: str, body: SetCouponActiveRequest) -> StatusResponse:
    _process(SetCouponActive, coupon_id=coupon_id, is_active=body.is_active)
    return StatusResponse(status="active" if body.is_active else "inactive")


# ---------------------------------------------------------------------------
# Admin Router (ban list, settings)
# ---------------------------------------------------------------------------
admin_router = APIRouter(tags=["admin"])


@admin_router.post("/ip-bans", status_code=201, response_model=StatusResponse)
async def ban_ip(body: BanIpRequest) -> StatusResponse:
    _process(BanIp, ip_address=body.ip_address, reason=body.reason)
    return StatusResponse(status="banned")


@admin_router.delete("/ip-bans/{ip_address}", response_model=StatusResponse)
async def unban_ip(ip_address: str) -> StatusResponse:
    _process(UnbanIp, ip_address=ip_address)
    return StatusResponse(status="unbanned")


@admin_router.put("/settings", response_model=StatusResponse)
async def update_settings(body: UpdateSettingsRequest) -> StatusResponse:
    values = {key: str(value).lower() if isinstance(value, bool) else str(value) for key, value in body.values.items()}
    _process(UpdateSettings, values=json.dumps(values))
    return StatusResponse(status="updated")
