# backend/routes/orders.py
import json
import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session, joinedload

from config import settings
from database import get_db
from utils.tokenJWT import get_current_user, role_required, is_admin, ADMIN_ROLE
from utils.audit import write_log
from utils.fondy_client import verify_callback_signature
from models.users import User
from models.order import Order, OrderItem
from routes.dependencies import get_order_service
from schemas.order import (
    CheckoutRequest, OrderCreatedResponse, OrderResponse, OrdersPage,
    OrderStatusPatch, OrderItemOut, AddressOut, PaymentOut,
)
from schemas.payment import PaymentCallback
from services.order_service import OrderService, parse_order_id

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


def _client_ip(request: Request):
    return request.client.host if request.client else None


# Map Order model to OrderResponse schema
def _order_to_out(order: Order) -> OrderResponse:
    items: List[OrderItemOut] = []
    for it in order.items:
        product_name = it.product.name if it.product else "Deleted product"
        items.append(OrderItemOut(
            product_id=it.product_id,
            product_name=product_name,
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=(Decimal(it.unit_price) * it.quantity).quantize(Decimal("0.01")),
        ))
    return OrderResponse(
        id=order.id,
        status=order.status,
        customer_name=order.customer_name,
        customer_surname=order.customer_surname,
        phone_number=order.phone_number,
        comment=order.comment,
        payment_type=order.payment_type,
        delivery_option=order.delivery_option,
        delivery_type=order.delivery_type,
        total_price=order.total_price,
        is_paid=order.is_paid,
        checkout_url=order.checkout_url,
        created_at=order.created_at,
        address=AddressOut.model_validate(order.address) if order.address else None,
        payment=PaymentOut.model_validate(order.payment) if order.payment else None,
        items=items,
    )


def _load_order(db: Session, order_id: str):
    return db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.address),
        joinedload(Order.payment),
    ).filter(Order.id == order_id).first()


# Create an order from the authenticated user's cart
@router.post("/post-order-auth", response_model=OrderCreatedResponse, status_code=201)
async def post_order_auth(
    payload: CheckoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    result = await service.create_order_authenticated(current_user.id, payload)

    write_log(
        db, user_id=current_user.id, action="ORDER_CREATE", resource="orders",
        status="SUCCESS" if result.success else "FAIL",
        ip=_client_ip(request),
        meta={
            "order_id": result.order_id,
            "payment_type": payload.payment_type.value,
            "reason": result.failure.code if result.failure else None,
        },
    )

    if not result.success:
        return JSONResponse(status_code=int(result.status_code), content={"error": result.message})
    return JSONResponse(
        status_code=int(result.status_code),
        content={"success": result.message, "order_id": result.order_id, "checkout_url": result.checkout_url},
    )


# Server callback from the payment provider
@router.post("/confirm-order")
async def confirm_order(
    request: Request,
    db: Session = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    body = await request.body()
    try:
        data = json.loads(body or b"{}")
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
    if not isinstance(data, dict):
        return JSONResponse(status_code=400, content={"error": "Invalid callback payload"})

    if settings.FONDY_VERIFY_CALLBACK_SIGNATURE and not verify_callback_signature(data, settings.FONDY_MERCHANT_PASSWORD):
        logger.warning("Rejected callback with bad signature for order %s", data.get("order_id"))
        write_log(
            db, action="ORDER_CONFIRM", resource="orders", status="FAIL",
            ip=_client_ip(request), meta={"order_id": data.get("order_id"), "reason": "bad_signature"},
        )
        return JSONResponse(status_code=403, content={"error": "Invalid signature"})

    try:
        callback = PaymentCallback.model_validate(data)
    except ValidationError as e:
        logger.warning("Malformed payment callback: %s", e.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid callback payload"})

    result = service.confirm_order(callback)

    write_log(
        db, action="ORDER_CONFIRM", resource="orders",
        status="SUCCESS" if result.success else "FAIL",
        ip=_client_ip(request),
        meta={
            "order_id": result.order_id or callback.order_id,
            "order_status": callback.order_status,
            "reason": result.failure.code if result.failure else None,
        },
    )

    if not result.success:
        return JSONResponse(status_code=int(result.status_code), content={"error": result.message})
    return {"success": result.message}


# List the current user's orders, newest first
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = db.query(Order).filter(Order.user_id == current_user.id)
    total = q.count()
    rows = q.options(
        joinedload(Order.items).joinedload(OrderItem.product),
        joinedload(Order.address),
        joinedload(Order.payment),
    ).order_by(Order.created_at.desc()).offset((page - 1) * page_size).limit(page_size).all()
    items = [_order_to_out(o) for o in rows]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    normalized = parse_order_id(order_id)
    o = _load_order(db, normalized) if normalized else None
    if not o or (o.user_id != current_user.id and not is_admin(current_user)):
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_to_out(o)


# Move a paid order along its delivery lifecycle (admin only)
@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ADMIN_ROLE)),
    service: OrderService = Depends(get_order_service),
):
    normalized = parse_order_id(order_id)
    if normalized is None:
        raise HTTPException(status_code=404, detail="Order not found")

    result = service.advance_status(normalized, payload.status)
    write_log(
        db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders",
        status="SUCCESS" if result.success else "FAIL",
        ip=_client_ip(request),
        meta={"order_id": normalized, "new": payload.status.value},
    )
    if not result.success:
        raise HTTPException(status_code=int(result.status_code), detail=result.message)

    return _order_to_out(_load_order(db, normalized))
