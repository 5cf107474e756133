# backend/routes/cart.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from models.users import User
from models.cart import Cart
from routes.dependencies import get_cart_service
from schemas.cart import CartOut, CartItemOut
from services.cart_service import CartService
from services.results import ServiceResult

router = APIRouter(prefix="/cart", tags=["Cart"])

SESSION_HEADER = "X-Session-Token"


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _cart_to_out(cart: Optional[Cart], service: CartService, message: str = None, session_token: str = None) -> CartOut:
    items_out = []
    for it in (cart.items if cart else []):
        # Live catalog price; a product removed from the catalog shows as 0
        unit_price = Decimal(it.product.price) if it.product else Decimal("0.00")
        items_out.append(CartItemOut(
            id=it.id,
            product_id=it.product_id,
            name=it.product.name if it.product else "",
            quantity=it.quantity,
            unit_price=unit_price,
            line_total=(unit_price * it.quantity).quantize(Decimal("0.01")),
        ))
    return CartOut(
        items=items_out,
        total=service.cart_total(cart),
        message=message,
        session_token=session_token,
    )


def _error(result: ServiceResult) -> JSONResponse:
    return JSONResponse(status_code=int(result.status_code), content={"error": result.message})


def _audit(db: Session, request: Request, action: str, result: ServiceResult, *, user_id=None, session_token=None, meta=None):
    meta = dict(meta or {})
    if not result.success:
        meta["reason"] = result.failure.code if result.failure else None
    write_log(
        db,
        user_id=user_id,
        session_token=session_token,
        action=action,
        resource="cart",
        status="SUCCESS" if result.success else "FAIL",
        ip=_client_ip(request),
        meta=meta,
    )


# --- registered users ---

@router.get("", response_model=CartOut)
def get_cart(
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    cart = service.get_user_cart(current_user.id)
    return _cart_to_out(cart, service)


@router.post("/items/{product_id}", response_model=CartOut)
def add_to_cart(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    result = service.add_item(current_user.id, product_id)
    _audit(db, request, "CART_ADD", result, user_id=current_user.id, meta={"product_id": product_id})
    if not result.success:
        return _error(result)
    return _cart_to_out(service.get_user_cart(current_user.id), service, result.message)


@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    request: Request,
    quantity: int = Query(1),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    result = service.set_item_quantity(current_user.id, item_id, quantity)
    _audit(db, request, "CART_UPDATE", result, user_id=current_user.id, meta={"item_id": item_id, "quantity": quantity})
    if not result.success:
        return _error(result)
    return _cart_to_out(service.get_user_cart(current_user.id), service, result.message)


@router.delete("/products/{product_id}", response_model=CartOut)
def remove_from_cart(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
):
    result = service.decrement_item(current_user.id, product_id)
    _audit(db, request, "CART_REMOVE", result, user_id=current_user.id, meta={"product_id": product_id})
    if not result.success:
        return _error(result)
    return _cart_to_out(service.get_user_cart(current_user.id), service, result.message)


# --- anonymous sessions ---

@router.get("/session", response_model=CartOut)
def get_session_cart(
    session_token: Optional[str] = Header(None, alias=SESSION_HEADER),
    service: CartService = Depends(get_cart_service),
):
    cart = service.get_session_cart(session_token)
    return _cart_to_out(cart, service, session_token=cart.session_token if cart else None)


@router.post("/session/items/{product_id}", response_model=CartOut, status_code=201)
def add_to_session_cart(
    product_id: int,
    request: Request,
    response: Response,
    session_token: Optional[str] = Header(None, alias=SESSION_HEADER),
    db: Session = Depends(get_db),
    service: CartService = Depends(get_cart_service),
):
    result = service.add_session_item(session_token, product_id)
    _audit(db, request, "CART_ADD", result, session_token=result.session_token, meta={"product_id": product_id})
    if not result.success:
        return _error(result)
    response.headers[SESSION_HEADER] = result.session_token
    cart = service.get_session_cart(result.session_token)
    return _cart_to_out(cart, service, result.message, result.session_token)


@router.put("/session/items/{product_id}", response_model=CartOut)
def update_session_cart_item(
    product_id: int,
    request: Request,
    quantity: int = Query(1),
    session_token: Optional[str] = Header(None, alias=SESSION_HEADER),
    db: Session = Depends(get_db),
    service: CartService = Depends(get_cart_service),
):
    result = service.set_session_item_quantity(session_token, product_id, quantity)
    _audit(db, request, "CART_UPDATE", result, session_token=session_token, meta={"product_id": product_id, "quantity": quantity})
    if not result.success:
        return _error(result)
    return _cart_to_out(service.get_session_cart(session_token), service, result.message, session_token)


@router.delete("/session/items/{product_id}", response_model=CartOut)
def remove_from_session_cart(
    product_id: int,
    request: Request,
    session_token: Optional[str] = Header(None, alias=SESSION_HEADER),
    db: Session = Depends(get_db),
    service: CartService = Depends(get_cart_service),
):
    result = service.remove_session_item(session_token, product_id)
    _audit(db, request, "CART_REMOVE", result, session_token=session_token, meta={"product_id": product_id})
    if not result.success:
        return _error(result)
    return _cart_to_out(service.get_session_cart(session_token), service, result.message, session_token)
