# backend/services/results.py
from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Optional


class Failure(Enum):
    """Why a cart or order operation did not go through, with its HTTP class."""

    EMPTY_CART = ("empty_cart", HTTPStatus.BAD_REQUEST)
    ZERO_TOTAL = ("zero_total", HTTPStatus.BAD_REQUEST)
    INVALID_ADDRESS = ("invalid_address", HTTPStatus.BAD_REQUEST)
    ADDRESS_REQUIRED = ("address_required", HTTPStatus.BAD_REQUEST)
    INVALID_PAYMENT_TYPE = ("invalid_payment_type", HTTPStatus.BAD_REQUEST)
    INSUFFICIENT_STOCK = ("insufficient_stock", HTTPStatus.BAD_REQUEST)
    INVALID_CALLBACK = ("invalid_callback", HTTPStatus.BAD_REQUEST)
    NOT_FOUND = ("not_found", HTTPStatus.NOT_FOUND)
    CART_CHANGED = ("cart_changed", HTTPStatus.CONFLICT)
    INVALID_STATUS_TRANSITION = ("invalid_status_transition", HTTPStatus.CONFLICT)
    CALLBACK_CONFLICT = ("callback_conflict", HTTPStatus.CONFLICT)
    GATEWAY_ERROR = ("gateway_error", HTTPStatus.BAD_GATEWAY)
    INTERNAL_ERROR = ("internal_error", HTTPStatus.INTERNAL_SERVER_ERROR)

    def __init__(self, code: str, http_status: HTTPStatus):
        self.code = code
        self.http_status = http_status


@dataclass
class ServiceResult:
    success: bool
    message: str
    status_code: int = HTTPStatus.OK
    failure: Optional[Failure] = None
    order_id: Optional[str] = None
    checkout_url: Optional[str] = None
    session_token: Optional[str] = None

    @classmethod
    def ok(cls, message: str, status_code: int = HTTPStatus.OK, **extra) -> "ServiceResult":
        return cls(success=True, message=message, status_code=status_code, **extra)

    @classmethod
    def fail(cls, failure: Failure, message: str, **extra) -> "ServiceResult":
        return cls(success=False, message=message, status_code=failure.http_status, failure=failure, **extra)
