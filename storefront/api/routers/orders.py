# storefront/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import (
    get_cart_service,
    get_checkout_service,
    get_order_service,
    get_requester,
    require_admin,
)
from storefront.api.routers.carts import to_http
from storefront.domain.errors import ShopError
from storefront.domain.schemas import (
    CartOut,
    CheckoutOut,
    OrderDetailOut,
    OrderOut,
    OrderStatusIn,
    OrderStatusOut,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import OrderService, Requester

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    requester: Requester = Depends(get_requester),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    To samo co POST /cart/checkout.
    """
    outcome = svc.checkout(requester.user_id)
    try:
        return outcome.unwrap()
    except ShopError as e:
        raise to_http(e)


@router.get("/", response_model=List[OrderOut])
def list_my_orders(
    requester: Requester = Depends(get_requester),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_for_user(requester.user_id)


@router.get("/all", response_model=List[OrderOut])
def list_all_orders(
    _: Requester = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_all()


@router.get("/user/{user_id}", response_model=List[OrderDetailOut])
def list_user_orders(
    user_id: int,
    _: Requester = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    return svc.list_for_user(user_id, with_items=True)


@router.get("/cart/active", response_model=Optional[CartOut])
def active_cart(
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    """
    Podglad otwartego koszyka; null gdy user jeszcze go nie ma.
    """
    return svc.peek_active_cart(requester.user_id)


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: int,
    requester: Requester = Depends(get_requester),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegóły zamówienia (wlasciciel albo admin).
    """
    try:
        return svc.get_order(order_id, requester)
    except ShopError as e:
        raise to_http(e)


@router.put("/{order_id}/status", response_model=OrderStatusOut)
def update_status(
    order_id: int,
    payload: OrderStatusIn,
    _: Requester = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    try:
        return svc.update_status(order_id, payload.status)
    except ShopError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "InvalidInput", "message": str(e)})
