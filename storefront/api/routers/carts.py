#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_cart_service, get_checkout_service, get_requester
from storefront.domain.errors import ShopError
from storefront.domain.schemas import (
    CartOut,
    CheckoutOut,
    ItemIn,
    ItemRemoveIn,
    ItemUpdateIn,
    RecommendationsOut,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.order_service import Requester

router = APIRouter(prefix="/cart", tags=["cart"])


def to_http(e: ShopError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.get("/", response_model=CartOut)
def read_cart(
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.read_cart(requester.user_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/add", response_model=CartOut, status_code=201)
def add_item(
    payload: ItemIn,
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_item(
            user_id=requester.user_id,
            product_id=payload.product_id,
            size=payload.size,
            quantity=payload.quantity,
        )
    except ShopError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "InvalidInput", "message": str(e)})


@router.post("/update", response_model=CartOut)
def update_item(
    payload: ItemUpdateIn,
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.update_item(requester.user_id, payload.cart_items_id, payload.quantity)
    except ShopError as e:
        raise to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": "InvalidInput", "message": str(e)})


@router.post("/remove", response_model=CartOut)
def remove_item(
    payload: ItemRemoveIn,
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(requester.user_id, payload.product_id, payload.size)
    except ShopError as e:
        raise to_http(e)


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    requester: Requester = Depends(get_requester),
    svc: CheckoutService = Depends(get_checkout_service),
):
    outcome = svc.checkout(requester.user_id)
    try:
        return outcome.unwrap()
    except ShopError as e:
        raise to_http(e)


@router.get("/recommendations", response_model=RecommendationsOut)
def recommendations(
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return {"products": svc.recommendations(requester.user_id)}
    except ShopError as e:
        raise to_http(e)


@router.delete("/{cart_items_id}", response_model=CartOut)
def delete_line(
    cart_items_id: int,
    requester: Requester = Depends(get_requester),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.delete_line(requester.user_id, cart_items_id)
    except ShopError as e:
        raise to_http(e)
