# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    size: str | None = Field(None, max_length=16, description="Rozmiar wariantu, np. M")
    quantity: int = Field(1, ge=1, description="Ilość produktu (domyślnie 1)")


class ItemUpdateIn(BaseModel):
    """Schema dla zmiany ilosci pozycji."""

    cart_items_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class ItemRemoveIn(BaseModel):
    """Schema dla zdjecia jednej sztuki (product, size)."""

    product_id: int = Field(..., gt=0)
    size: str | None = Field(None, max_length=16)


class CartItemOut(BaseModel):
    """Pozycja koszyka z aktualnym stanem wariantu (tylko do UI)."""

    cart_items_id: int
    product_id: int
    name: str | None = None
    size: str | None = None
    quantity: int
    price: Decimal
    variant_stock: int | None = None


class CartOut(BaseModel):
    """Koszyk (response). total jest orientacyjny - checkout liczy go od nowa."""

    cart_id: int
    items: List[CartItemOut]
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    order_id: int
    total_price: Decimal


class OrderLineOut(BaseModel):
    product_id: int
    name: str | None = None
    size: str | None = None
    quantity: int
    price: Decimal


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    order_id: int
    cart_id: int
    user_id: int
    status: str
    total_price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    items: List[OrderLineOut] = []


class OrderStatusIn(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)

    @field_validator("status")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Invalid status")
        return value


class OrderStatusOut(BaseModel):
    order_id: int
    status: str


class RecommendationOut(BaseModel):
    product_id: int
    name: str
    price: Decimal
    reason: str | None = None


class RecommendationsOut(BaseModel):
    products: List[RecommendationOut]
