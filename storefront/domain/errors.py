# storefront/domain/errors.py
from typing import Any


class ShopError(Exception):
    """
    Baza bledow domenowych.
    code - nazwa widoczna dla klienta, status_code - mapowanie na HTTP,
    details - dodatkowe pola (np. available przy braku towaru).
    """

    code = "ServerError"
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.details}


#bledy klienta
class MissingSize(ShopError):
    code = "MissingSize"
    status_code = 400
    default_message = "Size is required"


class InvalidVariant(ShopError):
    code = "InvalidVariant"
    status_code = 400
    default_message = "Invalid size for this product"


class NotFound(ShopError):
    code = "NotFound"
    status_code = 404
    default_message = "Not found"


class Forbidden(ShopError):
    code = "Forbidden"
    status_code = 403
    default_message = "Forbidden"


class InsufficientStock(ShopError):
    code = "InsufficientStock"
    status_code = 409

    def __init__(self, size: str, available: int, requested: int, **details: Any):
        super().__init__(
            f"Only {available} in stock for size {size}",
            size=size,
            available=available,
            requested=requested,
            **details,
        )

    @property
    def available(self) -> int:
        return self.details["available"]


#bledy stanu - user dodaje produkty i probuje jeszcze raz
class NoActiveCart(ShopError):
    code = "NoActiveCart"
    status_code = 409
    default_message = "No active cart"


class EmptyCart(ShopError):
    code = "EmptyCart"
    status_code = 409
    default_message = "Cart is empty"


class CartBusy(ShopError):
    code = "CartBusy"
    status_code = 409
    default_message = "Cart is being modified by another request, retry"


class ServerError(ShopError):
    pass
