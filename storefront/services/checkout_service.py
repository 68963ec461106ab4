# storefront/services/checkout_service.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.domain.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidVariant,
    MissingSize,
    NoActiveCart,
    ServerError,
    ShopError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import DecrementStatus, InventoryRepo
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.retry import transaction_retry
from storefront.utils.sizes import normalize_size
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")


class StaleCart(Exception):
    """Koszyk zmienil sie miedzy odczytem a zamknieciem - cala proba od nowa."""


@dataclass
class CheckoutOutcome:
    order_id: int | None = None
    total_price: Decimal | None = None
    failure: ShopError | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> dict:
        if self.failure is not None:
            raise self.failure
        return {"order_id": self.order_id, "total_price": self.total_price}


@dataclass
class _CheckoutContext:
    user_id: int
    cart: CartModel | None = None
    items: list[CartItemModel] = field(default_factory=list)
    total_price: Decimal = Decimal("0.00")
    order: OrderModel | None = None


Step = Callable[[_CheckoutContext], ShopError | None]


class CheckoutService:
    """
    Koszyk -> zamowienie w jednej transakcji.

    Kroki leca po kolei na jednej sesji; kazdy zwraca None albo blad.
    Pierwszy blad = rollback calej transakcji (lacznie z juz zdjetym stockiem)
    i zwrot bledu jako wartosci w CheckoutOutcome.

    Konflikty wspolbieznosci (serialization failure, deadlock, zmieniony koszyk)
    powtarzaja cala probe; po wyczerpaniu prob -> ServerError.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.carts = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.orders = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

        self.steps: tuple[Step, ...] = (
            self._lock_cart,
            self._load_items,
            self._reserve_stock,
            self._price_snapshot,
            self._create_order,
            self._close_cart,
            self._open_successor,
        )

    def checkout(self, user_id: int) -> CheckoutOutcome:
        try:
            outcome = self._attempt_with_retry(user_id)
        except (SQLAlchemyError, StaleCart) as e:
            self.db.rollback()
            logger.error("Checkout nie powiodl sie po ponowieniach", user_id=user_id, error=repr(e))
            return CheckoutOutcome(failure=ServerError())

        if outcome.ok:
            # po commicie, poza transakcja
            self.notification_service.send_order_notification(user_id, outcome.order_id)

        return outcome

    @transaction_retry(StaleCart)
    def _attempt_with_retry(self, user_id: int) -> CheckoutOutcome:
        return self._attempt(user_id)

    def _attempt(self, user_id: int) -> CheckoutOutcome:
        ctx = _CheckoutContext(user_id=user_id)

        try:
            for step in self.steps:
                failure = step(ctx)
                if failure is not None:
                    self.db.rollback()
                    logger.info(
                        "Checkout przerwany",
                        user_id=user_id,
                        step=step.__name__,
                        failure=failure.code,
                        **failure.details,
                    )
                    return CheckoutOutcome(failure=failure)

            self.db.commit()
        except (SQLAlchemyError, StaleCart):
            self.db.rollback()
            raise

        logger.info(
            "Checkout zatwierdzony",
            user_id=user_id,
            cart_id=ctx.cart.id,
            order_id=ctx.order.id,
            total_price=str(ctx.total_price),
        )
        return CheckoutOutcome(order_id=ctx.order.id, total_price=ctx.total_price)

    #1
    def _lock_cart(self, ctx: _CheckoutContext) -> ShopError | None:
        ctx.cart = self.carts.get_active_cart_by_user(ctx.user_id, for_update=True)
        if ctx.cart is None:
            return NoActiveCart()
        return None

    #2
    def _load_items(self, ctx: _CheckoutContext) -> ShopError | None:
        # kolejnosc dodania - deterministyczne raportowanie pierwszego braku
        ctx.items = self.carts.get_cart_items(ctx.cart.id)
        if not ctx.items:
            return EmptyCart()
        return None

    #3
    def _reserve_stock(self, ctx: _CheckoutContext) -> ShopError | None:
        touched: list[int] = []

        for item in ctx.items:
            size = normalize_size(item.size)
            if not size:
                return MissingSize("Item has no size")

            result = self.inventory.conditional_decrement(item.product_id, size, item.quantity)

            if result.status is DecrementStatus.NOT_FOUND:
                return InvalidVariant()

            if result.status is DecrementStatus.INSUFFICIENT:
                return InsufficientStock(
                    size=size,
                    available=result.available,
                    requested=item.quantity,
                    product_id=item.product_id,
                )

            if item.product_id not in touched:
                touched.append(item.product_id)

        for product_id in touched:
            self.inventory.refresh_product_stock(product_id)

        return None

    #4
    def _price_snapshot(self, ctx: _CheckoutContext) -> ShopError | None:
        # cena z koszyka, nie z katalogu
        total = sum((i.price * i.quantity for i in ctx.items), Decimal("0.00"))
        ctx.total_price = Decimal(total).quantize(CENTS)
        return None

    #5
    def _create_order(self, ctx: _CheckoutContext) -> ShopError | None:
        ctx.order = self.orders.create_order(
            OrderModel(
                cart_id=ctx.cart.id,
                total_price=ctx.total_price,
                status="PENDING",
            )
        )
        return None

    #6
    def _close_cart(self, ctx: _CheckoutContext) -> ShopError | None:
        rowcount = self.carts.update_cart_version(
            cart_id=ctx.cart.id,
            old_version=ctx.cart.version,
            new_data={"is_ordered": True, "version": ctx.cart.version + 1},
        )
        if rowcount == 0:
            raise StaleCart(f"cart {ctx.cart.id} changed during checkout")
        return None

    #7
    def _open_successor(self, ctx: _CheckoutContext) -> ShopError | None:
        self.carts.create_cart(CartModel(user_id=ctx.user_id, is_ordered=False, version=1))
        return None
