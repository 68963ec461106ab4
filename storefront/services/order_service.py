# storefront/services/order_service.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import Forbidden, NotFound
from storefront.repos.order_repo import OrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Requester:
    """Tozsamosc z zewnetrznego auth - tylko id i flaga admina."""

    user_id: int
    is_admin: bool = False


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Zamowienia powstaja wylacznie w CheckoutService; tutaj odczyt i zmiana statusu.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    @staticmethod
    def _to_dict(order: OrderModel) -> dict:
        return {
            "order_id": order.id,
            "cart_id": order.cart_id,
            "user_id": order.cart.user_id,
            "status": order.status,
            "total_price": order.total_price,
            "created_at": order.created_at,
        }

    @staticmethod
    def _lines(order: OrderModel) -> list[dict]:
        return [
            {
                "product_id": i.product_id,
                "name": i.product.name if i.product else None,
                "size": i.size,
                "quantity": i.quantity,
                "price": i.price,
            }
            for i in order.cart.items
        ]

    def get_order(self, order_id: int, requester: Requester) -> dict:
        """
        Use Case: Pobranie zamówienia z pozycjami zamknietego koszyka (Query).
        Tylko wlasciciel albo admin.
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound("Order not found")

        if order.cart.user_id != requester.user_id and not requester.is_admin:
            raise Forbidden()

        data = self._to_dict(order)
        data["items"] = self._lines(order)
        return data

    def list_for_user(self, user_id: int, with_items: bool = False) -> list[dict]:
        orders = []
        for o in self.repo.list_orders(user_id=user_id):
            data = self._to_dict(o)
            if with_items:
                data["items"] = self._lines(o)
            orders.append(data)
        return orders

    def list_all(self) -> list[dict]:
        return [self._to_dict(o) for o in self.repo.list_orders()]

    def update_status(self, order_id: int, status: str) -> dict:
        """
        Nadpisuje status bez walidacji przejsc - brak zdefiniowanej maszyny stanow.
        """
        status = (status or "").strip()
        if not status:
            raise ValueError("Invalid status")

        order = self.repo.update_order_status(order_id, status)
        if not order:
            raise NotFound("Order not found")

        logger.info("Zmiana statusu zamowienia", order_id=order_id, status=status)
        return {"order_id": order.id, "status": order.status}
