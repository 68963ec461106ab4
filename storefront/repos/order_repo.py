# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from storefront.data.models.cart import CartModel
from storefront.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        # bez commita - zamowienie powstaje w transakcji checkoutu
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(joinedload(OrderModel.cart))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()

    def list_orders(self, user_id: int | None = None) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .join(OrderModel.cart)
            .options(joinedload(OrderModel.cart))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        if user_id is not None:
            stmt = stmt.where(CartModel.user_id == user_id)
        return list(self.db.execute(stmt).scalars())

    def update_order_status(self, order_id: int, status: str) -> OrderModel | None:
        order = self.get_order(order_id)
        if order:
            order.status = status
            self.db.commit()
        return order
