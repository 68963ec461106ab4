# storefront/repos/cart_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart_by_user(self, user_id: int, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(
            CartModel.user_id == user_id,
            CartModel.is_ordered.is_(False),
        )
        if for_update:
            # row lock na koszyku - dwa checkouty tego samego koszyka ida po kolei
            stmt = stmt.with_for_update()
        return self.db.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def get_cart_items(self, cart_id: int, newest_first: bool = False) -> list[CartItemModel]:
        order = CartItemModel.id.desc() if newest_first else CartItemModel.id.asc()
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(order)
                .execution_options(populate_existing=True)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int, size: str | None) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                CartItemModel.size == size,
            )
        ).scalar_one_or_none()

    def get_cart_item_by_id(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == item_id,
                CartItemModel.cart_id == cart_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        # UPDATE carts SET ... WHERE id = :id AND version = :old AND is_ordered = false
        result = self.db.execute(
            update(CartModel)
            .where(
                CartModel.id == cart_id,
                CartModel.version == old_version,
                CartModel.is_ordered.is_(False),
            )
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
