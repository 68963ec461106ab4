#storefront/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, text
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)

    is_ordered = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )
    order = relationship("OrderModel", back_populates="cart", uselist=False)

    # jeden otwarty koszyk na usera - pilnuje tego baza, nie zapytania
    __table_args__ = (
        Index(
            "uq_carts_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("is_ordered = false"),
            sqlite_where=text("is_ordered = 0"),
        ),
    )
