from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    # nullable tylko dla starych wierszy, nowe zawsze maja rozmiar
    size = Column(String(16), nullable=True)

    quantity = Column(Integer, nullable=False)
    # cena z momentu dodania do koszyka
    price = Column(Numeric(10, 2), nullable=False)

    cart = relationship("CartModel", back_populates="items")
    product = relationship("ProductModel")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "size", name="uq_cart_items_cart_product_size"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )
