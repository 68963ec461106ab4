from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class VariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    size = Column(String(16), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("product_id", "size", name="uq_product_variants_product_size"),
        CheckConstraint("stock >= 0", name="ck_product_variants_stock_non_negative"),
    )
