from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # suma stanow wariantow - tylko cache do wyswietlania, checkout go nie czyta
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    variants = relationship(
        "VariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="VariantModel.size",
    )
