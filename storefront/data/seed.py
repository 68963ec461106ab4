# storefront/data/seed.py
from decimal import Decimal

from storefront.data.database import Base, SessionLocal, engine
from storefront.data.models import ProductModel
from storefront.repos.inventory_repo import InventoryRepo
from storefront.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

# dev katalog: nazwa, cena, {rozmiar: stock}
PRODUCTS = [
    ("Linen Shirt", Decimal("10.00"), {"S": 5, "M": 3, "L": 2}),
    ("Wool Socks", Decimal("5.50"), {"M": 20, "L": 20}),
    ("Denim Jacket", Decimal("89.00"), {"M": 1, "XL": 4}),
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            logger.info("Katalog juz istnieje, pomijam seed")
            return

        inventory = InventoryRepo(db)
        for name, price, variants in PRODUCTS:
            product = ProductModel(name=name, price=price, stock=0)
            db.add(product)
            db.flush()
            inventory.replace_variants(product.id, variants)

        db.commit()
        logger.info("Seed zakonczony", products=len(PRODUCTS))
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    seed()
