# storefront/repos/inventory_repo.py
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.product import ProductModel
from storefront.data.models.variant import VariantModel
from storefront.utils.sizes import normalize_size


class DecrementStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INSUFFICIENT = "insufficient"


@dataclass(frozen=True)
class DecrementResult:
    status: DecrementStatus
    available: int | None = None

    @property
    def ok(self) -> bool:
        return self.status is DecrementStatus.OK


class InventoryRepo:
    """
    Stany magazynowe per (produkt, rozmiar).
    Zadna metoda nie robi commita - dziala w transakcji wolajacego.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self, limit: int = 30) -> list[ProductModel]:
        return list(
            self.db.execute(
                select(ProductModel)
                .options(selectinload(ProductModel.variants))
                .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
                .limit(limit)
            ).scalars()
        )

    def get_variant(self, product_id: int, size: str) -> VariantModel | None:
        # populate_existing - zawsze swiezy stock z bazy, nie z identity map
        return self.db.execute(
            select(VariantModel)
            .where(VariantModel.product_id == product_id, VariantModel.size == size)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def conditional_decrement(self, product_id: int, size: str, amount: int) -> DecrementResult:
        if amount < 1:
            raise ValueError("amount must be >= 1")

        # UPDATE ... SET stock = stock - n WHERE ... AND stock >= n
        # sprawdzenie i zmniejszenie to jedna operacja w bazie, nie ma okna check-then-act
        result = self.db.execute(
            update(VariantModel)
            .where(
                VariantModel.product_id == product_id,
                VariantModel.size == size,
                VariantModel.stock >= amount,
            )
            .values(stock=VariantModel.stock - amount)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 1:
            return DecrementResult(DecrementStatus.OK)

        variant = self.get_variant(product_id, size)
        if variant is None:
            return DecrementResult(DecrementStatus.NOT_FOUND)

        return DecrementResult(DecrementStatus.INSUFFICIENT, available=variant.stock)

    def refresh_product_stock(self, product_id: int) -> None:
        total = (
            select(func.coalesce(func.sum(VariantModel.stock), 0))
            .where(VariantModel.product_id == product_id)
            .scalar_subquery()
        )
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock=total)
            .execution_options(synchronize_session=False)
        )

    def replace_variants(self, product_id: int, variants: dict[str, int]) -> list[VariantModel]:
        """
        Podmienia caly zestaw wariantow produktu (jak przy edycji produktu przez admina)
        i przelicza products.stock.
        """
        normalized: dict[str, int] = {}
        for raw_size, stock in variants.items():
            size = normalize_size(raw_size)
            if size is None:
                raise ValueError("Invalid variant size")
            if int(stock) < 0:
                raise ValueError("Invalid variant stock")
            normalized[size] = int(stock)

        self.db.execute(
            delete(VariantModel)
            .where(VariantModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )

        created = [
            VariantModel(product_id=product_id, size=size, stock=stock)
            for size, stock in normalized.items()
        ]
        self.db.add_all(created)
        self.db.flush()

        self.refresh_product_stock(product_id)
        return created
