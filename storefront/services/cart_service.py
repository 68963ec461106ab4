from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Any

import requests
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartBusy,
    InsufficientStock,
    InvalidVariant,
    MissingSize,
    NotFound,
    ServerError,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.inventory_repo import InventoryRepo
from storefront.services.lock_service import LockService
from storefront.services.recommendation_client import RecommendationClient
from storefront.utils.retry import conflict_retry
from storefront.utils.sizes import normalize_size
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

MAX_RECOMMENDATIONS = 3
CATALOG_SNAPSHOT_SIZE = 30


class CartService:
    """
    Use case'y koszyka:
    commands (add, update, remove, delete) - pod lockiem usera + optimistic locking na version
    query (read) - tylko odczyt, stock wariantu dolaczony dla UI

    Sprawdzenia stanu magazynowego w koszyku sa tylko podpowiedzia dla usera,
    o tym czy towar jest decyduje checkout.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        recommendation_client: RecommendationClient | None = None,
    ):
        self.db = db
        self.repo = CartRepo(db)
        self.inventory = InventoryRepo(db)
        self.lock_service = lock_service
        self.recommendation_client = recommendation_client

    @conflict_retry()
    def get_or_create_active_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_active_cart_by_user(user_id)
        if existing:
            return existing

        try:
            created = self.repo.create_cart(CartModel(user_id=user_id, is_ordered=False, version=1))
            self.repo.commit()
        except IntegrityError:
            # rownolegly request zalozyl koszyk pierwszy - retry odczyta jego koszyk
            self.repo.rollback()
            logger.info("Wyscig przy tworzeniu koszyka, ponawiam", user_id=user_id)
            raise

        logger.info("Utworzono nowy koszyk", cart_id=created.id, user_id=user_id)
        return created

    #query - odczyt
    def read_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_active_cart(user_id)
        return self._cart_view(cart)

    def peek_active_cart(self, user_id: int) -> Dict[str, Any] | None:
        """Podglad otwartego koszyka bez zakladania nowego."""
        cart = self.repo.get_active_cart_by_user(user_id)
        if cart is None:
            self.repo.commit()
            return None
        return self._cart_view(cart)

    def _cart_view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id, newest_first=True)

        lines = []
        for item in items:
            size = normalize_size(item.size)
            variant = self.inventory.get_variant(item.product_id, size) if size else None

            lines.append(
                {
                    "cart_items_id": item.id,
                    "product_id": item.product_id,
                    "name": item.product.name if item.product else None,
                    "size": item.size,
                    "quantity": item.quantity,
                    "price": item.price,
                    "variant_stock": variant.stock if variant else None,
                }
            )

        total = sum((i.price * i.quantity for i in items), Decimal("0.00"))

        # konczymy transakcje odczytu, zeby nie trzymac locka bazy
        self.repo.commit()

        return {
            "cart_id": cart.id,
            "items": lines,
            "total": total,
        }

    #commands
    @contextmanager
    def _mutation(self, user_id: int):
        with self.lock_service.cart_lock(user_id):
            try:
                cart = self.get_or_create_active_cart(user_id)
                yield cart

                # Optimistic locking
                # np w bazie update set version 2 where id 1 and version 1 and is_ordered = false
                rowcount = self.repo.update_cart_version(
                    cart_id=cart.id,
                    old_version=cart.version,
                    new_data={"version": cart.version + 1},
                )
                if rowcount == 0:
                    raise CartBusy("Cart was modified by another operation")

                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise

    def _check_stock(self, product_id: int, size: str | None, requested: int):
        if not size:
            raise MissingSize("Item has no size")

        variant = self.inventory.get_variant(product_id, size)
        if not variant:
            raise InvalidVariant()

        if variant.stock <= 0 or requested > variant.stock:
            raise InsufficientStock(size=size, available=variant.stock, requested=requested)

        return variant

    def add_item(self, user_id: int, product_id: int, size: str | None, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        size = normalize_size(size)
        if not size:
            raise MissingSize()

        with self._mutation(user_id) as cart:
            product = self.inventory.get_product(product_id)
            if not product:
                raise NotFound("Product not found")

            existing = self.repo.get_cart_item(cart.id, product_id, size)
            existing_qty = existing.quantity if existing else 0
            new_qty = existing_qty + quantity

            self._check_stock(product_id, size, new_qty)

            if existing:
                logger.info(
                    "Produkt juz jest w koszyku, zwiekszam ilosc",
                    cart_id=cart.id,
                    product_id=product_id,
                    size=size,
                    quantity=new_qty,
                )
                # cena zostaje z pierwszego dodania
                existing.quantity = new_qty
            else:
                logger.info("Dodaje nowy produkt", cart_id=cart.id, product_id=product_id, size=size)
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=product_id,
                        size=size,
                        quantity=quantity,
                        price=product.price,
                    )
                )

        return self.read_cart(user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        with self._mutation(user_id) as cart:
            item = self.repo.get_cart_item_by_id(cart.id, item_id)
            if not item:
                raise NotFound("Item not found")

            # zmniejszenie zawsze przechodzi, zwiekszenie sprawdza aktualny stock
            if quantity > item.quantity:
                self._check_stock(item.product_id, normalize_size(item.size), quantity)

            logger.info("Zmiana ilosci", cart_id=cart.id, item_id=item_id, old=item.quantity, new=quantity)
            item.quantity = quantity

        return self.read_cart(user_id)

    def remove_item(self, user_id: int, product_id: int, size: str | None) -> Dict[str, Any]:
        size = normalize_size(size)
        if not size:
            raise MissingSize()

        with self._mutation(user_id) as cart:
            item = self.repo.get_cart_item(cart.id, product_id, size)
            if not item:
                raise NotFound("Item not found")

            if item.quantity > 1:
                item.quantity -= 1
            else:
                logger.info("Usuwanie produktu", cart_id=cart.id, product_id=product_id, size=size)
                self.repo.delete_cart_item(item)

        return self.read_cart(user_id)

    def delete_line(self, user_id: int, item_id: int) -> Dict[str, Any]:
        with self._mutation(user_id) as cart:
            item = self.repo.get_cart_item_by_id(cart.id, item_id)
            if not item:
                raise NotFound("Item not found")

            logger.info("Usuwanie pozycji", cart_id=cart.id, item_id=item_id)
            self.repo.delete_cart_item(item)

        return self.read_cart(user_id)

    def recommendations(self, user_id: int) -> list[Dict[str, Any]]:
        client = self.recommendation_client
        if client is None or not client.enabled:
            return []

        cart = self.read_cart(user_id)
        products = self.inventory.list_products(limit=CATALOG_SNAPSHOT_SIZE)

        catalog = [
            {
                "product_id": p.id,
                "name": p.name,
                "price": str(p.price),
                "variants": [{"size": v.size, "stock": v.stock} for v in p.variants],
            }
            for p in products
        ]
        # zadnej transakcji otwartej podczas wywolania sieciowego
        self.repo.commit()

        if not catalog:
            return []

        snapshot = {
            "cart": [
                {
                    "product_id": i["product_id"],
                    "size": i["size"],
                    "quantity": i["quantity"],
                }
                for i in cart["items"]
            ],
            "catalog": catalog,
        }

        try:
            ranked = client.recommend(snapshot)
        except requests.RequestException as e:
            logger.error("Rekomender niedostepny", user_id=user_id, error=repr(e))
            raise ServerError("Recommendations unavailable") from e

        by_id = {p.id: p for p in products}
        suggestions = []
        for entry in ranked:
            try:
                product = by_id.get(int(entry.get("product_id")))
            except (TypeError, ValueError):
                continue
            # tylko prawdziwe produkty z katalogu
            if product is None:
                continue
            suggestions.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "reason": entry.get("reason"),
                }
            )

        return suggestions[:MAX_RECOMMENDATIONS]
