import os

os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal

import fakeredis
import pytest
from sqlalchemy import select

from storefront.celery_worker import celery_app
from storefront.data.database import Base, make_engine, make_session_factory
from storefront.data.models import CartModel, CartItemModel, OrderModel, ProductModel
from storefront.repos.inventory_repo import InventoryRepo
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService

# taski celery wykonuja sie od razu, bez brokera
celery_app.conf.task_always_eager = True


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def lock_service():
    return LockService(client=fakeredis.FakeRedis(decode_responses=True), wait=0.2)


@pytest.fixture
def cart_service(session_factory, lock_service):
    session = session_factory()
    yield CartService(session, lock_service)
    session.close()


@pytest.fixture
def checkout_service(session_factory):
    session = session_factory()
    yield CheckoutService(session)
    session.close()


@pytest.fixture
def make_product(session_factory):
    """Tworzy produkt z wariantami {rozmiar: stock}, zwraca id."""

    def _make(name="Linen Shirt", price="10.00", variants=None):
        with session_factory() as s:
            product = ProductModel(name=name, price=Decimal(price), stock=0)
            s.add(product)
            s.flush()
            InventoryRepo(s).replace_variants(product.id, variants or {"M": 5})
            s.commit()
            return product.id

    return _make


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id, size):
        with session_factory() as s:
            variant = InventoryRepo(s).get_variant(product_id, size)
            return None if variant is None else variant.stock

    return _stock


@pytest.fixture
def product_stock(session_factory):
    def _stock(product_id):
        with session_factory() as s:
            return s.get(ProductModel, product_id).stock

    return _stock


@pytest.fixture
def set_variants(session_factory):
    def _set(product_id, variants):
        with session_factory() as s:
            InventoryRepo(s).replace_variants(product_id, variants)
            s.commit()

    return _set


@pytest.fixture
def set_price(session_factory):
    def _set(product_id, price):
        with session_factory() as s:
            s.get(ProductModel, product_id).price = Decimal(price)
            s.commit()

    return _set


@pytest.fixture
def open_carts(session_factory):
    def _carts(user_id):
        with session_factory() as s:
            return list(
                s.execute(
                    select(CartModel).where(CartModel.user_id == user_id, CartModel.is_ordered.is_(False))
                ).scalars()
            )

    return _carts


@pytest.fixture
def cart_lines(session_factory):
    def _lines(cart_id):
        with session_factory() as s:
            return [
                (i.product_id, i.size, i.quantity, i.price)
                for i in s.execute(
                    select(CartItemModel).where(CartItemModel.cart_id == cart_id).order_by(CartItemModel.id)
                ).scalars()
            ]

    return _lines


@pytest.fixture
def order_count(session_factory):
    def _count():
        with session_factory() as s:
            return len(list(s.execute(select(OrderModel)).scalars()))

    return _count


@pytest.fixture
def insert_line(session_factory):
    """Wstawia pozycje z pominieciem CartService (np. stare wiersze bez rozmiaru)."""

    def _insert(cart_id, product_id, size, quantity=1, price="10.00"):
        with session_factory() as s:
            s.add(
                CartItemModel(
                    cart_id=cart_id,
                    product_id=product_id,
                    size=size,
                    quantity=quantity,
                    price=Decimal(price),
                )
            )
            s.commit()

    return _insert

