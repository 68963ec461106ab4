import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.domain.errors import EmptyCart, InsufficientStock, NoActiveCart
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService


class SilentNotifications:
    def send_order_notification(self, user_id, order_id):
        return True


def _run_concurrently(session_factory, user_ids):
    barrier = threading.Barrier(len(user_ids))

    def _checkout(user_id):
        with session_factory() as s:
            service = CheckoutService(s, notification_service=SilentNotifications())
            barrier.wait()
            return service.checkout(user_id)

    with ThreadPoolExecutor(max_workers=len(user_ids)) as pool:
        return list(pool.map(_checkout, user_ids))


@pytest.fixture
def fill_cart(session_factory, lock_service):
    def _fill(user_id, product_id, size, quantity):
        with session_factory() as s:
            CartService(s, lock_service).add_item(user_id, product_id, size, quantity)

    return _fill


def test_last_unit_goes_to_exactly_one_checkout(session_factory, make_product, fill_cart, stock_of, order_count):
    pid = make_product(variants={"M": 1})
    fill_cart(1, pid, "M", 1)
    fill_cart(2, pid, "M", 1)

    outcomes = _run_concurrently(session_factory, [1, 2])

    winners = [o for o in outcomes if o.ok]
    losers = [o for o in outcomes if not o.ok]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0].failure, InsufficientStock)
    assert losers[0].failure.available == 0
    assert stock_of(pid, "M") == 0
    assert order_count() == 1


def test_no_oversell_under_contention(session_factory, make_product, fill_cart, stock_of, order_count):
    pid = make_product(variants={"L": 3})
    users = list(range(10, 16))
    for user_id in users:
        fill_cart(user_id, pid, "L", 1)

    outcomes = _run_concurrently(session_factory, users)

    assert sum(1 for o in outcomes if o.ok) == 3
    assert all(isinstance(o.failure, InsufficientStock) for o in outcomes if not o.ok)
    assert stock_of(pid, "L") == 0
    assert order_count() == 3


def test_same_cart_checked_out_once(session_factory, make_product, fill_cart, stock_of, order_count):
    pid = make_product(variants={"M": 10})
    fill_cart(1, pid, "M", 2)

    outcomes = _run_concurrently(session_factory, [1, 1])

    assert sum(1 for o in outcomes if o.ok) == 1
    loser = next(o for o in outcomes if not o.ok)
    # zaleznie od momentu: koszyk juz zamkniety albo widoczny juz nowy, pusty
    assert isinstance(loser.failure, (NoActiveCart, EmptyCart))
    assert stock_of(pid, "M") == 8
    assert order_count() == 1
