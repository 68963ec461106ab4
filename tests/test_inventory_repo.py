import pytest

from storefront.repos.inventory_repo import DecrementStatus, InventoryRepo
from storefront.utils.sizes import normalize_size


@pytest.fixture
def inventory(session_factory):
    session = session_factory()
    yield InventoryRepo(session)
    session.rollback()
    session.close()


def test_normalize_size():
    assert normalize_size(" m ") == "M"
    assert normalize_size("xl") == "XL"
    assert normalize_size("   ") is None
    assert normalize_size(None) is None


def test_conditional_decrement_ok(make_product, inventory, stock_of):
    pid = make_product(variants={"M": 5})

    result = inventory.conditional_decrement(pid, "M", 2)
    inventory.db.commit()

    assert result.ok
    assert result.status is DecrementStatus.OK
    assert stock_of(pid, "M") == 3


def test_conditional_decrement_takes_last_units(make_product, inventory, stock_of):
    pid = make_product(variants={"M": 2})

    assert inventory.conditional_decrement(pid, "M", 2).ok
    inventory.db.commit()

    assert stock_of(pid, "M") == 0


def test_conditional_decrement_insufficient_reports_available(make_product, inventory, stock_of):
    pid = make_product(variants={"M": 1})

    result = inventory.conditional_decrement(pid, "M", 2)
    inventory.db.commit()

    assert not result.ok
    assert result.status is DecrementStatus.INSUFFICIENT
    assert result.available == 1
    assert stock_of(pid, "M") == 1


def test_conditional_decrement_unknown_variant(make_product, inventory):
    pid = make_product(variants={"M": 1})

    result = inventory.conditional_decrement(pid, "XXL", 1)

    assert result.status is DecrementStatus.NOT_FOUND
    assert result.available is None


def test_conditional_decrement_rejects_non_positive_amount(make_product, inventory):
    pid = make_product()

    with pytest.raises(ValueError):
        inventory.conditional_decrement(pid, "M", 0)


def test_get_variant_sees_changes_from_other_sessions(make_product, inventory, set_variants):
    pid = make_product(variants={"M": 5})
    assert inventory.get_variant(pid, "M").stock == 5
    inventory.db.commit()

    set_variants(pid, {"M": 1})

    assert inventory.get_variant(pid, "M").stock == 1


def test_refresh_product_stock_sums_variants(make_product, inventory, product_stock):
    pid = make_product(variants={"S": 2, "M": 3})
    assert product_stock(pid) == 5

    inventory.conditional_decrement(pid, "S", 2)
    inventory.refresh_product_stock(pid)
    inventory.db.commit()

    assert product_stock(pid) == 3


def test_replace_variants_normalizes_sizes(make_product, inventory, stock_of, product_stock):
    pid = make_product(variants={"M": 1})

    inventory.replace_variants(pid, {" s ": 4, "xl": 2})
    inventory.db.commit()

    assert stock_of(pid, "S") == 4
    assert stock_of(pid, "XL") == 2
    assert stock_of(pid, "M") is None
    assert product_stock(pid) == 6


@pytest.mark.parametrize("variants", [{"": 1}, {"M": -1}])
def test_replace_variants_rejects_bad_input(make_product, inventory, variants):
    pid = make_product()

    with pytest.raises(ValueError):
        inventory.replace_variants(pid, variants)
