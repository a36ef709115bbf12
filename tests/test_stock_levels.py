import pytest

from catalog_inventory.exceptions import InvalidArgumentError
from catalog_inventory.services.stock_levels import stock_level_view


@pytest.fixture
def variants(make_product, make_variant):
    product = make_product(name="Hoodie")
    return {
        "empty": make_variant(product=product, stock=0, threshold=5),
        "at_threshold": make_variant(product=product, stock=5, threshold=5),
        "above_threshold": make_variant(product=product, stock=6, threshold=5),
        "plenty": make_variant(product=product, stock=40, threshold=5),
    }


def test_most_depleted_first(db, variants):
    levels, pagination = stock_level_view.list(db)

    assert [v.stock_quantity for v in levels] == [0, 5, 6, 40]
    assert pagination.total_items == 4
    assert levels[0].product.name == "Hoodie"


def test_low_stock_only_uses_inclusive_threshold(db, variants):
    levels, pagination = stock_level_view.list(db, low_stock_only=True)

    assert {v.id for v in levels} == {variants["empty"].id, variants["at_threshold"].id}
    assert all(v.is_low_stock for v in levels)
    assert pagination.total_items == 2


def test_stock_status_filters(db, variants):
    out_of_stock, _ = stock_level_view.list(db, stock_status="out_of_stock")
    in_stock, _ = stock_level_view.list(db, stock_status="in_stock")

    assert [v.id for v in out_of_stock] == [variants["empty"].id]
    assert len(in_stock) == 3
    assert all(v.stock_quantity > 0 for v in in_stock)


def test_filters_combine(db, variants):
    levels, _ = stock_level_view.list(db, low_stock_only=True, stock_status="in_stock")
    assert [v.id for v in levels] == [variants["at_threshold"].id]


def test_pagination(db, variants):
    levels, pagination = stock_level_view.list(db, page=2, page_size=3)

    assert [v.id for v in levels] == [variants["plenty"].id]
    assert pagination.total_pages == 2
    assert pagination.has_prev and not pagination.has_next


def test_invalid_stock_status(db, variants):
    with pytest.raises(InvalidArgumentError):
        stock_level_view.list(db, stock_status="backordered")


def test_empty_catalog(db):
    levels, pagination = stock_level_view.list(db)
    assert levels == []
    assert pagination.total_items == 0
