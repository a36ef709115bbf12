"""
Ledger history: filters, ordering and pagination.
"""
from datetime import datetime, timedelta, timezone

import pytest

from catalog_inventory.exceptions import InvalidArgumentError
from catalog_inventory.services.ledger_query import ledger_query
from catalog_inventory.services.transaction_processor import TransactionProcessor


class FixedClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger(db, clock, make_product, make_variant):
    """
    Two products, three variants, seven entries over four days:

        2024-03-01 09:00  a1 stock_in  10
        2024-03-01 15:00  a2 stock_in   5
        2024-03-02 09:00  a1 stock_out  3
        2024-03-02 23:30  b1 stock_in   8
        2024-03-03 09:00  a1 adjustment -> 20
        2024-03-04 00:00  b1 returned   1
        2024-03-04 12:00  a2 stock_out  2
    """
    processor = TransactionProcessor(clock=clock)
    product_a = make_product(name="Tee")
    product_b = make_product(name="Mug")
    a1 = make_variant(product=product_a, stock=0)
    a2 = make_variant(product=product_a, stock=0)
    b1 = make_variant(product=product_b, stock=0)

    def apply(variant, type, quantity):
        processor.apply(db, variant_id=variant.id, product_id=variant.product_id, type=type, quantity=quantity)

    apply(a1, "stock_in", 10)
    clock.advance(hours=6)
    apply(a2, "stock_in", 5)
    clock.advance(hours=18)
    apply(a1, "stock_out", 3)
    clock.advance(hours=14, minutes=30)
    apply(b1, "stock_in", 8)
    clock.advance(hours=9, minutes=30)
    apply(a1, "adjustment", 20)
    clock.advance(hours=15)
    apply(b1, "returned", 1)
    clock.advance(hours=12)
    apply(a2, "stock_out", 2)

    return {"product_a": product_a, "product_b": product_b, "a1": a1, "a2": a2, "b1": b1}


class TestLedgerQuery:
    def test_newest_first(self, db, ledger):
        entries, pagination = ledger_query.list(db)

        assert len(entries) == 7
        created = [e.created_at for e in entries]
        assert created == sorted(created, reverse=True)
        assert entries[0].type == "stock_out"
        assert entries[-1].type == "stock_in"
        assert pagination.total_items == 7

    def test_same_timestamp_newer_id_first(self, db, make_variant):
        fixed = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        processor = TransactionProcessor(clock=lambda: fixed)
        variant = make_variant(stock=0)
        for _ in range(3):
            processor.apply(db, variant_id=variant.id, product_id=variant.product_id, type="stock_in", quantity=1)

        entries, _ = ledger_query.list(db, variant_id=variant.id)
        ids = [e.id for e in entries]
        assert ids == sorted(ids, reverse=True)

    def test_filter_by_product(self, db, ledger):
        entries, pagination = ledger_query.list(db, product_id=ledger["product_a"].id)

        assert len(entries) == 5
        assert {e.product_id for e in entries} == {ledger["product_a"].id}
        assert pagination.total_items == 5

    def test_filter_by_variant(self, db, ledger):
        entries, _ = ledger_query.list(db, variant_id=ledger["a1"].id)

        assert [e.type for e in entries] == ["adjustment", "stock_out", "stock_in"]
        assert entries[0].quantity == 13
        assert entries[0].new_quantity == 20

    def test_filter_by_type(self, db, ledger):
        entries, _ = ledger_query.list(db, type="stock_in")
        assert len(entries) == 3
        assert {e.type for e in entries} == {"stock_in"}

    def test_combined_filters(self, db, ledger):
        entries, _ = ledger_query.list(db, product_id=ledger["product_a"].id, type="stock_out")
        assert len(entries) == 2

    def test_end_date_covers_whole_day(self, db, ledger):
        entries, _ = ledger_query.list(db, start_date="2024-03-02", end_date="2024-03-02")

        assert len(entries) == 2
        assert {e.type for e in entries} == {"stock_out", "stock_in"}

    def test_start_date_only(self, db, ledger):
        entries, _ = ledger_query.list(db, start_date="2024-03-04")
        assert len(entries) == 2

    def test_datetime_bounds(self, db, ledger):
        entries, _ = ledger_query.list(db, start_date="2024-03-01T12:00:00Z", end_date="2024-03-01")
        assert len(entries) == 1
        assert entries[0].variant_id == ledger["a2"].id

    def test_pagination(self, db, ledger):
        first, meta = ledger_query.list(db, page=1, page_size=3)
        second, _ = ledger_query.list(db, page=2, page_size=3)
        last, last_meta = ledger_query.list(db, page=3, page_size=3)

        assert len(first) == 3 and len(second) == 3 and len(last) == 1
        assert not {e.id for e in first} & {e.id for e in second}
        assert meta.total_items == 7
        assert meta.total_pages == 3
        assert meta.has_next and not meta.has_prev
        assert last_meta.has_prev and not last_meta.has_next

    def test_page_past_the_end_is_empty(self, db, ledger):
        entries, meta = ledger_query.list(db, page=10, page_size=5)
        assert entries == []
        assert meta.total_items == 7
        assert meta.total_pages == 2

    def test_no_matches(self, db, ledger):
        entries, meta = ledger_query.list(db, variant_id=9999)
        assert entries == []
        assert meta.total_items == 0
        assert meta.total_pages == 0
        assert not meta.has_next

    def test_reads_are_repeatable(self, db, ledger):
        first, _ = ledger_query.list(db, product_id=ledger["product_b"].id)
        second, _ = ledger_query.list(db, product_id=ledger["product_b"].id)
        assert [e.id for e in first] == [e.id for e in second]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_date": "not-a-date"},
            {"end_date": "2024-13-01"},
            {"start_date": "2024-03-05", "end_date": "2024-03-01"},
            {"type": "transfer"},
            {"page": 0},
            {"page_size": 0},
        ],
    )
    def test_invalid_arguments(self, db, ledger, kwargs):
        with pytest.raises(InvalidArgumentError):
            ledger_query.list(db, **kwargs)
