# CajaLedger Tests - Concurrent Writers
#
# Parallel EXIT requests against one product must never oversell: each
# check-and-write runs in its own serialised transaction.

from concurrent.futures import ThreadPoolExecutor

import pytest

from cajaledger.exceptions import InsufficientStockError


pytestmark = pytest.mark.ledger


class TestConcurrentExits:
    """Racing cashiers selling the last units of a product."""

    def test_no_oversell_under_contention(self, engine, admin, employee, make_product):
        """
        SCENARIO: 10 threads each EXIT 1 from a product with 5 units
        EXPECTED: exactly 5 succeed, 5 get InsufficientStockError, stock 0
        """
        product = make_product(stock=5)

        def sell_one():
            try:
                engine.record_movement(employee, product.id, "EXIT", 1)
                return "ok"
            except InsufficientStockError:
                return "insufficient"

        with ThreadPoolExecutor(max_workers=10) as pool:
            outcomes = list(pool.map(lambda _: sell_one(), range(10)))

        assert outcomes.count("ok") == 5
        assert outcomes.count("insufficient") == 5
        assert engine.products.get_product(product.id).stock == 0
        assert engine.verify_stock() == []
        exits = engine.list_movements(admin, product_id=product.id, movement_type="EXIT")
        assert sorted(m.previous_stock for m in exits) == [1, 2, 3, 4, 5]
