"""Tests for product entities and shelf life rules."""

from datetime import date

import pytest

from feedmill.core.entities.product import (
    SHELF_LIFE_MONTHS,
    ProductBatch,
    ProductCategory,
    add_months,
    expiry_date_for,
)


class TestAddMonths:
    """Tests for calendar month arithmetic."""

    def test_simple(self):
        assert add_months(date(2026, 1, 15), 6) == date(2026, 7, 15)

    def test_crosses_year(self):
        assert add_months(date(2026, 10, 1), 6) == date(2027, 4, 1)

    def test_clamps_to_month_end(self):
        assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)

    def test_clamps_to_leap_day(self):
        assert add_months(date(2027, 8, 31), 6) == date(2028, 2, 29)

    def test_multi_year(self):
        assert add_months(date(2026, 2, 28), 24) == date(2028, 2, 28)


class TestExpiryDateFor:
    @pytest.mark.parametrize(
        ("category", "expected"),
        [
            (ProductCategory.FEED, date(2026, 7, 10)),
            (ProductCategory.MEDICINE, date(2028, 1, 10)),
            (ProductCategory.SUPPLEMENT, date(2027, 7, 10)),
            (ProductCategory.OTHER, date(2027, 1, 10)),
        ],
    )
    def test_shelf_life_by_category(self, category, expected):
        assert expiry_date_for(category, date(2026, 1, 10)) == expected

    def test_accepts_plain_string_category(self):
        assert expiry_date_for("feed", date(2026, 1, 10)) == date(2026, 7, 10)

    def test_every_category_has_a_shelf_life(self):
        assert set(SHELF_LIFE_MONTHS) == set(ProductCategory)


class TestProductBatch:
    def test_consumed(self):
        batch = ProductBatch(product_id=1, initial_quantity=10, quantity=3.4)
        assert batch.consumed == 6.6
        assert not batch.is_depleted

    def test_depleted(self):
        batch = ProductBatch(product_id=1, initial_quantity=10, quantity=0)
        assert batch.is_depleted

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            ProductBatch(product_id=1, initial_quantity=10, quantity=-1)
