"""Tests for Material entity."""

import pytest
from pydantic import ValidationError

from feedmill.core.entities import Material
from feedmill.core.entities.material import MaterialCategory


class TestMaterial:
    """Tests for Material entity."""

    def test_defaults(self):
        material = Material(name="Jagung Giling")

        assert material.category == MaterialCategory.FEED
        assert material.unit == "kg"
        assert material.stock == 0
        assert material.lead_time_days == 7
        assert material.created_at.tzinfo is not None

    def test_stock_value(self):
        material = Material(name="Dedak Halus", stock=120, unit_cost=2500)
        assert material.stock_value == 300000

    @pytest.mark.parametrize("field", ["stock", "min_stock", "safety_stock", "unit_cost"])
    def test_negative_amounts_rejected(self, field):
        with pytest.raises(ValidationError):
            Material(name="X", **{field: -1})

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            Material(name="X", category="fuel")
