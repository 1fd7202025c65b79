"""Tests for domain exceptions."""

from feedmill.core.exceptions import (
    BatchNotFoundError,
    BusyError,
    FeedmillError,
    InsufficientMaterialsError,
    InsufficientStockError,
    InvalidMovementError,
    InvalidReasonError,
    InvalidStateTransitionError,
    MaterialNotFoundError,
    NotFoundError,
    ProductionRunNotFoundError,
    StorageError,
)


class TestFeedmillError:
    def test_default_code_is_class_name(self):
        err = FeedmillError("boom")
        assert err.code == "FeedmillError"
        assert err.details == {}

    def test_to_dict(self):
        err = FeedmillError("boom", code="X", details={"a": 1})
        assert err.to_dict() == {"error": "X", "message": "boom", "details": {"a": 1}}


class TestInsufficientStockError:
    def test_details_carry_shortage(self):
        err = InsufficientStockError("material", 7, 150.0, 100.0, name="Jagung")
        assert err.code == "INSUFFICIENT_STOCK"
        assert err.details["requested"] == 150.0
        assert err.details["available"] == 100.0
        assert err.details["shortage"] == 50.0
        assert "Jagung" in err.message

    def test_label_falls_back_to_type_and_id(self):
        err = InsufficientStockError("batch", 3, 5.0, 2.0)
        assert "batch 3" in err.message


class TestInsufficientMaterialsError:
    def test_lists_every_shortage(self):
        shortages = [
            {"material_id": 1, "name": "Jagung", "needed": 60, "available": 10, "shortage": 50},
            {"material_id": 2, "name": "Dedak", "needed": 40, "available": 0, "shortage": 40},
        ]
        err = InsufficientMaterialsError(shortages)
        assert err.code == "INSUFFICIENT_MATERIALS"
        assert err.shortages == shortages
        assert "Jagung" in err.message and "Dedak" in err.message


class TestNotFoundErrors:
    def test_codes_derive_from_entity(self):
        assert MaterialNotFoundError(1).code == "MATERIAL_NOT_FOUND"
        assert BatchNotFoundError(1).code == "BATCH_NOT_FOUND"
        assert ProductionRunNotFoundError(1).code == "PRODUCTION_RUN_NOT_FOUND"

    def test_share_base_class(self):
        assert isinstance(MaterialNotFoundError(9), NotFoundError)
        assert MaterialNotFoundError(9).details == {"id": 9}


def test_invalid_movement_keeps_reason():
    err = InvalidMovementError("quantity must be at least 0.01", quantity=0)
    assert err.code == "INVALID_MOVEMENT"
    assert err.details == {"reason": "quantity must be at least 0.01", "quantity": 0}


def test_invalid_state_transition_details():
    err = InvalidStateTransitionError("production run", 4, "completed", "cancelled")
    assert err.code == "INVALID_STATE_TRANSITION"
    assert err.details["current"] == "completed"
    assert err.details["target"] == "cancelled"


def test_invalid_reason_lists_allowed():
    err = InvalidReasonError("stolen", ["expired", "damaged", "lost", "other"])
    assert err.code == "INVALID_REASON"
    assert "expired" in err.message


def test_busy_is_a_storage_error():
    err = BusyError("begin transaction", 30000)
    assert isinstance(err, StorageError)
    assert err.code == "BUSY"
