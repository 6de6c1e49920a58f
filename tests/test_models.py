"""Tests for domain models and calendar helpers."""

from datetime import date, datetime

import pytest

from dispensehelper.domain.dates import (
    days_until,
    first_of_next_month,
    is_same_month,
    month_key,
    next_month_key,
    parse_iso_date,
)
from dispensehelper.domain.errors import (
    DuplicateItem,
    DuplicateWorker,
    InvalidDate,
    InvalidInput,
    InvalidQuantity,
    InvalidRecord,
    SchedulingError,
)
from dispensehelper.domain.models import (
    Assignment,
    AssignmentRequest,
    AssignmentResult,
    BurdenMetrics,
    ExcludedItem,
    ExclusionReason,
    Item,
    RolloverNotification,
    WeeklyAssignment,
    WeeklyBatchResult,
)


class TestItem:
    """Tests for Item construction and validation."""

    def test_item_from_date(self):
        item = Item(id="a", expiry_date=date(2024, 3, 1), quantity=5)
        assert item.expiry_date == date(2024, 3, 1)
        assert item.month_key == "2024-03"

    def test_item_parses_iso_string(self):
        item = Item(id="a", expiry_date="2024-03-01", quantity=5)
        assert item.expiry_date == date(2024, 3, 1)

    def test_item_normalises_datetime(self):
        item = Item(id="a", expiry_date=datetime(2024, 3, 1, 14, 30), quantity=5)
        assert item.expiry_date == date(2024, 3, 1)
        assert not isinstance(item.expiry_date, datetime)

    @pytest.mark.parametrize("quantity", [0, -1, 2.5, True, "5", None])
    def test_invalid_quantity_rejected(self, quantity):
        with pytest.raises(InvalidQuantity) as exc_info:
            Item(id="bad", expiry_date=date(2024, 3, 1), quantity=quantity)
        assert exc_info.value.item_id == "bad"
        assert exc_info.value.quantity == quantity
        assert exc_info.value.code == "INVALID_QUANTITY"

    @pytest.mark.parametrize("value", ["not-a-date", "2024-02-30", "", None, 20240301])
    def test_invalid_date_rejected(self, value):
        with pytest.raises(InvalidDate) as exc_info:
            Item(id="bad", expiry_date=value, quantity=1)
        assert exc_info.value.item_id == "bad"
        assert exc_info.value.code == "INVALID_DATE"

    def test_from_dict_camel_case(self):
        item = Item.from_dict(
            {"id": "a", "expiryDate": "2024-03-01", "quantity": 2, "name": "Paracetamol"}
        )
        assert item == Item("a", date(2024, 3, 1), 2, "Paracetamol")

    def test_from_dict_snake_case_and_item_id(self):
        item = Item.from_dict({"itemId": "b", "expiry_date": "2024-04-10", "quantity": 1})
        assert item.id == "b"
        assert item.expiry_date == date(2024, 4, 10)

    def test_from_dict_missing_date(self):
        with pytest.raises(InvalidDate):
            Item.from_dict({"id": "a", "quantity": 1})

    @pytest.mark.parametrize("record", ["not-a-record", 42, None, ["a", "2024-03-01", 1]])
    def test_from_dict_rejects_non_mapping(self, record):
        with pytest.raises(InvalidRecord) as exc_info:
            Item.from_dict(record)
        assert exc_info.value.code == "INVALID_RECORD"
        assert exc_info.value.record == record

    @pytest.mark.parametrize("item_id", [None, "", "   "])
    def test_from_dict_rejects_missing_id(self, item_id):
        record = {"expiryDate": "2024-04-01", "quantity": 1}
        if item_id is not None:
            record["id"] = item_id
        with pytest.raises(InvalidRecord):
            Item.from_dict(record)

    def test_from_dict_numeric_id(self):
        item = Item.from_dict({"id": 17, "expiryDate": "2024-04-01", "quantity": 1})
        assert item.id == "17"

    def test_blank_id_rejected(self):
        with pytest.raises(InvalidRecord):
            Item(id=" ", expiry_date=date(2024, 3, 1), quantity=1)

    def test_to_dict_round_trip_keys(self):
        item = Item("a", date(2024, 3, 1), 2)
        assert item.to_dict() == {"id": "a", "expiryDate": "2024-03-01", "quantity": 2}

    def test_item_is_immutable(self):
        item = Item("a", date(2024, 3, 1), 2)
        with pytest.raises(AttributeError):
            item.quantity = 3


class TestErrors:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(InvalidQuantity, InvalidInput)
        assert issubclass(InvalidDate, InvalidInput)
        assert issubclass(DuplicateWorker, InvalidInput)
        assert issubclass(DuplicateItem, InvalidInput)
        assert issubclass(InvalidRecord, InvalidInput)
        assert issubclass(InvalidInput, SchedulingError)

    def test_duplicate_worker_carries_id(self):
        error = DuplicateWorker("w1")
        assert error.worker_id == "w1"
        assert "w1" in str(error)


class TestDates:
    """Tests for calendar helpers."""

    def test_month_key_zero_padded(self):
        assert month_key(date(2024, 3, 9)) == "2024-03"

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("2024-01", "2024-02"),
            ("2024-02", "2024-03"),
            ("2024-11", "2024-12"),
            ("2024-12", "2025-01"),
        ],
    )
    def test_next_month_key(self, key, expected):
        assert next_month_key(key) == expected

    def test_first_of_next_month_from_month_end(self):
        assert first_of_next_month(date(2024, 1, 31)) == date(2024, 2, 1)
        assert first_of_next_month(date(2023, 12, 31)) == date(2024, 1, 1)

    def test_is_same_month(self):
        assert is_same_month(date(2024, 1, 1), date(2024, 1, 31))
        assert not is_same_month(date(2024, 1, 1), date(2025, 1, 1))

    def test_days_until_dates(self):
        assert days_until(date(2024, 2, 14), date(2024, 1, 15)) == 30
        assert days_until(date(2024, 1, 10), date(2024, 1, 15)) == -5

    def test_days_until_rounds_partial_days_up(self):
        assert days_until(date(2024, 2, 1), datetime(2024, 1, 2, 12, 0)) == 30
        assert days_until(date(2024, 2, 1), datetime(2024, 1, 3, 1, 0)) == 29

    def test_parse_timestamp(self):
        assert parse_iso_date("2024-03-01T10:00:00Z") == date(2024, 3, 1)


class TestAssignmentRequest:
    """Tests for request validation."""

    def test_duplicate_worker_rejected(self):
        request = AssignmentRequest(items=[], workers=["w1", "w2", "w1"], today=date(2024, 1, 1))
        with pytest.raises(DuplicateWorker):
            request.validate()

    @pytest.mark.parametrize("today", ["01/01/2024", "", None, 20240101])
    def test_unparseable_today_rejected(self, today):
        request = AssignmentRequest(items=[], workers=["w1"], today=today)
        with pytest.raises(InvalidDate):
            request.validate()

    def test_iso_string_today_parsed(self):
        request = AssignmentRequest(items=[], workers=["w1"], today="2024-01-15")
        request.validate()
        assert request.today == date(2024, 1, 15)

    def test_datetime_today_kept(self):
        now = datetime(2024, 1, 15, 9, 30)
        request = AssignmentRequest(items=[], workers=["w1"], today=now)
        request.validate()
        assert request.today is now

    def test_records_become_items(self):
        request = AssignmentRequest(
            items=[{"id": "a", "expiryDate": "2024-04-01", "quantity": 2}],
            workers=["w1"],
            today=date(2024, 1, 15),
        )
        request.validate()
        assert request.items == [Item("a", date(2024, 4, 1), 2)]

    def test_duplicate_item_rejected(self):
        request = AssignmentRequest(
            items=[
                Item("lot", date(2024, 4, 1), 2),
                {"id": "lot", "expiryDate": "2024-05-01", "quantity": 3},
            ],
            workers=["w1", "w2"],
            today=date(2024, 1, 15),
        )
        with pytest.raises(DuplicateItem) as exc_info:
            request.validate()
        assert exc_info.value.item_id == "lot"
        assert exc_info.value.code == "DUPLICATE_ITEM"


class TestResults:
    """Tests for result helpers."""

    def test_quantity_for_sums_records(self):
        result = AssignmentResult(
            assignments=[
                Assignment("w1", "a", "2024-03", 2),
                Assignment("w2", "a", "2024-03", 2),
                Assignment("w1", "a", "2024-03", 1),
            ],
            burdens={"w1": 3, "w2": 2},
        )
        assert result.quantity_for("w1", "a") == 3
        assert result.assigned_quantity("a") == 5
        assert result.totals_by_worker() == {"w1": 3, "w2": 2}

    def test_totals_include_idle_workers(self):
        result = AssignmentResult(
            assignments=[Assignment("w1", "a", "2024-03", 1)],
            burdens={"w1": 1, "w2": 0},
        )
        assert result.totals_by_worker() == {"w1": 1, "w2": 0}

    def test_month_order(self):
        result = AssignmentResult(
            assignments=[
                Assignment("w1", "a", "2024-02", 1),
                Assignment("w2", "b", "2024-02", 1),
                Assignment("w1", "c", "2024-03", 1),
            ]
        )
        assert result.month_order() == ["2024-02", "2024-03"]

    def test_excluded_by_reason_has_every_reason(self):
        item = Item("a", date(2024, 1, 20), 1)
        result = AssignmentResult(
            excluded=[ExcludedItem(item, ExclusionReason.EXPIRES_THIS_MONTH)]
        )
        grouped = result.excluded_by_reason()
        assert set(grouped) == set(ExclusionReason)
        assert [e.id for e in grouped[ExclusionReason.EXPIRES_THIS_MONTH]] == ["a"]

    def test_excluded_item_to_dict(self):
        item = Item("a", date(2024, 1, 20), 4)
        excluded = ExcludedItem(item, ExclusionReason.INSUFFICIENT_SHELF_LIFE)
        assert excluded.to_dict() == {
            "id": "a",
            "expiryDate": "2024-01-20",
            "quantity": 4,
            "reason": "insufficient_shelf_life",
        }

    def test_weekly_batch_helpers(self):
        items = [Item(f"p{i}", date(2024, 3, 1), 1) for i in range(3)]
        batch = WeeklyBatchResult(
            assignments=[
                WeeklyAssignment("2024-01", 1, items[:2]),
                WeeklyAssignment("2024-01", 2, items[2:]),
            ],
            rollovers=[RolloverNotification("2024-01", 4, "2024-02", 1, ("p9",))],
        )
        assert [len(w) for w in batch.partial_weeks(2)] == [1]
        assert batch.find_week("p2").week == 2
        assert batch.find_week("missing") is None
        assert batch.to_dict()["rollovers"][0]["productIds"] == ["p9"]


class TestBurdenMetrics:
    """Tests for burden metrics."""

    def test_empty(self):
        metrics = BurdenMetrics.calculate({})
        assert metrics.total == 0
        assert metrics.fairness_score == 100.0

    def test_perfectly_even(self):
        metrics = BurdenMetrics.calculate({"w1": 5, "w2": 5})
        assert metrics.spread == 0
        assert metrics.std_dev == 0.0
        assert metrics.fairness_score == 100.0

    def test_uneven(self):
        metrics = BurdenMetrics.calculate({"w1": 6, "w2": 2})
        assert metrics.total == 8
        assert metrics.mean == 4.0
        assert metrics.min_burden == 2
        assert metrics.max_burden == 6
        assert metrics.spread == 4
        assert metrics.fairness_score == pytest.approx(50.0)

    def test_idle_roster_is_fair(self):
        metrics = BurdenMetrics.calculate({"w1": 0, "w2": 0})
        assert metrics.fairness_score == 100.0
