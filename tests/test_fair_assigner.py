"""Tests for month grouping and least-burden fair assignment."""

from datetime import date, timedelta

import pytest

from dispensehelper.domain.models import Item
from dispensehelper.scheduling.fair_assigner import BurdenTracker, FairAssigner
from dispensehelper.scheduling.month_grouper import MonthGrouper


def as_tuples(assignments):
    return [(a.worker_id, a.item_id, a.quantity) for a in assignments]


@pytest.fixture
def assigner():
    return FairAssigner()


@pytest.fixture
def grouper():
    return MonthGrouper()


class TestMonthGrouper:
    """Tests for MonthGrouper."""

    def test_months_sorted_chronologically(self, grouper):
        items = [
            Item("dec", date(2024, 12, 1), 1),
            Item("mar", date(2024, 3, 1), 1),
            Item("jan25", date(2025, 1, 1), 1),
            Item("oct", date(2024, 10, 1), 1),
        ]
        buckets = grouper.group(items)
        assert list(buckets) == ["2024-03", "2024-10", "2024-12", "2025-01"]

    def test_bucket_sorted_soonest_first(self, grouper):
        items = [
            Item("late", date(2024, 3, 28), 1),
            Item("early", date(2024, 3, 2), 1),
            Item("mid", date(2024, 3, 15), 1),
        ]
        buckets = grouper.group(items)
        assert [i.id for i in buckets["2024-03"]] == ["early", "mid", "late"]

    def test_ties_keep_input_order(self, grouper):
        items = [
            Item("b", date(2024, 3, 10), 1),
            Item("a", date(2024, 3, 10), 1),
        ]
        assert [i.id for i in grouper.group(items)["2024-03"]] == ["b", "a"]

    def test_empty(self, grouper):
        assert grouper.group([]) == {}


class TestBurdenTracker:
    """Tests for BurdenTracker."""

    def test_least_burdened_in_roster_order(self):
        tracker = BurdenTracker.for_roster(["c", "a", "b"])
        tracker.add("a", 2)
        assert tracker.least_burdened() == ["c", "b"]
        assert tracker.min_burden == 0

    def test_snapshot_is_a_copy(self):
        tracker = BurdenTracker.for_roster(["w1"])
        snapshot = tracker.snapshot()
        tracker.add("w1", 3)
        assert snapshot == {"w1": 0}


class TestFairAssigner:
    """Tests for FairAssigner."""

    def test_quantity_split_across_tied_workers(self, assigner):
        """Three units over three idle workers go one each."""
        item = Item("a", date(2024, 3, 1), 3)
        assignments, burdens = assigner.assign({"2024-03": [item]}, ["w1", "w2", "w3"])

        assert as_tuples(assignments) == [("w1", "a", 1), ("w2", "a", 1), ("w3", "a", 1)]
        assert burdens == {"w1": 1, "w2": 1, "w3": 1}

    def test_even_split_rounds_up(self, assigner):
        """Ten units over two idle workers go five each."""
        item = Item("a", date(2024, 3, 1), 10)
        assignments, burdens = assigner.assign({"2024-03": [item]}, ["w1", "w2"])

        assert as_tuples(assignments) == [("w1", "a", 5), ("w2", "a", 5)]
        assert burdens == {"w1": 5, "w2": 5}

    def test_uneven_split(self, assigner):
        """Seven units over three idle workers: 3, 3, 1."""
        item = Item("a", date(2024, 3, 1), 7)
        assignments, burdens = assigner.assign({"2024-03": [item]}, ["w1", "w2", "w3"])
        assert as_tuples(assignments) == [("w1", "a", 3), ("w2", "a", 3), ("w3", "a", 1)]

    def test_fewer_units_than_workers(self, assigner):
        item = Item("a", date(2024, 3, 1), 2)
        assignments, burdens = assigner.assign({"2024-03": [item]}, ["w1", "w2", "w3"])
        assert as_tuples(assignments) == [("w1", "a", 1), ("w2", "a", 1)]
        assert burdens == {"w1": 1, "w2": 1, "w3": 0}

    def test_next_item_goes_to_least_burdened_only(self, assigner):
        """Only workers at the minimum are considered, even for a large item."""
        items = [Item("a", date(2024, 3, 1), 2), Item("b", date(2024, 3, 2), 5)]
        assignments, burdens = assigner.assign({"2024-03": items}, ["w1", "w2", "w3"])

        assert as_tuples(assignments) == [("w1", "a", 1), ("w2", "a", 1), ("w3", "b", 5)]
        assert burdens == {"w1": 1, "w2": 1, "w3": 5}

    def test_ties_broken_by_roster_order(self, assigner):
        item = Item("a", date(2024, 3, 1), 1)
        assignments, _ = assigner.assign({"2024-03": [item]}, ["zed", "amy"])
        assert as_tuples(assignments) == [("zed", "a", 1)]

    def test_months_processed_in_bucket_order(self, assigner, grouper):
        items = [Item("mar", date(2024, 3, 1), 1), Item("feb", date(2024, 2, 20), 1)]
        assignments, _ = assigner.assign(grouper.group(items), ["w1", "w2"])

        assert [(a.item_id, a.expiry_month, a.worker_id) for a in assignments] == [
            ("feb", "2024-02", "w1"),
            ("mar", "2024-03", "w2"),
        ]

    def test_soonest_item_gets_first_worker(self, assigner, grouper):
        items = [Item("feb20", date(2024, 2, 20), 1), Item("feb05", date(2024, 2, 5), 1)]
        assignments, _ = assigner.assign(grouper.group(items), ["w1", "w2"])
        assert as_tuples(assignments) == [("w1", "feb05", 1), ("w2", "feb20", 1)]

    def test_unit_stream_spread_at_most_one(self, assigner, grouper):
        base = date(2024, 3, 1)
        items = [Item(f"u{i}", base + timedelta(days=i), 1) for i in range(10)]
        assignments, burdens = assigner.assign(grouper.group(items), ["w1", "w2", "w3"])

        assert burdens == {"w1": 4, "w2": 3, "w3": 3}
        assert max(burdens.values()) - min(burdens.values()) <= 1
        assert [a.worker_id for a in assignments[:4]] == ["w1", "w2", "w3", "w1"]

    @pytest.mark.parametrize("worker_count", [1, 2, 3, 5, 8])
    def test_conservation(self, assigner, grouper, worker_count):
        """Every item is assigned exactly its quantity."""
        base = date(2024, 3, 1)
        items = [
            Item(f"i{q}", base + timedelta(days=(q * 7) % 90), q) for q in range(1, 16)
        ]
        workers = [f"w{i}" for i in range(worker_count)]
        assignments, burdens = assigner.assign(grouper.group(items), workers)

        for item in items:
            assert sum(a.quantity for a in assignments if a.item_id == item.id) == item.quantity
        assert all(a.quantity > 0 for a in assignments)
        assert sum(burdens.values()) == sum(item.quantity for item in items)

    def test_deterministic(self, assigner, grouper):
        base = date(2024, 3, 1)
        items = [Item(f"i{q}", base + timedelta(days=q), q) for q in range(1, 10)]
        first = assigner.assign(grouper.group(items), ["a", "b", "c"])
        second = assigner.assign(grouper.group(items), ["a", "b", "c"])
        assert first == second

    def test_runs_do_not_share_burden(self, assigner):
        item = Item("a", date(2024, 3, 1), 1)
        assigner.assign({"2024-03": [item]}, ["w1", "w2"])
        assignments, burdens = assigner.assign({"2024-03": [item]}, ["w1", "w2"])
        assert as_tuples(assignments) == [("w1", "a", 1)]
        assert burdens == {"w1": 1, "w2": 0}

    def test_empty_roster_rejected(self, assigner):
        with pytest.raises(ValueError):
            assigner.assign({"2024-03": [Item("a", date(2024, 3, 1), 1)]}, [])

    def test_no_items(self, assigner):
        assert assigner.assign({}, ["w1"]) == ([], {"w1": 0})
