import random

import pytest

from timepoint_extractor.core.timepoints import Timepoint, TimepointStore


def test_store_sorts_and_relabels():
    store = TimepointStore()
    store.add(20_000_000, "b")
    store.add(10_000_000, "a")
    assert [tp.time for tp in store] == [10_000_000, 20_000_000]
    assert [tp.label for tp in store] == ["Point0001", "Point0002"]
    assert store[0].remark == "a"
    assert store[0].formatted == "00:00:10.000"


def test_equal_times_keep_insertion_order():
    store = TimepointStore()
    store.add(5_000_000, "first")
    store.add(5_000_000, "second")
    store.add(1_000_000, "early")
    assert [tp.remark for tp in store] == ["early", "first", "second"]
    assert [tp.label for tp in store] == ["Point0001", "Point0002", "Point0003"]


def test_remove_relabels_remaining():
    store = TimepointStore()
    for t in (1, 2, 3):
        store.add(t * 1_000_000)
    assert store.remove(0)
    assert len(store) == 2
    assert [tp.label for tp in store] == ["Point0001", "Point0002"]
    assert store[0].time == 2_000_000


def test_invalid_index_is_noop():
    store = TimepointStore()
    store.add(1_000_000, "keep")
    before = store.to_records()
    assert not store.remove(None)
    assert not store.remove(5)
    assert not store.remove(-1)
    assert not store.update_remark(None, "x")
    assert not store.update_remark(3, "x")
    assert store.to_records() == before


def test_update_remark():
    store = TimepointStore()
    store.add(1_000_000)
    assert store.update_remark(0, "goal")
    assert store[0].remark == "goal"
    assert store[0].display() == "[00:00:01.000] Point0001 goal"


def test_copy_is_independent():
    store = TimepointStore()
    store.add(1_000_000, "a")
    clone = store.copy()
    clone.update_remark(0, "b")
    clone.add(0)
    assert store[0].remark == "a"
    assert len(store) == 1


def test_from_records_normalizes():
    store = TimepointStore.from_records(
        [
            {"time": 3_000_000, "label": "stale", "remark": "late"},
            {"time": 1_000_000, "label": "Point0009", "formatted": "x", "remark": ""},
        ]
    )
    assert [tp.label for tp in store] == ["Point0001", "Point0002"]
    assert store[1].formatted == "00:00:03.000"
    assert store[0].formatted == "x"  # stored text is kept
    assert store.display_rows()[1] == "[00:00:03.000] Point0002 late"


def test_timepoint_display_without_remark():
    tp = Timepoint(time=0, label="Point0001", formatted="00:00:00.000")
    assert tp.display() == "[00:00:00.000] Point0001"


@pytest.mark.parametrize("seed", range(20))
def test_random_edits_keep_order_and_labels(seed):
    rng = random.Random(seed)
    store = TimepointStore()
    for _ in range(60):
        if store.timepoints and rng.random() < 0.35:
            assert store.remove(rng.randrange(len(store)))
        else:
            store.add(rng.randrange(0, 50) * 100_000, str(rng.random()))
        times = [tp.time for tp in store]
        assert times == sorted(times)
        assert [tp.label for tp in store] == [
            f"Point{i:04d}" for i in range(1, len(store) + 1)
        ]
