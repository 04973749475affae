# test/test_batch_writer.py
import pytest

from app.db.batch_writer import BatchWriter


def test_commits_in_batches_of_five_hundred(store):
    writer = BatchWriter(store, limit=500)

    for i in range(1200):
        writer.create(store.ref("orders", f"o{i}"), {"n": i})
    committed = writer.commit()

    assert committed == 1200
    assert store.commit_sizes == [500, 500, 200]
    assert writer.committed_batches == 3
    assert len(store.docs("orders")) == 1200


def test_failed_commit_keeps_previous_batches(store):
    store.failing_commits = {3}
    writer = BatchWriter(store, limit=500)

    for i in range(1200):
        writer.create(store.ref("orders", f"o{i}"), {"n": i})
    with pytest.raises(RuntimeError):
        writer.commit()

    assert len(store.docs("orders")) == 1000
    assert writer.committed == 1000


def test_group_is_not_split_when_it_fits_in_a_fresh_batch(store):
    writer = BatchWriter(store, limit=5)
    for i in range(3):
        writer.create(store.ref("a", str(i)), {})

    writer.stage_group([("create", store.ref("b", str(i)), {}, {}) for i in range(3)])
    writer.commit()

    assert store.commit_sizes == [3, 3]


def test_group_larger_than_limit_is_spread(store):
    writer = BatchWriter(store, limit=2)

    writer.stage_group([("create", store.ref("b", str(i)), {}, {}) for i in range(5)])
    writer.commit()

    assert store.commit_sizes == [2, 2, 1]


def test_set_and_update(store):
    ref = store.add("users", {"nombre": "Ana", "cedula": "0101"})
    writer = BatchWriter(store)

    writer.set(ref, {"idContifico": "abc"}, merge=True)
    writer.update(ref, {"nombre": "Ana María"})
    writer.commit()

    assert store.docs("users") == [{"nombre": "Ana María", "cedula": "0101", "idContifico": "abc"}]


def test_commit_without_writes_does_nothing(store):
    writer = BatchWriter(store)

    assert writer.commit() == 0
    assert store.commit_sizes == []


def test_unknown_operation_is_rejected(store):
    writer = BatchWriter(store)

    with pytest.raises(ValueError):
        writer.stage_group([("delete", store.ref("a", "1"), {}, {})])
