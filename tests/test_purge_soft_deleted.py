"""
Retention purge tests.
"""

import asyncio

import pytest

from visitflow.application.use_cases.purge_soft_deleted import (
    PurgeRequest,
    PurgeSoftDeletedUseCase,
    chunked,
)
from visitflow.core.config import RetentionSettings
from visitflow.domain.value_objects.timestamps import days_to_millis
from visitflow.workers.soft_delete_purger import purge_until_drained

from fakes import NOW, InMemorySoftDeletableCollection

CUTOFF = NOW - days_to_millis(90)


def _purge(collections, request=None, batch_max=500):
    use_case = PurgeSoftDeletedUseCase(collections, batch_max=batch_max, clock=lambda: NOW)
    return asyncio.run(use_case.execute(request or PurgeRequest()))


def test_only_records_past_the_cutoff_are_purged():
    visits = InMemorySoftDeletableCollection(
        "visits",
        {"old": CUTOFF - 1, "edge": CUTOFF, "recent": CUTOFF + 1, "live": None},
    )

    result = _purge([visits])

    assert result.total_scanned == 2
    assert result.total_purged == 2
    assert not result.has_more
    assert result.cutoff == CUTOFF
    assert set(visits.records) == {"recent", "live"}


def test_full_page_reports_has_more():
    actions = InMemorySoftDeletableCollection("actions", {f"a{i}": CUTOFF - i for i in range(5)})

    result = _purge([actions], PurgeRequest(page_size=3))

    assert result.total_scanned == 3
    assert result.has_more
    assert result.collections[0].has_more
    assert len(actions.records) == 2


def test_deletes_are_chunked_by_batch_max():
    actions = InMemorySoftDeletableCollection("actions", {f"a{i}": CUTOFF - i for i in range(7)})

    _purge([actions], PurgeRequest(page_size=10), batch_max=3)

    assert [len(chunk) for chunk in actions.delete_calls] == [3, 3, 1]
    assert chunked(["a", "b", "c"], 2) == [["a", "b"], ["c"]]


def test_failed_collection_does_not_block_others():
    broken = InMemorySoftDeletableCollection("actions", {"a": CUTOFF - 1}, fail_on_list=True)
    visits = InMemorySoftDeletableCollection("visits", {"v": CUTOFF - 1})

    result = _purge([broken, visits])

    assert result.failed_collections == ["actions"]
    assert result.total_purged == 1
    assert visits.records == {}
    assert broken.records == {"a": CUTOFF - 1}


def test_failed_batch_keeps_earlier_batches_and_stops_collection():
    actions = InMemorySoftDeletableCollection(
        "actions", {f"a{i}": CUTOFF - i for i in range(6)}, fail_on_delete_call=2
    )

    result = _purge([actions], PurgeRequest(page_size=10), batch_max=2)

    summary = result.collections[0]
    assert summary.purged == 2
    assert summary.error == "actions delete failed"
    assert len(actions.delete_calls) == 2
    assert len(actions.records) == 4


def test_collection_subset_and_unknown_names():
    actions = InMemorySoftDeletableCollection("actions", {"a": CUTOFF - 1})
    visits = InMemorySoftDeletableCollection("visits", {"v": CUTOFF - 1})

    result = _purge([actions, visits], PurgeRequest(collections=["visits"]))
    assert [c.collection for c in result.collections] == ["visits"]
    assert actions.records == {"a": CUTOFF - 1}

    with pytest.raises(ValueError):
        _purge([actions, visits], PurgeRequest(collections=["nope"]))


def test_invalid_request_values_are_rejected():
    with pytest.raises(ValueError):
        PurgeRequest(retention_days=-1)
    with pytest.raises(ValueError):
        PurgeRequest(page_size=0)


def test_zero_retention_purges_everything_deleted():
    visits = InMemorySoftDeletableCollection("visits", {"just-now": NOW, "live": None})

    result = _purge([visits], PurgeRequest(retention_days=0))

    assert result.total_purged == 1
    assert visits.records == {"live": None}


def test_scheduled_run_drains_page_by_page():
    actions = InMemorySoftDeletableCollection("actions", {f"a{i}": CUTOFF - i for i in range(5)})
    use_case = PurgeSoftDeletedUseCase([actions], clock=lambda: NOW)
    retention = RetentionSettings(days=90, page_size=2, batch_max=500, max_pages_per_run=10)

    result = asyncio.run(purge_until_drained(use_case, retention))

    assert result.total_purged == 5
    assert not result.has_more
    assert actions.records == {}


def test_scheduled_run_stops_at_page_cap():
    actions = InMemorySoftDeletableCollection("actions", {f"a{i}": CUTOFF - i for i in range(10)})
    use_case = PurgeSoftDeletedUseCase([actions], clock=lambda: NOW)
    retention = RetentionSettings(days=90, page_size=2, batch_max=500, max_pages_per_run=2)

    result = asyncio.run(purge_until_drained(use_case, retention))

    assert result.total_purged == 4
    assert result.has_more
    assert len(actions.records) == 6
