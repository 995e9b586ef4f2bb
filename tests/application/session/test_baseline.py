from unittest.mock import AsyncMock

import pytest

from cadence.application.session.baseline import (
    BaselineService,
    compute_baseline,
    difficulty_bucket,
    personalized_thresholds,
    remove_outliers,
)
from cadence.domain.session.models import BaselineParams, ResponseTimeThresholds
from cadence.infrastructure.adapters.memory import InMemoryBaselineStore, InMemoryReviewSink


def records_with_totals(make_record, totals, difficulty=3.0):
    # total = show + rate, split evenly
    return [
        make_record(i, show_ms=t / 2, rate_ms=t / 2, difficulty=difficulty)
        for i, t in enumerate(totals)
    ]


def test_implausible_samples_are_dropped(make_record):
    records = records_with_totals(make_record, [3000] * 10 + [200, 120000])
    kept = remove_outliers(records)
    assert [r.total_time_ms for r in kept] == [3000] * 10


def test_sigma_filter_drops_extreme_samples(make_record):
    totals = [3000] * 30 + [40000]
    kept = remove_outliers(records_with_totals(make_record, totals))
    assert len(kept) == 30


def test_small_samples_skip_sigma_filter(make_record):
    totals = [3000, 3100, 2900, 40000]
    kept = remove_outliers(records_with_totals(make_record, totals))
    assert len(kept) == 4


def test_difficulty_bucket_rounds_half_up():
    assert difficulty_bucket(2.5) == 3
    assert difficulty_bucket(2.4) == 2
    assert difficulty_bucket(1.0) == 1


def test_compute_baseline_needs_minimum_samples(make_record, now):
    records = records_with_totals(make_record, [3000] * 9)
    assert compute_baseline("u1", records, now=now) is None


def test_compute_baseline(make_record, now):
    records = records_with_totals(make_record, [2000, 4000] * 5)
    baseline = compute_baseline("u1", records, now=now)

    assert baseline.user_id == "u1"
    assert baseline.average_time_ms == pytest.approx(3000)
    assert baseline.standard_deviation_ms == pytest.approx(1000)
    assert baseline.sample_size == 10
    assert baseline.last_updated == now
    assert set(baseline.by_difficulty) == {3}
    assert baseline.by_difficulty[3].count == 10


def test_compute_baseline_skips_sparse_buckets(make_record, now):
    records = records_with_totals(make_record, [3000] * 10) + records_with_totals(
        make_record, [5000, 5000], difficulty=5.0
    )
    baseline = compute_baseline("u1", records, now=now)
    assert 5 not in baseline.by_difficulty


def test_thresholds_default_without_baseline():
    assert personalized_thresholds(None) == ResponseTimeThresholds(
        baseline=3000, slow_warning=6000, fatigue_threshold=10000
    )


def test_thresholds_from_baseline(make_record, now):
    baseline = compute_baseline(
        "u1", records_with_totals(make_record, [2000, 4000] * 5), now=now
    )
    thresholds = personalized_thresholds(baseline)

    assert thresholds.baseline == pytest.approx(3000)
    assert thresholds.slow_warning == pytest.approx(4500)
    assert thresholds.fatigue_threshold == pytest.approx(5500)


def test_thresholds_prefer_difficulty_bucket(make_record, now):
    easy = records_with_totals(make_record, [2000] * 10, difficulty=1.0)
    hard = records_with_totals(make_record, [6000] * 5, difficulty=5.0)
    baseline = compute_baseline("u1", easy + hard, now=now)

    assert personalized_thresholds(baseline, difficulty=5.0).baseline == pytest.approx(6000)
    assert personalized_thresholds(baseline, difficulty=3.0).baseline == pytest.approx(
        baseline.average_time_ms
    )


@pytest.mark.asyncio
async def test_service_saves_only_once_sample_is_large_enough(make_record, now):
    store = InMemoryBaselineStore()
    service = BaselineService(store, InMemoryReviewSink())

    for i in range(9):
        assert await service.update("u1", make_record(i), now=now) is None
    assert store.upserts == 0

    baseline = await service.update("u1", make_record(9), now=now)

    assert baseline is not None
    assert store.upserts == 1
    assert await service.get_baseline("u1") == baseline


@pytest.mark.asyncio
async def test_service_reads_bounded_rolling_sample(make_record, now):
    sink = AsyncMock()
    sink.recent.return_value = [make_record(i) for i in range(10)]
    store = AsyncMock()
    service = BaselineService(store, sink, BaselineParams(max_stored_samples=50))

    await service.update("u1", make_record(10), now=now)

    sink.append.assert_awaited_once()
    sink.recent.assert_awaited_once_with("u1", 50)
    store.upsert_baseline.assert_awaited_once()


@pytest.mark.asyncio
async def test_service_thresholds_for_unknown_user():
    service = BaselineService(InMemoryBaselineStore(), InMemoryReviewSink())
    thresholds = await service.get_personalized_thresholds("nobody")
    assert thresholds == ResponseTimeThresholds()
