"""
Response-time baseline learning.

Learns a user's natural response time (overall and per difficulty bucket)
from their rolling sample of recent reviews, and turns it into personalized
slow/fatigue thresholds. The statistics are pure functions; BaselineService
coordinates the review sink and the baseline store around them.
"""

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone

from cadence.application.stats.basics import mean, standard_deviation
from cadence.domain import constants as c
from cadence.domain.session.models import (
    BaselineParams,
    DifficultyStats,
    ResponseTimeBaseline,
    ResponseTimeThresholds,
    ReviewRecord,
)
from cadence.domain.session.ports import BaselineStore, ReviewSink

logger = logging.getLogger(__name__)


def remove_outliers(
    records: Sequence[ReviewRecord], params: BaselineParams = BaselineParams()
) -> list[ReviewRecord]:
    """
    Drop implausible and statistically extreme samples.

    Totals outside [min_plausible_ms, max_plausible_ms] are removed first so a
    single idle tab cannot inflate the deviation used by the sigma filter;
    then samples further than outlier_sigma deviations from the mean go.
    """
    plausible = [
        r for r in records if params.min_plausible_ms <= r.total_time_ms <= params.max_plausible_ms
    ]
    if len(plausible) < params.min_samples:
        return plausible

    times = [r.total_time_ms for r in plausible]
    avg = mean(times)
    limit = standard_deviation(times, avg) * params.outlier_sigma
    return [r for r in plausible if abs(r.total_time_ms - avg) <= limit]


def difficulty_bucket(difficulty: float) -> int:
    return math.floor(difficulty + 0.5)


def compute_baseline(
    user_id: str,
    records: Sequence[ReviewRecord],
    params: BaselineParams = BaselineParams(),
    *,
    now: datetime | None = None,
) -> ResponseTimeBaseline | None:
    """
    Compute a baseline from a rolling sample.

    Returns None while the sample holds fewer than min_samples records, or
    when nothing survives outlier filtering.
    """
    if len(records) < params.min_samples:
        return None

    filtered = remove_outliers(records, params)
    if not filtered:
        logger.debug(f"All {len(records)} samples for {user_id} rejected as outliers")
        return None

    times = [r.total_time_ms for r in filtered]
    average = mean(times)

    by_difficulty: dict[int, DifficultyStats] = {}
    for bucket in c.BASELINE_DIFFICULTY_BUCKETS:
        bucket_times = [r.total_time_ms for r in filtered if difficulty_bucket(r.difficulty) == bucket]
        if len(bucket_times) >= params.min_bucket_samples:
            by_difficulty[bucket] = DifficultyStats(
                avg=mean(bucket_times),
                std=standard_deviation(bucket_times),
                count=len(bucket_times),
            )

    return ResponseTimeBaseline(
        user_id=user_id,
        average_time_ms=average,
        standard_deviation_ms=standard_deviation(times, average),
        sample_size=len(filtered),
        last_updated=now or datetime.now(timezone.utc),
        by_difficulty=by_difficulty,
    )


def personalized_thresholds(
    baseline: ResponseTimeBaseline | None,
    difficulty: float | None = None,
    params: BaselineParams = BaselineParams(),
) -> ResponseTimeThresholds:
    """
    Thresholds derived from a learned baseline.

    Fixed defaults (3000/6000/10000 ms) until the baseline has min_samples
    samples; the per-difficulty bucket wins when it has enough samples.
    """
    if baseline is None or baseline.sample_size < params.min_samples:
        return ResponseTimeThresholds()

    base_time = baseline.average_time_ms
    std = baseline.standard_deviation_ms

    if difficulty is not None:
        bucket = baseline.by_difficulty.get(difficulty_bucket(difficulty))
        if bucket is not None and bucket.count >= params.min_bucket_samples:
            base_time = bucket.avg
            std = bucket.std

    return ResponseTimeThresholds(
        baseline=base_time,
        slow_warning=base_time + std * c.SLOW_WARNING_SIGMA,
        fatigue_threshold=base_time + std * c.FATIGUE_THRESHOLD_SIGMA,
    )


class BaselineService:
    """
    Application service keeping each user's baseline current.

    Depends on the BaselineStore and ReviewSink ports only.
    """

    def __init__(
        self,
        baseline_store: BaselineStore,
        review_sink: ReviewSink,
        params: BaselineParams | None = None,
    ):
        self._store = baseline_store
        self._sink = review_sink
        self._params = params or BaselineParams()

    async def update(
        self, user_id: str, record: ReviewRecord, *, now: datetime | None = None
    ) -> ResponseTimeBaseline | None:
        """
        Append a review to the user's sample and recompute the baseline.

        Returns:
            The saved baseline, or None if the sample is still too small.
        """
        await self._sink.append(user_id, record)
        sample = await self._sink.recent(user_id, self._params.max_stored_samples)

        baseline = compute_baseline(user_id, sample, self._params, now=now)
        if baseline is None:
            return None

        await self._store.upsert_baseline(user_id, baseline)
        return baseline

    async def get_baseline(self, user_id: str) -> ResponseTimeBaseline | None:
        return await self._store.load_baseline(user_id)

    async def get_personalized_thresholds(
        self, user_id: str, difficulty: float | None = None
    ) -> ResponseTimeThresholds:
        baseline = await self._store.load_baseline(user_id)
        return personalized_thresholds(baseline, difficulty, self._params)
