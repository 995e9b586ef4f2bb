import pytest

from cadence.application.stats.basics import clamp, mean, slope, standard_deviation, trend, variance


def test_empty_inputs_are_neutral():
    assert mean([]) == 0.0
    assert variance([]) == 0.0
    assert slope([]) == 0.0
    assert slope([5.0]) == 0.0


def test_population_statistics():
    assert mean([2, 4, 6]) == 4.0
    assert variance([2, 4]) == 1.0
    assert standard_deviation([2000, 4000]) == 1000.0


def test_slope_of_a_line():
    assert slope([1, 3, 5, 7]) == pytest.approx(2.0)
    assert slope([4, 4, 4]) == 0.0


def test_trend_needs_two_points():
    result = trend([3.0])

    assert result.direction == "stable"
    assert result.data_points == 1
    assert result.strength == 0.0


def test_small_slope_is_stable():
    assert trend([100.0, 100.05, 100.1]).direction == "stable"


def test_rising_times_are_declining():
    result = trend([1000, 2000, 3000])

    assert result.direction == "declining"
    assert result.strength == 100.0
    assert result.confidence == pytest.approx(50.0, abs=0.01)


def test_falling_times_are_improving():
    assert trend([3000, 2000, 1000]).direction == "improving"


def test_direction_follows_metric_polarity():
    assert trend([1.0, 2.0, 3.0], higher_is_worse=False).direction == "improving"
    assert trend([3.0, 2.0, 1.0], higher_is_worse=False).direction == "declining"


def test_clamp():
    assert clamp(120, 0, 100) == 100
    assert clamp(-5, 0, 100) == 0
    assert clamp(42, 0, 100) == 42
