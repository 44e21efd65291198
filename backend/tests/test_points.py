import pytest

from leaderboard_core.points import calculate_traditional_points, event_weight, points_for_rank


@pytest.mark.parametrize(
    "rank, expected",
    [(1, 100), (2, 95), (3, 90), (10, 55), (20, 5), (21, 0), (40, 0)],
)
def test_traditional_ladder(rank: int, expected: int) -> None:
    assert calculate_traditional_points(rank) == expected
    assert calculate_traditional_points(rank) == max(0, 100 - 5 * (rank - 1))


@pytest.mark.parametrize("rank", [0, -1, -20])
def test_non_positive_rank_scores_as_first_place(rank: int) -> None:
    assert calculate_traditional_points(rank) == 100


def test_event_weight_defaults_to_full_points() -> None:
    assert event_weight(None) == 1.0
    assert event_weight(100) == 1.0
    assert event_weight(50) == 0.5
    assert event_weight(150) == 1.5


def test_points_for_rank_applies_multiplier_and_rounds_half_up() -> None:
    assert points_for_rank(1) == 100
    assert points_for_rank(1, None) == 100
    assert points_for_rank(2, 50) == 48  # 47.5
    assert points_for_rank(4, 30) == 26  # 25.5
    assert points_for_rank(3, 150) == 135
    assert points_for_rank(25, 200) == 0
