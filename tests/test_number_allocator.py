import pytest

from services.errors import ConflictError, ValidationError
from services.number_allocator import NumberAllocator


@pytest.mark.parametrize(
    "existing, expected",
    [
        (set(), 1),
        ({1, 2, 3}, 4),
        ({1, 3}, 2),
        ({2, 3, 4}, 1),
        ({1, 2, 5, 6}, 3),
    ],
)
def test_next_available_returns_smallest_free(existing, expected):
    assert NumberAllocator.next_available(existing) == expected


def test_allocate_without_request_uses_first_gap():
    assert NumberAllocator.allocate([1, 3, 4]) == 2


def test_allocate_accepts_free_requested_number():
    assert NumberAllocator.allocate([1, 2], requested=10) == 10


def test_allocate_conflict_carries_suggestion():
    with pytest.raises(ConflictError) as exc:
        NumberAllocator.allocate([1, 2, 3], requested=2, kind="rack")
    assert exc.value.value == 2
    assert exc.value.details["suggestion"] == 4
    assert exc.value.status_code == 409


@pytest.mark.parametrize("requested", [0, -3])
def test_allocate_rejects_non_positive(requested):
    with pytest.raises(ValidationError):
        NumberAllocator.allocate([], requested=requested)


def test_allocate_respects_upper_bound():
    with pytest.raises(ValidationError):
        NumberAllocator.allocate([], requested=101, upper=100)
    assert NumberAllocator.allocate([], requested=100, upper=100) == 100


def test_gaps_below_highest_number():
    assert NumberAllocator.gaps([1, 4, 6]) == [2, 3, 5]
    assert NumberAllocator.gaps([]) == []


def test_suggestions_start_with_first_gap():
    picks = NumberAllocator.suggestions([1, 2, 4, 7])
    assert picks[0] == 3
    assert len(picks) <= 5
    assert not set(picks) & {1, 2, 4, 7}


def test_alternatives_list_gaps_first():
    alternatives = NumberAllocator.alternatives([1, 3, 4, 5], requested=4)
    assert alternatives[0] == 2
    assert 4 not in alternatives
    assert len(alternatives) <= 6


@pytest.mark.parametrize(
    "existing, pattern",
    [
        ([1, 2, 3], "sequential"),
        ([10, 20, 30], "spaced"),
        ([1, 2, 4], "mostly-sequential"),
        ([1, 2, 4, 10], "mixed"),
    ],
)
def test_detect_pattern(existing, pattern):
    assert NumberAllocator.detect_pattern(existing) == pattern
