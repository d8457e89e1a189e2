import pytest

from repoforge.status import AheadBehind, RepoStatus, StatusKind


def test_ahead_behind_zero_is_current():
    assert AheadBehind.ZERO.to_status() == RepoStatus(StatusKind.CURRENT)


def test_ahead_only():
    assert AheadBehind(ahead=3, behind=0).to_status() == RepoStatus(StatusKind.AHEAD, n=3)


def test_behind_only():
    assert AheadBehind(ahead=0, behind=5).to_status() == RepoStatus(StatusKind.BEHIND, n=5)


def test_diverged():
    assert AheadBehind(ahead=1, behind=2).to_status() == RepoStatus(
        StatusKind.DIVERGED, ahead=1, behind=2
    )


def test_display_formats():
    assert str(RepoStatus(StatusKind.CURRENT)) == "Current"
    assert str(RepoStatus(StatusKind.BEHIND, n=3)) == "Behind by 3"
    assert str(RepoStatus(StatusKind.AHEAD, n=1)) == "Ahead by 1"
    assert str(RepoStatus(StatusKind.DIVERGED, ahead=2, behind=3)) == "Diverged (2 ahead, 3 behind)"
    assert str(RepoStatus(StatusKind.DIRTY)) == "Dirty"
    assert str(RepoStatus(StatusKind.MISSING)) == "Missing"


def test_to_dict_tagged_by_kind():
    assert RepoStatus(StatusKind.CURRENT).to_dict() == {"kind": "current"}
    assert RepoStatus(StatusKind.BEHIND, n=3).to_dict() == {"kind": "behind", "n": 3}
    assert RepoStatus(StatusKind.DIVERGED, ahead=2, behind=3).to_dict() == {
        "kind": "diverged",
        "ahead": 2,
        "behind": 3,
    }


def test_counted_kind_requires_n():
    with pytest.raises(ValueError):
        RepoStatus(StatusKind.BEHIND)


def test_plain_kind_rejects_counts():
    with pytest.raises(ValueError):
        RepoStatus(StatusKind.CURRENT, n=1)


def test_diverged_requires_both_counts():
    with pytest.raises(ValueError):
        RepoStatus(StatusKind.DIVERGED, ahead=1)