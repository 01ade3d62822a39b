from a11y_mcp.metrics import count_by_severity, severity_rank, top_issues, UNRANKED
from a11y_mcp.schema import AxeViolation


def _v(vid, impact):
    return AxeViolation(id=vid, impact=impact, description=vid)


def test_severity_rank_order():
    assert [severity_rank(i) for i in ("critical", "serious", "moderate", "minor")] == [0, 1, 2, 3]
    # Unknown and missing impacts rank after minor
    assert severity_rank(None) == UNRANKED
    assert severity_rank("Critical") == UNRANKED
    assert severity_rank("blocker") == UNRANKED


def test_count_by_severity_exact_match():
    violations = [
        _v("a", "critical"),
        _v("b", "critical"),
        _v("c", "minor"),
        _v("d", None),
        _v("e", "Serious"),  # case differs -> not counted
    ]
    counts = count_by_severity(violations)
    assert counts == {"critical": 2, "serious": 0, "moderate": 0, "minor": 1}
    # bucket sum is below the total because two impacts are unrecognised
    assert sum(counts.values()) == 3 < len(violations)


def test_count_by_severity_all_recognised_sums_to_total():
    violations = [_v("a", "serious"), _v("b", "moderate"), _v("c", "minor"), _v("d", "critical")]
    assert sum(count_by_severity(violations).values()) == len(violations)


def test_top_issues_sorted_and_stable():
    violations = [
        _v("m1", "moderate"),
        _v("c1", "critical"),
        _v("s1", "serious"),
        _v("c2", "critical"),
        _v("x1", None),
        _v("m2", "moderate"),
        _v("n1", "minor"),
    ]
    top = top_issues(violations)
    assert [v.id for v in top] == ["c1", "c2", "s1", "m1", "m2"]
    ranks = [severity_rank(v.impact) for v in top]
    assert ranks == sorted(ranks)
    # input untouched
    assert violations[0].id == "m1"


def test_top_issues_shorter_than_limit():
    violations = [_v("x", None), _v("a", "minor")]
    assert [v.id for v in top_issues(violations)] == ["a", "x"]
    assert top_issues([]) == []
    assert top_issues(violations, limit=0) == []
