from measureplan.formula.extractor import extract_aggregations, formula_rhs
from measureplan.models import AggregationCall


def test_guarded_ratio_yields_two_sum_calls():
    calls = extract_aggregations("RESULT = sum(ESF_H) / nullIf(sum(PFD), 0)")
    assert calls == [
        AggregationCall("sum", "ESF_H", "sum(ESF_H)"),
        AggregationCall("sum", "PFD", "sum(PFD)"),
    ]


def test_naked_acronyms_become_identity_calls():
    calls = extract_aggregations("X = A + B")
    assert [(c.function, c.acronym, c.full_match) for c in calls] == [
        ("identity", "A", "A"),
        ("identity", "B", "B"),
    ]


def test_aggregation_calls_come_before_identity_references():
    calls = extract_aggregations("R = TOTAL / avg(LEAD_TIME) + COUNT_OK")
    assert [c.function for c in calls] == ["avg", "identity", "identity"]
    assert [c.acronym for c in calls] == ["LEAD_TIME", "TOTAL", "COUNT_OK"]


def test_function_names_are_case_insensitive_and_lowercased():
    calls = extract_aggregations("R = SUM(A) + Median(B)")
    assert [(c.function, c.full_match) for c in calls] == [
        ("sum", "SUM(A)"),
        ("median", "Median(B)"),
    ]


def test_identity_skipped_when_acronym_already_aggregated():
    calls = extract_aggregations("R = sum(A) / A")
    assert calls == [AggregationCall("sum", "A", "sum(A)")]


def test_repeated_identity_listed_once():
    calls = extract_aggregations("R = A * A + A")
    assert len(calls) == 1


def test_reserved_keywords_ignored():
    calls = extract_aggregations("R = A > 0 AND B > 0 ? NaN : NAN")
    assert [c.acronym for c in calls] == ["A", "B"]


def test_left_hand_side_is_not_analyzed():
    assert formula_rhs("RESULT = A + B") == "A + B"
    assert formula_rhs("A == B") == "A == B"
    assert [c.acronym for c in extract_aggregations("RESULT = A")] == ["A"]


def test_never_raises_on_bad_input():
    assert extract_aggregations(None) == []
    assert extract_aggregations(42) == []
    assert extract_aggregations("") == []
    assert extract_aggregations("= = sum(") == []
