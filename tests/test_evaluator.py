import pytest

from measureplan.errors import FormulaEvaluationError
from measureplan.formula.evaluator import (
    Binary,
    NullIf,
    Variable,
    evaluate_formula,
    parse_expression,
    tokenize,
)


def test_division_by_zero_is_none_not_a_number():
    assert evaluate_formula("A / B", {"A": 10, "B": 0}) is None
    assert evaluate_formula("A / B", {"A": 10.0, "B": 0.0}) is None


def test_nullif_guard():
    assert evaluate_formula("nullIf(A, B) ", {"A": 5, "B": 5}) is None
    assert evaluate_formula("nullIf(A, B) ", {"A": 5, "B": 0}) == 5


def test_guarded_ratio_with_aggregation_keys():
    variables = {"sum(ESF_H)": 8.0, "sum(PFD)": 4.0}
    assert evaluate_formula("DD = sum(ESF_H) / nullIf(sum(PFD), 0)", variables) == 2.0

    variables["sum(PFD)"] = 0.0
    assert evaluate_formula("DD = sum(ESF_H) / nullIf(sum(PFD), 0)", variables) is None


def test_binding_by_name_has_no_substring_collisions():
    variables = {"A": 2.0, "AB": 10.0, "sum(A)": 100.0}
    assert evaluate_formula("R = AB + A + sum(A)", variables) == 112.0


def test_operator_precedence_and_power():
    assert evaluate_formula("2 + 3 * 4", {}) == 14
    assert evaluate_formula("(2 + 3) * 4", {}) == 20
    assert evaluate_formula("2 ^ 3 ^ 2", {}) == 512
    assert evaluate_formula("-2 ^ 2", {}) == -4
    assert evaluate_formula("2 ^ -1", {}) == 0.5
    assert evaluate_formula("1.5e2 / .5", {}) == 300


def test_comparisons_and_ternary():
    assert evaluate_formula("A > B ? A : B", {"A": 3, "B": 7}) == 7
    assert evaluate_formula("A == B ? 1 : 0", {"A": 3, "B": 3}) == 1
    assert evaluate_formula("A >= 3", {"A": 3}) == 1.0


def test_nan_propagates_to_none():
    assert evaluate_formula("nullIf(A, 0) * 2 + 1", {"A": 0}) is None
    assert evaluate_formula("NaN", {}) is None


def test_non_real_result_is_none():
    assert evaluate_formula("A ^ 0.5", {"A": -4}) is None


def test_result_is_float():
    result = evaluate_formula("A + 1", {"A": 1})
    assert isinstance(result, float)
    assert result == 2.0


def test_unbound_symbol_is_an_error():
    with pytest.raises(FormulaEvaluationError, match="Undefined symbol B"):
        evaluate_formula("A + B", {"A": 1})


def test_malformed_formula_is_an_error():
    with pytest.raises(FormulaEvaluationError):
        evaluate_formula("A + ", {"A": 1})
    with pytest.raises(FormulaEvaluationError):
        evaluate_formula("(A", {"A": 1})
    with pytest.raises(FormulaEvaluationError):
        evaluate_formula("A $ 2", {"A": 1})


def test_unknown_function_is_an_error():
    with pytest.raises(FormulaEvaluationError, match="Unknown function stddev"):
        evaluate_formula("stddev(A)", {"A": 1})


def test_parse_tree_shape():
    node = parse_expression("sum( X ) / nullIf(Y, 0)")
    assert isinstance(node, Binary)
    assert node.left == Variable("sum( X )")
    assert isinstance(node.right, NullIf)
    assert node.right.value == Variable("Y")


def test_tokenizer_ends_with_end_token():
    tokens = tokenize("A<=2")
    assert [t.text for t in tokens] == ["A", "<=", "2", ""]
    assert tokens[-1].kind == "end"


def test_power_overflow_is_none():
    assert evaluate_formula("count(A) ^ (count(A) * count(A))", {"count(A)": 20}) is None
    assert evaluate_formula("count(A) ^ count(A) ^ count(A)", {"count(A)": 10}) is None


def test_empty_expression_is_none():
    assert evaluate_formula("RESULT = ", {}) is None
    assert evaluate_formula("", {}) is None
    assert evaluate_formula(None, {}) is None
