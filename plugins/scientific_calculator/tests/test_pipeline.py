import pytest

from plugins.scientific_calculator.core import (
    ConversionError,
    ERROR_MARKER,
    ExpressionError,
    MemoryBank,
    build_scope,
    evaluate_internal,
    format_result,
    rewrite_expression,
    toggle_fraction,
)


def test_rewrite_infix_permutation_and_combination():
    assert rewrite_expression("5P2") == "permutations(5, 2)"
    assert rewrite_expression("5P2+3C1") == "permutations(5, 2)+combinations(3, 1)"


def test_rewrite_chains_left_to_right():
    assert rewrite_expression("5P2C1") == "combinations(permutations(5, 2), 1)"


def test_rewrite_accepts_answer_and_registers():
    assert rewrite_expression("AnsP2") == "permutations(Ans, 2)"
    assert rewrite_expression("AC3") == "combinations(A, 3)"


def test_rewrite_leaves_function_names_alone():
    assert rewrite_expression("Abs(-2)+cos(0)") == "Abs(-2)+cos(0)"


def test_rewrite_quotes_calculus_bodies():
    assert rewrite_expression("integrate(sin(X),0,pi)") == 'integrate("sin(X)",0,pi)'
    assert rewrite_expression("deriv(X^2,3)") == 'deriv("X^2",3)'


def test_rewrite_does_not_double_quote():
    text = 'integrate("X",0,1)'
    assert rewrite_expression(text) == text


def test_permutation_and_combination_values():
    memory = MemoryBank()
    assert evaluate_internal("5P2", memory, "DEG") == "20"
    assert evaluate_internal("5C2", memory, "DEG") == "10"


def test_degree_and_radian_trig():
    memory = MemoryBank()
    assert evaluate_internal("sin(90)", memory, "DEG") == "1"
    assert evaluate_internal("asin(0.5)", memory, "DEG") == "30"
    assert float(evaluate_internal("sin(90)", memory, "RAD")) == pytest.approx(0.8939966636)


def test_gradians_follow_radians():
    memory = MemoryBank()
    assert evaluate_internal("cos(1)", memory, "GRA") == evaluate_internal("cos(1)", memory, "RAD")


def test_calculus_inside_expression():
    memory = MemoryBank()
    assert float(evaluate_internal("integrate(sin(X),0,pi)", memory, "DEG")) == pytest.approx(2.0, abs=1e-4)
    assert float(evaluate_internal("deriv(X^2,3)", memory, "DEG")) == pytest.approx(6.0, abs=1e-3)


def test_scope_contains_registers_and_answer():
    memory = MemoryBank()
    memory.store("B", 4)
    memory.commit_answer("2.5")
    scope = build_scope(memory, "RAD")
    assert scope["B"] == 4.0
    assert scope["Ans"] == 2.5
    assert "sin" not in scope
    assert "sin" in build_scope(memory, "DEG")
    assert evaluate_internal("B*Ans", memory, "RAD") == "10"


def test_matrix_registers_are_evaluable():
    memory = MemoryBank()
    memory.store_matrix("A", [[1, 2], [3, 4]])
    assert evaluate_internal("MatA*2", memory, "DEG") == "[[2, 4], [6, 8]]"


def test_evaluation_errors_raise():
    with pytest.raises(ExpressionError):
        evaluate_internal("(2", MemoryBank(), "DEG")


def test_format_result_snaps_to_integers():
    assert format_result(2.0000000001) == "2"
    assert format_result(-3.0) == "-3"
    assert format_result(0.1 + 0.2) == "0.3"
    assert format_result(1e22) == "1e+22"


def test_toggle_fraction_round_trip():
    assert toggle_fraction("0.5") == "1/2"
    assert toggle_fraction("1/2") == "0.5"


def test_toggle_fraction_prefers_simple_denominator():
    assert toggle_fraction("0.3333333333") == "1/3"
    assert toggle_fraction("0.25") == "1/4"


def test_toggle_fraction_rejects_error_marker():
    with pytest.raises(ConversionError):
        toggle_fraction(ERROR_MARKER)
