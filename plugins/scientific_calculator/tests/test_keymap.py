import pytest

from plugins.scientific_calculator.core import CALCULATOR_MODES, KeyMapping, translate
from plugins.scientific_calculator.core.keymap import KEYPAD_TOKENS, REGISTER_KEYS


def test_base_layer_mapping():
    assert translate("sin") == KeyMapping("sin(", "sin(", False)
    assert translate("*") == KeyMapping("×", "*", False)
    assert translate("log").internal == "log10("
    assert translate("ln").internal == "log("


def test_shift_layer_mapping_consumes_modifier():
    mapping = translate("sin", "shift")
    assert mapping == KeyMapping("sin⁻¹(", "asin(", True)
    assert translate("*", "shift").internal == "P"
    assert translate("/", "shift").internal == "C"
    assert translate("ans", "shift").internal == "/100"


def test_alpha_layer_maps_registers():
    assert translate("7", "alpha") == KeyMapping("A", "A", True)
    assert translate(")", "alpha").internal == "X"
    assert translate("m+", "alpha").internal == "M"


def test_missing_entry_falls_back_to_base_layer():
    mapping = translate("cos", "alpha")
    assert (mapping.visual, mapping.internal) == ("cos(", "cos(")
    assert mapping.modifier_consumed is True


def test_unmapped_token_passes_through():
    assert translate("7") == KeyMapping("7", "7", False)
    assert translate("+", "shift") == KeyMapping("+", "+", True)


def test_answer_key_inserts_literal():
    mapping = translate("ans", last_answer="42")
    assert mapping.visual == "Ans"
    assert mapping.internal == "42"


@pytest.mark.parametrize("mode", CALCULATOR_MODES)
def test_mode_does_not_change_mapping(mode):
    assert translate("sqrt", "base", mode) == translate("sqrt")


def test_invalid_layer_and_mode():
    with pytest.raises(ValueError):
        translate("sin", "hyper")
    with pytest.raises(ValueError):
        translate("sin", "base", "GRAPH")


def test_register_keys_cover_all_registers():
    assert sorted(REGISTER_KEYS.values()) == sorted("ABCDEFXYM")
    assert set(REGISTER_KEYS) <= KEYPAD_TOKENS


def test_negative_answer_literal_is_parenthesised():
    assert translate("ans", last_answer="-2.5").internal == "(-2.5)"
    assert translate("ans", last_answer="").internal == "0"
