import logging

import pytest

from clavis.commontypes import BindingError, CapacityError
from clavis.composes import COMPOSE_TABLE, lookup_compose_index
from clavis.configtypes import MAX_MACRO_SIZE, MAX_MACRO_SOURCE_LEN, Delay, Hold, KeyEntry, Release, Unicode
from clavis.keyboard_consts import KeyCode, Modifier
from clavis.macros import compile_macro, is_macro_call, parse_macro_expression, parse_timeout_token


def test_text_is_typed_key_by_key():
    macro = parse_macro_expression("macro(ab)")
    assert macro.entries == (KeyEntry(code=KeyCode.KEY_A, mods=0), KeyEntry(code=KeyCode.KEY_B, mods=0))


def test_chord_holds_then_releases():
    macro = parse_macro_expression("macro(a+b)")
    assert macro.entries == (Hold(code=KeyCode.KEY_A), Hold(code=KeyCode.KEY_B), Release())


@pytest.mark.parametrize(
    "source,expected",
    (
        ("macro(C-a)", (KeyEntry(code=KeyCode.KEY_A, mods=Modifier.CONTROL),)),
        ("macro(Hi)", (KeyEntry(code=KeyCode.KEY_H, mods=Modifier.SHIFT), KeyEntry(code=KeyCode.KEY_I, mods=0))),
        ("macro(a 100ms b)", (KeyEntry(code=KeyCode.KEY_A), Delay(ms=100), KeyEntry(code=KeyCode.KEY_B))),
        ("macro(a+50ms+b)", (Hold(code=KeyCode.KEY_A), Delay(ms=50), Hold(code=KeyCode.KEY_B), Release())),
        ("macro(C-a+b)", (Hold(code=KeyCode.KEY_A), Hold(code=KeyCode.KEY_B), Release())),
        ("macro(a+)", (Hold(code=KeyCode.KEY_A), Release())),
        ("macro(  a   b )", (KeyEntry(code=KeyCode.KEY_A), KeyEntry(code=KeyCode.KEY_B))),
        ("macro(enter)", (KeyEntry(code=KeyCode.KEY_ENTER),)),
        ("macro(forms)", tuple(KeyEntry(code=code) for code in (KeyCode.KEY_F, KeyCode.KEY_O, KeyCode.KEY_R, KeyCode.KEY_M, KeyCode.KEY_S))),
        ("macro(\\(x\\))", (
            KeyEntry(code=KeyCode.KEY_9, mods=Modifier.SHIFT),
            KeyEntry(code=KeyCode.KEY_X),
            KeyEntry(code=KeyCode.KEY_0, mods=Modifier.SHIFT),
        )),
        ("C-S-tab", (KeyEntry(code=KeyCode.KEY_TAB, mods=Modifier.CONTROL | Modifier.SHIFT),)),
        ("x", (KeyEntry(code=KeyCode.KEY_X),)),
        ("?", (KeyEntry(code=KeyCode.KEY_SLASH, mods=Modifier.SHIFT),)),
    ),
)
def test_parse_macro_expression(source, expected):
    assert parse_macro_expression(source).entries == expected


def test_non_ascii_uses_compose_index():
    index = lookup_compose_index(ord("é"))
    assert index is not None
    assert COMPOSE_TABLE.character(index) == "é"
    macro = parse_macro_expression("macro(café)")
    assert macro.entries[-1] == Unicode(index=index)
    assert len(macro.entries) == 4


def test_unknown_codepoint_is_skipped(caplog):
    with caplog.at_level(logging.DEBUG, logger="clavis.macros"):
        macro = parse_macro_expression("macro(a☃b)")
    assert macro.entries == (KeyEntry(code=KeyCode.KEY_A), KeyEntry(code=KeyCode.KEY_B))
    assert "Skipping" in caplog.text


@pytest.mark.parametrize("source", ("notamacro", "C-nosuchkey", "swap(nav)"))
def test_invalid_macro(source):
    with pytest.raises(BindingError) as excinfo:
        parse_macro_expression(source)
    assert excinfo.value.token == source


def test_invalid_chord_piece():
    with pytest.raises(BindingError) as excinfo:
        parse_macro_expression("macro(a+nosuchkey)")
    assert str(excinfo.value) == "nosuchkey is not a valid key"


def test_macro_entry_limit():
    assert len(compile_macro(" ".join(["a"] * MAX_MACRO_SIZE)).entries) == MAX_MACRO_SIZE
    with pytest.raises(CapacityError):
        compile_macro(" ".join(["a"] * (MAX_MACRO_SIZE + 1)))


def test_macro_source_limit():
    source = "macro(" + "a " * MAX_MACRO_SOURCE_LEN + ")"
    with pytest.raises(CapacityError):
        parse_macro_expression(source)


@pytest.mark.parametrize(
    "token,expected",
    (("250ms", 250), ("0ms", 0), ("ms", None), ("forms", None), ("10", None), ("10s", None)),
)
def test_parse_timeout_token(token, expected):
    assert parse_timeout_token(token) == expected


def test_is_macro_call():
    assert is_macro_call("macro(a)")
    assert not is_macro_call("macro(a")
    assert not is_macro_call("macro2(1, 2, a)")
