import pytest

from clavis.commontypes import ConfigError
from clavis.sections import Entry, Section, parse_kvp, parse_sections


@pytest.mark.parametrize(
    "line,expected",
    (
        ("a = b", ("a", "b")),
        ("a=b", ("a", "b")),
        ("a =", ("a", "")),
        ("= = C-equal", ("=", "C-equal")),
        ("a = b = c", ("a", "b = c")),
        ("capslock", ("capslock", None)),
        ("  x  =  command(echo hi)  ", ("x", "command(echo hi)")),
    ),
)
def test_parse_kvp(line, expected):
    assert parse_kvp(line) == expected


def test_parse_sections():
    text = """
# leading comment
[ids]
*
-1234:abcd

[main]
capslock = overload(control, esc)
  # indented comment
a = b
"""
    assert parse_sections(text) == (
        Section(
            name="ids",
            lnum=3,
            entries=(Entry(key="*", value=None, lnum=4), Entry(key="-1234:abcd", value=None, lnum=5)),
        ),
        Section(
            name="main",
            lnum=7,
            entries=(
                Entry(key="capslock", value="overload(control, esc)", lnum=8),
                Entry(key="a", value="b", lnum=10),
            ),
        ),
    )


def test_empty_sections_are_kept():
    assert parse_sections("[nav]\n[main]\n") == (
        Section(name="nav", lnum=1, entries=()),
        Section(name="main", lnum=2, entries=()),
    )


@pytest.mark.parametrize(
    "text,lnum",
    (
        ("a = b\n[main]\n", 1),
        ("[main]\n[nav\n", 2),
        ("[main]\n[]\n", 2),
    ),
)
def test_malformed_sections(text, lnum):
    with pytest.raises(ConfigError) as excinfo:
        parse_sections(text, path="bad.conf")
    assert excinfo.value.lnum == lnum
    assert str(excinfo.value).startswith(f"bad.conf:{lnum}: ")


def test_only_newlines_end_a_line():
    assert parse_sections("[main]\na = macro(x\x0cy z)\r\nb = c") == (
        Section(
            name="main",
            lnum=1,
            entries=(Entry(key="a", value="macro(x\x0cy z)", lnum=2), Entry(key="b", value="c", lnum=3)),
        ),
    )
