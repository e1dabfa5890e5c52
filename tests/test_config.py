import msgspec
import pytest

from clavis.commontypes import CapacityError, CommandRef, ConfigError, DescriptorRef, MacroRef
from clavis.config import parse_config, parse_config_string
from clavis.configtypes import (
    MAX_COMMANDS,
    MAX_IDS,
    Config,
    DeviceMatch,
    KeySequence,
    LayerHold,
    LayerKind,
    Overload,
    RunCommand,
    device_id,
)
from clavis.keyboard_consts import KeyCode, Modifier


def binding(config: Config, layer: str, code: int):
    return config.lookup(config.layer_index(layer), code)


def test_explicit_device_id():
    config = parse_config_string("[ids]\n1234:5678\n")
    assert device_id(0x1234, 0x5678) == 0x12345678
    assert config.match_device(0x12345678) is DeviceMatch.EXPLICIT
    assert config.match_device(0x12345679) is DeviceMatch.NO_MATCH


@pytest.mark.parametrize(
    "ids,expected",
    (
        ("*", DeviceMatch.WILDCARD),
        ("1234:5678\n-1234:5678", DeviceMatch.NO_MATCH),
        ("*\n-1234:5678", DeviceMatch.NO_MATCH),
        ("-1234:5678\n*\n1234:5678", DeviceMatch.NO_MATCH),
        ("*\n1234:5678", DeviceMatch.EXPLICIT),
        ("*\n-1111:2222", DeviceMatch.WILDCARD),
        ("", DeviceMatch.NO_MATCH),
    ),
)
def test_device_matching(ids, expected):
    config = parse_config_string(f"[ids]\n{ids}\n")
    assert config.match_device(0x12345678) is expected


def test_invalid_device_id_is_skipped(caplog):
    config = parse_config_string("[ids]\nzzzz:1\n1:2\n", path="ids.conf")
    assert config.ids == (device_id(1, 2),)
    assert "ids.conf:2: zzzz:1 is not a valid device id" in caplog.text


def test_bindings():
    config = parse_config_string(
        """
[main]
capslock = overload(nav, esc)
a = C-b

[nav]
h = left
"""
    )
    nav = config.layer_index("nav")
    assert binding(config, "main", KeyCode.KEY_CAPSLOCK) == Overload(layer=nav, action=DescriptorRef(0))
    assert config.descriptors == (KeySequence(code=KeyCode.KEY_ESC, mods=0),)
    assert binding(config, "main", KeyCode.KEY_A) == KeySequence(code=KeyCode.KEY_B, mods=Modifier.CONTROL)
    assert binding(config, "nav", KeyCode.KEY_H) == KeySequence(code=KeyCode.KEY_LEFT, mods=0)
    assert binding(config, "nav", KeyCode.KEY_J) is None


def test_modifier_defaults_and_clearing():
    config = parse_config_string("[main]\nleftshift =\n")
    assert binding(config, "main", KeyCode.KEY_LEFTSHIFT) is None
    assert binding(config, "main", KeyCode.KEY_RIGHTSHIFT) == LayerHold(layer=config.layer_index("shift"))


def test_binding_a_builtin_alias_binds_both_keys():
    config = parse_config_string("[main]\nshift = oneshot(shift)\n")
    expected = binding(config, "main", KeyCode.KEY_LEFTSHIFT)
    assert expected.layer == config.layer_index("shift")
    assert binding(config, "main", KeyCode.KEY_RIGHTSHIFT) == expected


def test_aliases():
    config = parse_config_string(
        """
[aliases]
capslock = esc
rightmeta = hyper

[main]
hyper = a
esc = b
"""
    )
    assert config.aliases[KeyCode.KEY_CAPSLOCK] == "esc"
    assert config.aliases[KeyCode.KEY_RIGHTMETA] == "hyper"
    assert binding(config, "main", KeyCode.KEY_RIGHTMETA) == KeySequence(code=KeyCode.KEY_A, mods=0)
    # a binding for an alias name applies to the aliased keys only
    assert binding(config, "main", KeyCode.KEY_CAPSLOCK) == KeySequence(code=KeyCode.KEY_B, mods=0)
    assert binding(config, "main", KeyCode.KEY_ESC) is None


def test_alias_to_a_key_name_remaps_in_main_only():
    config = parse_config_string("[aliases]\ncapslock = esc\n[nav]\n")
    assert binding(config, "main", KeyCode.KEY_CAPSLOCK) == KeySequence(code=KeyCode.KEY_ESC, mods=0)
    assert binding(config, "nav", KeyCode.KEY_CAPSLOCK) is None


def test_invalid_aliases(caplog):
    config = parse_config_string("[aliases]\nnosuchkey = x\na =\nb = " + "x" * 40 + "\n", path="a.conf")
    assert config.aliases[KeyCode.KEY_A] is None
    assert config.aliases[KeyCode.KEY_B] is None
    assert "a.conf:2: failed to define alias x, nosuchkey is not a valid keycode" in caplog.text
    assert "a.conf:3: missing alias name for a" in caplog.text
    assert "a.conf:4:" in caplog.text


def test_global_settings(caplog):
    config = parse_config_string(
        """
[global]
macro_timeout = 200
bogus = 1
macro_repeat_timeout = soon
""",
        path="g.conf",
    )
    assert config.settings.macro_timeout == 200
    assert config.settings.macro_repeat_timeout == 50
    assert config.settings.macro_sequence_timeout == 0
    assert "g.conf:4: bogus is not a valid global option" in caplog.text
    assert "g.conf:5: invalid value for macro_repeat_timeout" in caplog.text


def test_default_layout(caplog):
    config = parse_config_string("[global]\ndefault_layout = dvorak\n[dvorak:layout]\n")
    assert config.settings.default_layout == "dvorak"
    assert config.layer(config.layer_index("dvorak")).kind is LayerKind.LAYOUT
    assert "is not a layout" not in caplog.text

    parse_config_string("[global]\ndefault_layout = nav\n[nav]\n")
    assert "default_layout nav is not a layout" in caplog.text


def test_bad_bindings_are_skipped(caplog):
    config = parse_config_string(
        """
[main]
a = nosuchkey
b = c
nosuchkey = d
e
""",
        path="test.conf",
    )
    assert binding(config, "main", KeyCode.KEY_A) is None
    assert binding(config, "main", KeyCode.KEY_B) == KeySequence(code=KeyCode.KEY_C, mods=0)
    assert "test.conf:3: invalid key or action" in caplog.text
    assert "test.conf:5: nosuchkey is not a valid keycode or alias" in caplog.text
    assert "test.conf:6: invalid binding" in caplog.text


def test_failed_binding_leaves_no_trace():
    config = parse_config_string(
        """
[main]
a = timeout(macro(x y), 10, nosuchkey)
b = timeout(command(echo hi), 10, toggle(nosuchlayer))
c = command(echo ok)
"""
    )
    assert binding(config, "main", KeyCode.KEY_A) is None
    assert binding(config, "main", KeyCode.KEY_B) is None
    assert config.macros == ()
    assert config.descriptors == ()
    assert [command.cmd for command in config.commands] == ["echo ok"]
    assert binding(config, "main", KeyCode.KEY_C) == RunCommand(command=CommandRef(0))


def test_bindings_can_refer_to_later_layers():
    config = parse_config_string("[main]\ncapslock = toggle(nav)\n[nav]\n")
    assert binding(config, "main", KeyCode.KEY_CAPSLOCK).layer == config.layer_index("nav")


def test_invalid_layer_is_skipped(caplog):
    config = parse_config_string("[nav]\n[nav+nosuch]\na = b\n", path="l.conf")
    assert config.layer_index("nav+nosuch") is None
    assert "l.conf:2: nosuch is not a valid layer" in caplog.text


def test_capacity_error_is_fatal():
    text = "[main]\n" + "a = command(true)\n" * (MAX_COMMANDS + 1)
    with pytest.raises(CapacityError) as excinfo:
        parse_config_string(text, path="big.conf")
    assert excinfo.value.lnum == MAX_COMMANDS + 2
    assert str(excinfo.value).startswith(f"big.conf:{MAX_COMMANDS + 2}: ")


def test_typed_handles():
    config = parse_config_string("[main]\na = macro(b c)\n")
    ref = binding(config, "main", KeyCode.KEY_A).macro
    assert ref == MacroRef(0)
    assert ref != DescriptorRef(0)
    with pytest.raises(TypeError):
        config.descriptor(ref)


def test_parse_config_file(tmp_path):
    (tmp_path / "common").write_text("[nav]\nh = left\n")
    path = tmp_path / "default.conf"
    path.write_text("[ids]\n*\n\ninclude common\n\n[main]\ncapslock = layer(nav)\n")
    config = parse_config(path, include_dirs=[])
    assert config.path == str(path)
    assert binding(config, "nav", KeyCode.KEY_H) == KeySequence(code=KeyCode.KEY_LEFT, mods=0)
    assert binding(config, "main", KeyCode.KEY_CAPSLOCK) == LayerHold(layer=config.layer_index("nav"))


def test_unreadable_config(tmp_path):
    with pytest.raises(ConfigError):
        parse_config(tmp_path / "missing.conf", include_dirs=[])


def test_config_encodes_as_json():
    config = parse_config_string("[ids]\n*\n[main]\na = overload(control, macro(x+y 10ms))\nb = command(ls)\n")
    assert msgspec.json.decode(msgspec.json.encode(config), type=Config) == config


def test_layer_by_index():
    config = parse_config_string("[nav:C]\n")
    ref = config.layer_index("nav")
    assert config.layer_by_index(ref.index) is config.layer(ref)
    assert config.layer_by_index(0).name == "main"


def test_device_id_overflow_names_the_line():
    ids = "\n".join(f"1234:{i:04x}" for i in range(MAX_IDS + 1))
    with pytest.raises(CapacityError) as excinfo:
        parse_config_string(f"[ids]\n{ids}\n", path="ids.conf")
    assert excinfo.value.lnum == MAX_IDS + 2
    assert str(excinfo.value).startswith(f"ids.conf:{MAX_IDS + 2}: ")


def test_other_line_breaks_stay_inside_a_binding():
    config = parse_config_string("[main]\na = macro(x\x0cy)\nb = c\n")
    assert binding(config, "main", KeyCode.KEY_B) == KeySequence(code=KeyCode.KEY_C, mods=0)
    assert len(config.macros) == 1
