import typing

import msgspec

from .keyboard_consts import KeyCode, Modifier


class KeycodeEntry(msgspec.Struct, frozen=True):
    name: str
    alt_name: typing.Optional[str] = None
    shifted_name: typing.Optional[str] = None


class ModifierKey(msgspec.Struct, frozen=True):
    name: str
    letter: str
    mod: Modifier
    codes: tuple[KeyCode, KeyCode]


# Unshifted and shifted characters for keys that produce one on a US layout.
KEYMAPS = {
    KeyCode.KEY_GRAVE: ("`", "~"),
    KeyCode.KEY_1: ("1", "!"),
    KeyCode.KEY_2: ("2", "@"),
    KeyCode.KEY_3: ("3", "#"),
    KeyCode.KEY_4: ("4", "$"),
    KeyCode.KEY_5: ("5", "%"),
    KeyCode.KEY_6: ("6", "^"),
    KeyCode.KEY_7: ("7", "&"),
    KeyCode.KEY_8: ("8", "*"),
    KeyCode.KEY_9: ("9", "("),
    KeyCode.KEY_0: ("0", ")"),
    KeyCode.KEY_MINUS: ("-", "_"),
    KeyCode.KEY_EQUAL: ("=", "+"),
    KeyCode.KEY_Q: ("q", "Q"),
    KeyCode.KEY_W: ("w", "W"),
    KeyCode.KEY_E: ("e", "E"),
    KeyCode.KEY_R: ("r", "R"),
    KeyCode.KEY_T: ("t", "T"),
    KeyCode.KEY_Y: ("y", "Y"),
    KeyCode.KEY_U: ("u", "U"),
    KeyCode.KEY_I: ("i", "I"),
    KeyCode.KEY_O: ("o", "O"),
    KeyCode.KEY_P: ("p", "P"),
    KeyCode.KEY_LEFTBRACE: ("[", "{"),
    KeyCode.KEY_RIGHTBRACE: ("]", "}"),
    KeyCode.KEY_BACKSLASH: ("\\", "|"),
    KeyCode.KEY_A: ("a", "A"),
    KeyCode.KEY_S: ("s", "S"),
    KeyCode.KEY_D: ("d", "D"),
    KeyCode.KEY_F: ("f", "F"),
    KeyCode.KEY_G: ("g", "G"),
    KeyCode.KEY_H: ("h", "H"),
    KeyCode.KEY_J: ("j", "J"),
    KeyCode.KEY_K: ("k", "K"),
    KeyCode.KEY_L: ("l", "L"),
    KeyCode.KEY_SEMICOLON: (";", ":"),
    KeyCode.KEY_APOSTROPHE: ("'", '"'),
    KeyCode.KEY_Z: ("z", "Z"),
    KeyCode.KEY_X: ("x", "X"),
    KeyCode.KEY_C: ("c", "C"),
    KeyCode.KEY_V: ("v", "V"),
    KeyCode.KEY_B: ("b", "B"),
    KeyCode.KEY_N: ("n", "N"),
    KeyCode.KEY_M: ("m", "M"),
    KeyCode.KEY_COMMA: (",", "<"),
    KeyCode.KEY_DOT: (".", ">"),
    KeyCode.KEY_SLASH: ("/", "?"),
}

NAME_OVERRIDES = {
    KeyCode.KEY_ESC: "esc",
    KeyCode.KEY_LEFTCTRL: "leftcontrol",
    KeyCode.KEY_RIGHTCTRL: "rightcontrol",
}

ALT_NAMES = {
    KeyCode.KEY_ESC: "escape",
}


def _make_keycode_table() -> tuple[typing.Optional[KeycodeEntry], ...]:
    table: list[typing.Optional[KeycodeEntry]] = [None] * 256
    for key in KeyCode:
        if key is KeyCode.KEY_RESERVED:
            continue
        name = NAME_OVERRIDES.get(key, key.name.removeprefix("KEY_").lower())
        alt_name = ALT_NAMES.get(key)
        shifted_name = None
        if key in KEYMAPS:
            plain, shifted_name = KEYMAPS[key]
            if plain != name:
                alt_name = plain
        table[key] = KeycodeEntry(name=name, alt_name=alt_name, shifted_name=shifted_name)
    return tuple(table)


KEYCODE_TABLE = _make_keycode_table()

_CODES_BY_NAME: dict[str, int] = {}
_CODES_BY_SHIFTED_NAME: dict[str, int] = {}
for _code, _ent in enumerate(KEYCODE_TABLE):
    if _ent is None:
        continue
    _CODES_BY_NAME.setdefault(_ent.name, _code)
    if _ent.alt_name is not None:
        _CODES_BY_NAME.setdefault(_ent.alt_name, _code)
    if _ent.shifted_name is not None:
        _CODES_BY_SHIFTED_NAME.setdefault(_ent.shifted_name, _code)

MODIFIER_TABLE = (
    ModifierKey(name="control", letter="C", mod=Modifier.CONTROL, codes=(KeyCode.KEY_LEFTCTRL, KeyCode.KEY_RIGHTCTRL)),
    ModifierKey(name="meta", letter="M", mod=Modifier.META, codes=(KeyCode.KEY_LEFTMETA, KeyCode.KEY_RIGHTMETA)),
    ModifierKey(name="shift", letter="S", mod=Modifier.SHIFT, codes=(KeyCode.KEY_LEFTSHIFT, KeyCode.KEY_RIGHTSHIFT)),
    ModifierKey(name="altgr", letter="G", mod=Modifier.ALTGR, codes=(KeyCode.KEY_RIGHTALT, KeyCode.KEY_RIGHTALT)),
    ModifierKey(name="alt", letter="A", mod=Modifier.ALT, codes=(KeyCode.KEY_LEFTALT, KeyCode.KEY_LEFTALT)),
)

MODIFIERS_BY_LETTER = {m.letter: int(m.mod) for m in MODIFIER_TABLE}
MODIFIER_CODES = frozenset(code for m in MODIFIER_TABLE for code in m.codes)


def lookup_keycode(name: str) -> typing.Optional[int]:
    "Resolve a key by its name or alternate name. Shifted names are not keycodes."
    return _CODES_BY_NAME.get(name)


def keycode_name(code: int) -> str:
    ent = KEYCODE_TABLE[code]
    if ent is None:
        raise ValueError(f"No key name for code {code}")
    return ent.name


def lookup_character(ch: str) -> typing.Optional[tuple[int, int]]:
    "Resolve a single ASCII character to the (code, mods) that types it."
    code = _CODES_BY_NAME.get(ch)
    if code is not None:
        return code, 0
    code = _CODES_BY_SHIFTED_NAME.get(ch)
    if code is not None:
        return code, int(Modifier.SHIFT)
    return None


def is_modifier_code(code: int) -> bool:
    return code in MODIFIER_CODES


def parse_key_sequence(s: str) -> typing.Optional[tuple[int, int]]:
    """Parse a possibly modifier-prefixed key name such as ``C-S-tab``.

    Returns (code, mods), or None if the string isn't a key sequence. A shifted name (``!``, ``A``)
    resolves to its base key with the shift bit added.
    """
    mods = 0
    while len(s) > 1 and s[1] == "-":
        mod = MODIFIERS_BY_LETTER.get(s[0])
        if mod is None:
            return None
        mods |= mod
        s = s[2:]
    if not s:
        return None
    code = _CODES_BY_SHIFTED_NAME.get(s)
    if code is not None:
        return code, mods | int(Modifier.SHIFT)
    code = _CODES_BY_NAME.get(s)
    if code is not None:
        return code, mods
    return None


def parse_modset(s: str) -> typing.Optional[int]:
    "Parse a layer modifier set such as ``C`` or ``C-S``; ``+`` is accepted as a separator too."
    if not s:
        return None
    mods = 0
    for letter in s.replace("+", "-").split("-"):
        mod = MODIFIERS_BY_LETTER.get(letter)
        if mod is None:
            return None
        mods |= mod
    return mods


def format_mods(mods: int) -> str:
    return "".join(f"{m.letter}-" for m in MODIFIER_TABLE if mods & m.mod)
