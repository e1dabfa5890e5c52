from __future__ import annotations

import collections.abc
import logging
import pathlib
import re
import typing

from .builder import ConfigBuilder
from .commontypes import BindingError, ConfigError, LayerError
from .configtypes import MAX_ALIAS_LEN, MAX_EXP_LEN, Config, KeySequence, LayerKind, device_id
from .descriptors import parse_descriptor
from .includes import SYSTEM_INCLUDE_DIRS, read_config_text
from .keycodes import lookup_keycode
from .layers import MAIN_LAYER, add_layer, seed_builtin_layers, split_layer_spec
from .sections import Section, parse_kvp, parse_sections

logger = logging.getLogger(__name__)

SPECIAL_SECTIONS = frozenset({"ids", "aliases", "global"})
DEVICE_ID_MATCHER = re.compile(r"^(-)?([0-9A-Fa-f]{1,4}):([0-9A-Fa-f]{1,4})$")


def resolve_key(builder: ConfigBuilder, key: str) -> list[int]:
    "Every keycode a binding for ``key`` applies to: all codes aliased to it, or else the key itself."
    codes = [code for code, alias in enumerate(builder.aliases) if alias == key]
    if codes:
        return codes
    code = lookup_keycode(key)
    if code is None:
        raise BindingError(f"{key} is not a valid keycode or alias", token=key)
    return [code]


def add_entry(builder: ConfigBuilder, exp: str):
    """Bind ``[<layer>.]<key> = <descriptor>``.

    The layer prefix ends at the first ``.`` that comes before any ``(``, so dots inside the
    descriptor are left alone. Raises BindingError if the binding is invalid, in which case nothing
    it compiled is kept.
    """
    if len(exp) >= MAX_EXP_LEN:
        raise BindingError(f"expression exceeds maximum expression length ({MAX_EXP_LEN})", token=exp)

    layer_name = MAIN_LAYER
    dot = exp.find(".")
    paren = exp.find("(")
    if dot != -1 and (paren == -1 or dot < paren):
        layer_name, exp = exp[:dot], exp[dot + 1 :]

    key, value = parse_kvp(exp)
    if value is None:
        raise BindingError(f"{exp} is not a valid binding", token=exp)

    ref = builder.layer_index(layer_name)
    if ref is None:
        raise BindingError(f"{layer_name} is not a valid layer", token=layer_name)
    layer = builder.layer(ref)

    with builder.binding():
        descriptor = parse_descriptor(value, builder)
        for code in resolve_key(builder, key):
            layer.keymap[code] = descriptor


def parse_id_section(builder: ConfigBuilder, section: Section):
    for entry in section.entries:
        if entry.key == "*":
            builder.wildcard = True
            continue
        match = DEVICE_ID_MATCHER.match(entry.key)
        if match is None:
            logger.warning("%s:%d: %s is not a valid device id", builder.path, entry.lnum, entry.key)
            continue
        exclude, vendor, product = match.groups()
        try:
            builder.add_id(device_id(int(vendor, 16), int(product, 16)), exclude=exclude is not None)
        except ConfigError as exc:
            _add_context(exc, builder, entry.lnum)
            raise


def parse_alias_section(builder: ConfigBuilder, section: Section):
    for entry in section.entries:
        code = lookup_keycode(entry.key)
        if code is None:
            logger.warning(
                "%s:%d: failed to define alias %s, %s is not a valid keycode", builder.path, entry.lnum, entry.value, entry.key
            )
            continue
        name = entry.value
        if not name:
            logger.warning("%s:%d: missing alias name for %s", builder.path, entry.lnum, entry.key)
            continue
        if len(name) >= MAX_ALIAS_LEN:
            logger.warning("%s:%d: %s exceeds the maximum alias length (%d)", builder.path, entry.lnum, name, MAX_ALIAS_LEN - 1)
            continue
        # Aliasing a key to another key's name remaps it, but only in main.
        alias_code = lookup_keycode(name)
        if alias_code is not None:
            main = builder.layer(builder.layer_index(MAIN_LAYER))
            main.keymap[code] = KeySequence(code=alias_code, mods=0)
        builder.aliases[code] = name


def parse_global_section(builder: ConfigBuilder, section: Section):
    for entry in section.entries:
        try:
            builder.settings = builder.settings.with_option(entry.key, entry.value or "")
        except KeyError:
            logger.warning("%s:%d: %s is not a valid global option", builder.path, entry.lnum, entry.key)
        except ValueError as exc:
            logger.warning("%s:%d: invalid value for %s: %s", builder.path, entry.lnum, entry.key, exc)


SECTION_PARSERS = {
    "ids": parse_id_section,
    "aliases": parse_alias_section,
    "global": parse_global_section,
}


def _add_context(exc: ConfigError, builder: ConfigBuilder, lnum: int):
    if not exc.path:
        exc.path = builder.path
    if exc.lnum is None:
        exc.lnum = lnum


def new_builder(path: str = "") -> ConfigBuilder:
    builder = ConfigBuilder(path=path)
    seed_builtin_layers(builder)
    return builder


def populate(builder: ConfigBuilder, sections: collections.abc.Sequence[Section]):
    # First pass: special sections, and one layer per remaining section header. Every layer exists
    # before any binding is compiled, so bindings can refer to layers declared further down.
    for section in sections:
        if section.name in SECTION_PARSERS:
            SECTION_PARSERS[section.name](builder, section)
            continue
        try:
            add_layer(builder, section.name)
        except LayerError as exc:
            logger.warning("%s:%d: %s", builder.path, section.lnum, exc)
        except ConfigError as exc:
            _add_context(exc, builder, section.lnum)
            raise

    # Second pass: bindings.
    for section in sections:
        if section.name in SPECIAL_SECTIONS:
            continue
        layer_name, _ = split_layer_spec(section.name)
        for entry in section.entries:
            if entry.value is None:
                logger.warning("%s:%d: invalid binding", builder.path, entry.lnum)
                continue
            try:
                add_entry(builder, f"{layer_name}.{entry.key} = {entry.value}")
            except BindingError as exc:
                logger.warning("%s:%d: %s", builder.path, entry.lnum, exc)
            except ConfigError as exc:
                _add_context(exc, builder, entry.lnum)
                raise

    default_layout = builder.settings.default_layout
    if default_layout:
        ref = builder.layer_index(default_layout)
        if ref is None or builder.layer(ref).kind is not LayerKind.LAYOUT:
            logger.warning("%s: default_layout %s is not a layout", builder.path, default_layout)


def parse_config_string(text: str, path: str = "") -> Config:
    "Compile config text that has already had its includes resolved."
    builder = new_builder(path)
    populate(builder, parse_sections(text, path=path))
    return builder.freeze()


def parse_config(
    path: typing.Union[str, pathlib.Path],
    include_dirs: collections.abc.Iterable[pathlib.Path] = SYSTEM_INCLUDE_DIRS,
) -> Config:
    """Compile the config file at ``path`` into a fresh Config.

    Recoverable problems are logged and skipped. Raises ConfigError if the file can't be loaded at all.
    """
    text = read_config_text(path, include_dirs=include_dirs)
    return parse_config_string(text, path=str(path))

