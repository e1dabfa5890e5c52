"""Turn compiled values back into config text that compiles to equal values."""
from __future__ import annotations

import dataclasses
import typing

from .commontypes import DescriptorRef, LayerRef, MacroRef
from .composes import COMPOSE_TABLE
from .configtypes import (
    AnyDescriptor,
    Config,
    Delay,
    Hold,
    KeyEntry,
    KeySequence,
    Layer,
    LayerKind,
    Macro,
    Release,
    RunCommand,
    RunMacro,
    Unicode,
)
from .descriptors import ACTION_NAMES
from .keycodes import MODIFIER_TABLE, format_mods, keycode_name
from .layers import MAIN_LAYER
from .util import escape


def format_key(code: int, mods: int = 0) -> str:
    return format_mods(mods) + keycode_name(code)


def _format_chord_piece(entry) -> str:
    match entry:
        case Hold(code=code):
            return keycode_name(code)
        case Delay(ms=ms):
            return f"{ms}ms"
    raise ValueError(f"{entry!r} can't be part of a chord")


def format_macro(macro: Macro) -> str:
    "The body of ``macro(...)`` for a compiled macro."
    tokens = []
    entries = macro.entries
    i = 0
    while i < len(entries):
        entry = entries[i]
        match entry:
            case KeyEntry(code=code, mods=mods):
                tokens.append(format_key(code, mods))
            case Unicode(index=index):
                tokens.append(COMPOSE_TABLE.character(index))
            case Release():
                # a chord with no keys in it
                tokens.append("++")
            case Hold() | Delay():
                end = i
                while end < len(entries) and isinstance(entries[end], (Hold, Delay)):
                    end += 1
                if end < len(entries) and isinstance(entries[end], Release):
                    pieces = [_format_chord_piece(e) for e in entries[i:end]]
                    tokens.append("+".join(pieces) if len(pieces) > 1 else pieces[0] + "+")
                    i = end + 1
                    continue
                tokens.append(_format_chord_piece(entry))
        i += 1
    return " ".join(tokens)


def format_descriptor(config: Config, descriptor: typing.Optional[AnyDescriptor]) -> str:
    match descriptor:
        case None:
            return ""
        case KeySequence(code=code, mods=mods):
            return format_key(code, mods)
        case RunCommand(command=ref):
            return f"command({escape(config.command(ref).cmd)})"
        case RunMacro(macro=ref):
            return f"macro({format_macro(config.macro(ref))})"
    name = ACTION_NAMES[type(descriptor)]
    args = [_format_arg(config, getattr(descriptor, field)) for field in descriptor.__struct_fields__]
    return f"{name}({', '.join(args)})"


def _format_arg(config: Config, value) -> str:
    match value:
        case LayerRef():
            return config.layer(value).name
        case DescriptorRef():
            return format_descriptor(config, config.descriptor(value))
        case MacroRef():
            return f"macro({format_macro(config.macro(value))})"
    return str(value)


def format_layer_header(layer: Layer) -> str:
    match layer.kind:
        case LayerKind.LAYOUT:
            return f"[{layer.name}:layout]"
        case LayerKind.NORMAL if layer.mods:
            return f"[{layer.name}:{format_mods(layer.mods).rstrip('-')}]"
    return f"[{layer.name}]"


def dump_config(config: Config) -> str:
    lines = []
    if config.wildcard or config.ids or config.excluded_ids:
        lines.append("[ids]")
        if config.wildcard:
            lines.append("*")
        lines.extend(f"{i >> 16:04x}:{i & 0xFFFF:04x}" for i in config.ids)
        lines.extend(f"-{i >> 16:04x}:{i & 0xFFFF:04x}" for i in config.excluded_ids)
        lines.append("")

    lines.append("[global]")
    for field in dataclasses.fields(config.settings):
        value = getattr(config.settings, field.name)
        if value != "":
            lines.append(f"{field.name} = {value}")
    lines.append("")

    modifier_codes = {code for m in MODIFIER_TABLE for code in m.codes}
    for layer in config.layers:
        lines.append(format_layer_header(layer))
        for code, descriptor in enumerate(layer.keymap):
            if descriptor is not None:
                lines.append(f"{keycode_name(code)} = {format_descriptor(config, descriptor)}")
            elif layer.name == MAIN_LAYER and code in modifier_codes:
                # main binds these by default, so an empty slot has to be spelled out
                lines.append(f"{keycode_name(code)} =")
        lines.append("")

    return "\n".join(lines)
