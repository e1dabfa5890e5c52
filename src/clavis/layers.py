from __future__ import annotations

import logging
import typing

from .builder import ConfigBuilder, LayerBuilder
from .commontypes import LayerError
from .configtypes import MAX_COMPOSITE_LAYERS, MAX_LAYER_NAME_LEN, LayerHold, LayerKind
from .keycodes import MODIFIER_TABLE, parse_modset

logger = logging.getLogger(__name__)

MAIN_LAYER = "main"
BUILTIN_LAYERS = (MAIN_LAYER, *(f"{m.name}:{m.letter}" for m in MODIFIER_TABLE))


def split_layer_spec(s: str) -> tuple[str, typing.Optional[str]]:
    "``name:type`` -> (name, type); a missing or empty type is None."
    name, _, layer_type = s.partition(":")
    layer_type = layer_type.split(":")[0]
    return name, layer_type or None


def new_layer(s: str, builder: ConfigBuilder) -> LayerBuilder:
    name, layer_type = split_layer_spec(s)

    if "+" in name:
        if layer_type is not None:
            raise LayerError("composite layers cannot have a type.")
        constituents = []
        for constituent in name.split("+"):
            ref = builder.layer_index(constituent)
            if ref is None:
                raise LayerError(f"{constituent} is not a valid layer")
            constituents.append(ref)
        if len(constituents) > MAX_COMPOSITE_LAYERS:
            raise LayerError(f"max composite layers ({MAX_COMPOSITE_LAYERS}) exceeded")
        return LayerBuilder(name=name, kind=LayerKind.COMPOSITE, constituents=tuple(constituents))

    if layer_type == "layout":
        return LayerBuilder(name=name, kind=LayerKind.LAYOUT)

    if layer_type is not None:
        mods = parse_modset(layer_type)
        if mods is not None:
            return LayerBuilder(name=name, kind=LayerKind.NORMAL, mods=mods)
        logger.warning('"%s" is not a valid layer type, ignoring', layer_type)

    return LayerBuilder(name=name, kind=LayerKind.NORMAL)


def add_layer(builder: ConfigBuilder, s: str) -> bool:
    """Declare a layer from a section name such as ``nav``, ``nav:C-A``, ``dvorak:layout`` or ``nav+shift``.

    Returns False if a layer with this name already exists, True if it was created. Raises LayerError
    if the declaration is invalid and CapacityError if there is no room for another layer.
    """
    if len(s) >= MAX_LAYER_NAME_LEN:
        raise LayerError(f"{s} exceeds the maximum layer name length ({MAX_LAYER_NAME_LEN})")
    name, _ = split_layer_spec(s)
    if not name:
        raise LayerError("layer name cannot be empty")
    if builder.layer_index(name) is not None:
        return False
    builder.append_layer(new_layer(s, builder))
    return True


def seed_builtin_layers(builder: ConfigBuilder):
    """Create ``main`` and one layer per modifier.

    Each physical modifier key in ``main`` activates its modifier layer, and is aliased to that layer's name.
    """
    for spec in BUILTIN_LAYERS:
        add_layer(builder, spec)

    main = builder.layer(builder.layer_index(MAIN_LAYER))
    for modifier in MODIFIER_TABLE:
        ref = builder.layer_index(modifier.name)
        for code in modifier.codes:
            main.keymap[code] = LayerHold(layer=ref)
            builder.aliases[code] = modifier.name
