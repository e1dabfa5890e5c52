from __future__ import annotations

import contextlib
import typing

import attrs

from .commontypes import BindingError, CapacityError, CommandRef, DescriptorRef, LayerRef, MacroRef
from .configtypes import (
    KEYMAP_SIZE,
    MAX_COMMANDS,
    MAX_DESCRIPTORS,
    MAX_IDS,
    MAX_LAYERS,
    MAX_MACROS,
    AnyDescriptor,
    Command,
    Config,
    Layer,
    LayerKind,
    Macro,
)
from .settings import GlobalSettings


def _empty_keymap() -> list[typing.Optional[AnyDescriptor]]:
    return [None] * KEYMAP_SIZE


@attrs.define(kw_only=True)
class LayerBuilder:
    name: str
    kind: LayerKind
    mods: int = 0
    constituents: tuple[LayerRef, ...] = ()
    keymap: list[typing.Optional[AnyDescriptor]] = attrs.field(factory=_empty_keymap, repr=False)

    def freeze(self) -> Layer:
        return Layer(
            name=self.name,
            kind=self.kind,
            mods=self.mods,
            constituents=self.constituents,
            keymap=tuple(self.keymap),
        )


@attrs.define(kw_only=True)
class ConfigBuilder:
    """Mutable state of a compilation in progress.

    Pools only grow by appending, and a handle is only handed out once its value is stored, so no
    handle can point past the end of its pool.
    """

    path: str = ""
    layers: list[LayerBuilder] = attrs.field(factory=list)
    aliases: list[typing.Optional[str]] = attrs.field(factory=lambda: [None] * KEYMAP_SIZE)
    macros: list[Macro] = attrs.field(factory=list)
    commands: list[Command] = attrs.field(factory=list)
    descriptors: list[AnyDescriptor] = attrs.field(factory=list)
    ids: list[int] = attrs.field(factory=list)
    excluded_ids: list[int] = attrs.field(factory=list)
    wildcard: bool = False
    settings: GlobalSettings = attrs.field(factory=GlobalSettings.defaults)

    def layer_index(self, name: str) -> typing.Optional[LayerRef]:
        for i, layer in enumerate(self.layers):
            if layer.name == name:
                return LayerRef(i)
        return None

    def layer(self, ref: LayerRef) -> LayerBuilder:
        return self.layers[ref.index]

    def append_layer(self, layer: LayerBuilder) -> LayerRef:
        if len(self.layers) >= MAX_LAYERS:
            raise CapacityError(f"max layers ({MAX_LAYERS}) exceeded", path=self.path)
        self.layers.append(layer)
        return LayerRef(len(self.layers) - 1)

    def add_macro(self, macro: Macro) -> MacroRef:
        if len(self.macros) >= MAX_MACROS:
            raise CapacityError(f"max macros ({MAX_MACROS}) exceeded", path=self.path)
        self.macros.append(macro)
        return MacroRef(len(self.macros) - 1)

    def add_command(self, command: Command) -> CommandRef:
        if len(self.commands) >= MAX_COMMANDS:
            raise CapacityError(f"max commands ({MAX_COMMANDS}) exceeded", path=self.path)
        self.commands.append(command)
        return CommandRef(len(self.commands) - 1)

    def add_descriptor(self, descriptor: AnyDescriptor) -> DescriptorRef:
        if len(self.descriptors) >= MAX_DESCRIPTORS:
            raise CapacityError(f"max descriptors ({MAX_DESCRIPTORS}) exceeded", path=self.path)
        self.descriptors.append(descriptor)
        return DescriptorRef(len(self.descriptors) - 1)

    def add_id(self, device_id: int, exclude: bool = False):
        ids = self.excluded_ids if exclude else self.ids
        if len(ids) >= MAX_IDS:
            raise CapacityError(f"max device ids ({MAX_IDS}) exceeded", path=self.path)
        ids.append(device_id)

    @contextlib.contextmanager
    def binding(self):
        """Compile one binding atomically.

        If the body raises BindingError, every macro, command and nested descriptor it appended is
        dropped again before the error propagates.
        """
        marks = (len(self.macros), len(self.commands), len(self.descriptors))
        try:
            yield self
        except BindingError:
            del self.macros[marks[0] :]
            del self.commands[marks[1] :]
            del self.descriptors[marks[2] :]
            raise

    def freeze(self) -> Config:
        return Config(
            path=self.path,
            layers=tuple(layer.freeze() for layer in self.layers),
            aliases=tuple(self.aliases),
            macros=tuple(self.macros),
            commands=tuple(self.commands),
            descriptors=tuple(self.descriptors),
            ids=tuple(self.ids),
            excluded_ids=tuple(self.excluded_ids),
            wildcard=self.wildcard,
            settings=self.settings,
        )
