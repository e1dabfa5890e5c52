from __future__ import annotations

import enum
import typing

import msgspec

from .commontypes import CommandRef, DescriptorRef, Handle, LayerRef, MacroRef
from .settings import GlobalSettings

MAX_FILE_SIZE = 65536
MAX_LINE_LEN = 256
MAX_LAYERS = 32
MAX_LAYER_NAME_LEN = 64
MAX_DESCRIPTOR_ARGS = 3
MAX_EXP_LEN = 512
MAX_MACRO_SOURCE_LEN = 1024
MAX_MACRO_SIZE = 64
MAX_COMPOSITE_LAYERS = 8
MAX_MACROS = 256
MAX_COMMANDS = 64
MAX_COMMAND_LEN = 256
MAX_DESCRIPTORS = 256
MAX_IDS = 64
MAX_ALIAS_LEN = 32
KEYMAP_SIZE = 256


@enum.unique
class LayerKind(enum.Enum):
    NORMAL = "normal"
    COMPOSITE = "composite"
    LAYOUT = "layout"


class DeviceMatch(enum.IntEnum):
    NO_MATCH = 0
    WILDCARD = 1
    EXPLICIT = 2


class Descriptor(msgspec.Struct, frozen=True, tag_field="op"):
    pass


class KeySequence(Descriptor, frozen=True, tag="keysequence"):
    code: int
    mods: int = 0


class Swap(Descriptor, frozen=True, tag="swap"):
    layer: LayerRef


class Swap2(Descriptor, frozen=True, tag="swap2"):
    layer: LayerRef
    macro: MacroRef


class Clear(Descriptor, frozen=True, tag="clear"):
    pass


class Oneshot(Descriptor, frozen=True, tag="oneshot"):
    layer: LayerRef


class Toggle(Descriptor, frozen=True, tag="toggle"):
    layer: LayerRef


class Toggle2(Descriptor, frozen=True, tag="toggle2"):
    layer: LayerRef
    macro: MacroRef


class LayerHold(Descriptor, frozen=True, tag="layer"):
    layer: LayerRef


class Overload(Descriptor, frozen=True, tag="overload"):
    layer: LayerRef
    action: DescriptorRef


class Timeout(Descriptor, frozen=True, tag="timeout"):
    action: DescriptorRef
    timeout: int
    timeout_action: DescriptorRef


class Macro2(Descriptor, frozen=True, tag="macro2"):
    timeout: int
    repeat_timeout: int
    macro: MacroRef


class SetLayout(Descriptor, frozen=True, tag="setlayout"):
    layout: LayerRef


class RunMacro(Descriptor, frozen=True, tag="macro"):
    macro: MacroRef


class RunCommand(Descriptor, frozen=True, tag="command"):
    command: CommandRef


AnyDescriptor = typing.Union[
    KeySequence,
    Swap,
    Swap2,
    Clear,
    Oneshot,
    Toggle,
    Toggle2,
    LayerHold,
    Overload,
    Timeout,
    Macro2,
    SetLayout,
    RunMacro,
    RunCommand,
]


class MacroEntry(msgspec.Struct, frozen=True, tag_field="type"):
    pass


class KeyEntry(MacroEntry, frozen=True, tag="key"):
    code: int
    mods: int = 0


# Key down without the matching key up; the keys of a chord are held until the next Release.
class Hold(MacroEntry, frozen=True, tag="hold"):
    code: int


# End of a chord: everything held since the chord started is released in reverse order.
class Release(MacroEntry, frozen=True, tag="release"):
    pass


class Delay(MacroEntry, frozen=True, tag="delay"):
    ms: int


# Index into the compose table.
class Unicode(MacroEntry, frozen=True, tag="unicode"):
    index: int


AnyMacroEntry = typing.Union[KeyEntry, Hold, Release, Delay, Unicode]


class Macro(msgspec.Struct, frozen=True):
    entries: tuple[AnyMacroEntry, ...]


class Command(msgspec.Struct, frozen=True):
    cmd: str


class Layer(msgspec.Struct, frozen=True):
    name: str
    kind: LayerKind
    keymap: tuple[typing.Optional[AnyDescriptor], ...]
    mods: int = 0
    constituents: tuple[LayerRef, ...] = ()

    def bindings(self) -> typing.Iterator[tuple[int, AnyDescriptor]]:
        for code, descriptor in enumerate(self.keymap):
            if descriptor is not None:
                yield code, descriptor


class Config(msgspec.Struct, frozen=True):
    """A compiled configuration.

    Every handle stored in a descriptor indexes the matching pool of this object. The runtime engine
    relies on that and does no checking of its own.
    """

    path: str
    layers: tuple[Layer, ...]
    aliases: tuple[typing.Optional[str], ...]
    macros: tuple[Macro, ...]
    commands: tuple[Command, ...]
    descriptors: tuple[AnyDescriptor, ...]
    ids: tuple[int, ...]
    excluded_ids: tuple[int, ...]
    wildcard: bool
    settings: GlobalSettings

    def layer_index(self, name: str) -> typing.Optional[LayerRef]:
        for i, layer in enumerate(self.layers):
            if layer.name == name:
                return LayerRef(i)
        return None

    def layer_by_index(self, index: int) -> Layer:
        return self.layers[index]

    def layer(self, ref: LayerRef) -> Layer:
        return self.layers[_checked(ref, LayerRef)]

    def macro(self, ref: MacroRef) -> Macro:
        return self.macros[_checked(ref, MacroRef)]

    def command(self, ref: CommandRef) -> Command:
        return self.commands[_checked(ref, CommandRef)]

    def descriptor(self, ref: DescriptorRef) -> AnyDescriptor:
        return self.descriptors[_checked(ref, DescriptorRef)]

    def lookup(self, layer: LayerRef, code: int) -> typing.Optional[AnyDescriptor]:
        return self.layer(layer).keymap[code]

    def match_device(self, device_id: int) -> DeviceMatch:
        return match_device(self, device_id)


def _checked(ref: Handle, kind: type[Handle]) -> int:
    if type(ref) is not kind:
        raise TypeError(f"Expected {kind.__name__}, got {type(ref).__name__}")
    return ref.index


def device_id(vendor: int, product: int) -> int:
    return (vendor << 16) | product


def match_device(config: Config, device_id: int) -> DeviceMatch:
    "Decide whether a config applies to the device with the given vendor << 16 | product id."
    if device_id in config.excluded_ids:
        return DeviceMatch.NO_MATCH
    if device_id in config.ids:
        return DeviceMatch.EXPLICIT
    return DeviceMatch.WILDCARD if config.wildcard else DeviceMatch.NO_MATCH
